# config/settings.py
"""
Carregador de configurações do cliente do livro de ofertas.
"""
import os
import re
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, List
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Exceção para erros de configuração."""
    pass


class ConfigValidator:
    """Valida configurações do cliente."""
    
    @staticmethod
    def validate_config(config: Dict[str, Any]) -> List[str]:
        """
        Valida a configuração e retorna lista de erros.
        
        Returns:
            Lista de mensagens de erro (vazia se tudo OK)
        """
        errors = []
        
        required_sections = ['system', 'server', 'book']
        
        for section in required_sections:
            if section not in config:
                errors.append(f"Seção obrigatória ausente: {section}")
        
        # Valida servidor
        if 'server' in config:
            server = config['server']
            if not server.get('host'):
                errors.append("server.host é obrigatório")
            if server.get('scheme') not in ('http', 'https'):
                errors.append(f"server.scheme deve ser http ou https: {server.get('scheme')}")
            port = server.get('port')
            if isinstance(port, int) and not 0 < port < 65536:
                errors.append(f"server.port fora do intervalo: {port}")
            if server.get('timeout_seconds', 1) <= 0:
                errors.append("server.timeout_seconds deve ser positivo")
        
        # Valida polling
        if 'book' in config:
            book = config['book']
            if book.get('depth', 1) < 1:
                errors.append("book.depth deve ser >= 1")
            if book.get('poll_interval', 1) <= 0:
                errors.append("book.poll_interval deve ser positivo")
            elif book.get('poll_interval', 1) < 0.05:
                errors.append("book.poll_interval muito baixo (<50ms)")
        
        if 'tape' in config:
            tape = config['tape']
            if tape.get('limit', 1) < 1:
                errors.append("tape.limit deve ser >= 1")
            if tape.get('poll_interval', 1) <= 0:
                errors.append("tape.poll_interval deve ser positivo")
        
        return errors
    
    @staticmethod
    def validate_types(config: Dict[str, Any]) -> List[str]:
        """Valida tipos de dados."""
        errors = []
        
        type_specs = {
            'server.port': int,
            'server.timeout_seconds': (float, int),
            'book.depth': int,
            'book.poll_interval': (float, int),
            'tape.enabled': bool,
            'tape.limit': int,
            'tape.poll_interval': (float, int),
            'sync.reject_stale_snapshots': bool,
        }
        
        for path, expected_types in type_specs.items():
            value = ConfigValidator._get_nested_value(config, path)
            if value is not None:
                # bool é subclasse de int: não aceita True como porta
                if isinstance(value, bool) and expected_types is not bool:
                    errors.append(f"{path} deve ser {expected_types}, mas é {type(value)}")
                elif not isinstance(value, expected_types):
                    errors.append(
                        f"{path} deve ser {expected_types}, mas é {type(value)}"
                    )
        
        return errors
    
    @staticmethod
    def _get_nested_value(config: Dict, path: str) -> Any:
        """Obtém valor aninhado do config."""
        keys = path.split('.')
        value = config
        
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return None
        
        return value


class ConfigLoader:
    """Carregador principal de configurações."""
    
    # Padrão para variáveis de ambiente: ${VAR_NAME:default_value}
    ENV_VAR_PATTERN = re.compile(r'\$\{([^:}]+)(?::([^}]*))?\}')
    
    def __init__(self, config_path: str = "config/config.yaml", 
                 env_file: str = ".env"):
        """
        Inicializa o carregador de configurações.
        
        Args:
            config_path: Caminho do arquivo YAML
            env_file: Caminho do arquivo .env (opcional)
        """
        self.config_path = Path(config_path)
        self.env_file = Path(env_file)
        self._config_cache = None
        self._last_modified = None
        
        if self.env_file.exists():
            load_dotenv(self.env_file)
            logger.info(f"Variáveis de ambiente carregadas de {self.env_file}")
    
    def load(self, validate: bool = True) -> Dict[str, Any]:
        """
        Carrega configurações com cache e validação.
        
        Args:
            validate: Se deve validar a configuração
            
        Returns:
            Dicionário de configuração
            
        Raises:
            ConfigurationError: Se houver erro na configuração
        """
        if self._is_cache_valid():
            return self._config_cache
        
        config = self._load_yaml()
        config = self._substitute_env_vars(config)
        config = self._merge_with_defaults(config)
        
        if validate:
            self._validate_config(config)
        
        self._config_cache = config
        self._last_modified = self.config_path.stat().st_mtime
        
        logger.info(f"Configuração carregada de {self.config_path}")
        return config
    
    def _is_cache_valid(self) -> bool:
        """Verifica se o cache ainda é válido."""
        if self._config_cache is None or self._last_modified is None:
            return False
        
        if not self.config_path.exists():
            return False
        
        current_mtime = self.config_path.stat().st_mtime
        return current_mtime == self._last_modified
    
    def _load_yaml(self) -> Dict[str, Any]:
        """Carrega arquivo YAML."""
        if not self.config_path.exists():
            raise ConfigurationError(
                f"Arquivo de configuração não encontrado: {self.config_path}"
            )
        
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Erro ao parsear YAML: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Erro ao carregar configuração: {e}") from e
        
        if not isinstance(config, dict):
            raise ConfigurationError("Configuração deve ser um dicionário")
        
        return config
    
    def _substitute_env_vars(self, obj: Any) -> Any:
        """
        Substitui variáveis de ambiente recursivamente.
        Formato: ${VAR_NAME:default_value}
        """
        if isinstance(obj, str):
            def resolve(match) -> Any:
                value = os.environ.get(match.group(1), match.group(2))
                return _coerce_scalar(value) if value is not None else ''
            
            # Se a string inteira é uma variável, retorna o valor convertido
            full = self.ENV_VAR_PATTERN.fullmatch(obj)
            if full:
                return resolve(full)
            
            # Caso contrário, faz substituição parcial mantendo string
            return self.ENV_VAR_PATTERN.sub(lambda m: str(resolve(m)), obj)
        
        elif isinstance(obj, dict):
            return {k: self._substitute_env_vars(v) for k, v in obj.items()}
        
        elif isinstance(obj, list):
            return [self._substitute_env_vars(item) for item in obj]
        
        else:
            return obj
    
    def _merge_with_defaults(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Merge com valores default."""
        return self._deep_merge(get_default_config(), config)
    
    def _deep_merge(self, base: Dict, override: Dict) -> Dict:
        """Merge profundo de dicionários."""
        result = base.copy()
        
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        
        return result
    
    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Valida a configuração."""
        validator = ConfigValidator()
        
        # tipos primeiro: as validações de limites comparam números
        errors = validator.validate_types(config)
        if not errors:
            errors = validator.validate_config(config)
        
        if errors:
            error_msg = "Erros de configuração encontrados:\n"
            error_msg += "\n".join(f"  - {error}" for error in errors)
            raise ConfigurationError(error_msg)


def _coerce_scalar(value: str) -> Any:
    """Converte 'true'/'false' e números vindos do ambiente."""
    if value.lower() in ('true', 'false'):
        return value.lower() == 'true'
    try:
        return float(value) if '.' in value else int(value)
    except ValueError:
        return value


def get_default_config() -> Dict[str, Any]:
    """Retorna configuração padrão (servidor local, livro com 10 níveis a cada 500ms)."""
    return {
        'system': {
            'log_dir': 'logs',
            'log_level': 'INFO',
            'shutdown_timeout_seconds': 2.0
        },
        'server': {
            'scheme': 'http',
            'host': 'localhost',
            'port': 8080,
            'timeout_seconds': 5.0
        },
        'book': {
            'depth': 10,
            'poll_interval': 0.5
        },
        'tape': {
            'enabled': True,
            'limit': 50,
            'poll_interval': 1.0
        },
        'sync': {
            'reject_stale_snapshots': False
        },
        'form': {
            'side': 'buy',
            'price': 10200,
            'qty': 1
        }
    }


def build_base_url(config: Dict[str, Any]) -> str:
    """Monta a URL base do serviço a partir da seção 'server'."""
    server = config['server']
    return f"{server['scheme']}://{server['host']}:{server['port']}"


# Funções de conveniência
@lru_cache(maxsize=4)
def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Carrega configurações (com cache).
    
    Args:
        config_path: Caminho do arquivo de configuração
        
    Returns:
        Dicionário de configuração
    """
    loader = ConfigLoader(config_path)
    return loader.load()


def get_config_value(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Obtém valor específico da configuração.
    
    Args:
        config: Configuração carregada
        path: Caminho no formato 'section.subsection.key'
        default: Valor padrão se não encontrar
    """
    value = ConfigValidator._get_nested_value(config, path)
    return default if value is None else value


__all__ = [
    'ConfigLoader',
    'ConfigValidator', 
    'ConfigurationError',
    'load_config',
    'get_config_value',
    'get_default_config',
    'build_base_url'
]
