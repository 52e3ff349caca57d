# core/bootstrap/system.py
"""
Bootstrap do cliente do livro de ofertas.
"""
import asyncio
import logging
from typing import Dict, Any, Optional

from core.contracts.gateway import TransportError
from core.factories.services import ServiceFactory
from core.factories.infrastructure import InfrastructureFactory
from config.settings import load_config, build_base_url

logger = logging.getLogger(__name__)


class SystemBootstrap:
    """Inicializa e configura todo o sistema."""
    
    def __init__(self, config_path: str = "config/config.yaml",
                 config: Optional[Dict[str, Any]] = None):
        """
        Inicializa o bootstrap.
        
        Args:
            config_path: Caminho do arquivo de configuração
            config: Configuração já carregada (ignora config_path)
        """
        self.config = config if config is not None else load_config(config_path)
        self.infrastructure = None
        self.service_factory = None
        self.orchestrator = None
        self.server_healthy: Optional[bool] = None
        self._shut_down = False
        
        logger.info(f"📊 Cliente apontando para {build_base_url(self.config)}")
    
    def initialize(self, display: Any = None) -> bool:
        """Inicializa todos os componentes do sistema."""
        try:
            logger.info("🚀 Iniciando bootstrap do cliente...")
            
            if not self._init_infrastructure():
                return False
                
            if not self._init_services():
                return False
                
            if not self._init_orchestration(display):
                return False
                
            if not self._validate_system():
                return False
            
            logger.info("✅ Sistema inicializado com sucesso")
            return True
            
        except Exception as e:
            logger.error(f"❌ Erro no bootstrap: {e}", exc_info=True)
            return False
    
    def _init_infrastructure(self) -> bool:
        """Inicializa componentes de infraestrutura."""
        try:
            logger.info("🔧 Inicializando infraestrutura...")
            
            factory = InfrastructureFactory(self.config)
            
            self.infrastructure = {
                'event_bus': factory.create_event_bus(),
                'gateway': factory.create_gateway()
            }
            
            # Servidor fora do ar não impede a subida: o polling se recupera sozinho
            self.server_healthy = self._check_server_health()
            
            logger.info(f"✓ {len(self.infrastructure)} componentes de infraestrutura prontos")
            return True
            
        except Exception as e:
            logger.error(f"Erro ao inicializar infraestrutura: {e}", exc_info=True)
            return False
    
    def _check_server_health(self) -> bool:
        """GET /health - apenas informativo."""
        gateway = self.infrastructure['gateway']
        try:
            reply = asyncio.run(gateway.check_health())
        except TransportError as e:
            logger.warning(f"⚠️ Servidor inacessível ({e}) - a tela mostrará o erro até ele voltar")
            return False
        
        if reply.ok:
            logger.info("✓ Servidor respondeu ao health check")
            return True
        
        logger.warning(f"⚠️ Health check retornou HTTP {reply.status}")
        return False
    
    def _init_services(self) -> bool:
        """Prepara a factory de sessões (os serviços nascem na montagem da tela)."""
        try:
            logger.info("📊 Inicializando serviços...")
            
            self.service_factory = ServiceFactory(
                config=self.config,
                event_bus=self.infrastructure['event_bus'],
                gateway=self.infrastructure['gateway']
            )
            
            logger.info("✓ Factory de sessão pronta")
            return True
            
        except Exception as e:
            logger.error(f"Erro ao inicializar serviços: {e}", exc_info=True)
            return False
    
    def _init_orchestration(self, display: Any = None) -> bool:
        """Inicializa orquestração do sistema."""
        try:
            logger.info("🎯 Configurando orquestração...")
            
            from application.orchestration.coordinator import SystemCoordinator
            
            self.orchestrator = SystemCoordinator(
                config=self.config,
                infrastructure=self.infrastructure,
                service_factory=self.service_factory
            )
            
            self.orchestrator.setup(display)
            
            logger.info("✓ Orquestração configurada")
            return True
            
        except Exception as e:
            logger.error(f"Erro ao inicializar orquestração: {e}", exc_info=True)
            return False
    
    def _validate_system(self) -> bool:
        """Valida se o sistema está pronto."""
        logger.info("🔍 Validando sistema...")
        
        if not self.infrastructure:
            logger.error("Infraestrutura não inicializada")
            return False
            
        if not self.service_factory:
            logger.error("Serviços não inicializados")
            return False
            
        if not self.orchestrator:
            logger.error("Orquestrador não inicializado")
            return False
        
        # Testa comunicação básica
        test_event = "SYSTEM_TEST"
        received = []
        
        def test_handler(data):
            received.append(data)
        
        event_bus = self.infrastructure['event_bus']
        event_bus.subscribe(test_event, test_handler)
        event_bus.publish(test_event, {"test": True})
        event_bus.unsubscribe(test_event, test_handler)
        
        if not received:
            logger.error("Falha no teste de eventos")
            return False
        
        logger.info("✓ Sistema validado e pronto")
        return True
    
    def run(self) -> None:
        """Executa o sistema."""
        if self.orchestrator:
            self.orchestrator.start()
        else:
            raise RuntimeError("Sistema não inicializado")
    
    def shutdown(self) -> None:
        """Encerra o sistema ordenadamente (idempotente)."""
        if self._shut_down:
            return
        self._shut_down = True
        
        logger.info("🛑 Iniciando shutdown do sistema...")
        
        if self.orchestrator:
            self.orchestrator.stop()
        
        if self.infrastructure:
            if 'gateway' in self.infrastructure:
                self.infrastructure['gateway'].close()
            
            if 'event_bus' in self.infrastructure:
                self.infrastructure['event_bus'].clear()
        
        logger.info("✅ Sistema encerrado com sucesso")
