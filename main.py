# main.py
"""
Order Book Monitor - cliente do serviço de negociação.
Uso: python main.py [caminho/config.yaml]
"""
import sys
import logging
import signal
from pathlib import Path
from rich.console import Console
from rich.logging import RichHandler

from config.settings import ConfigLoader, ConfigurationError, build_base_url
from core.bootstrap.system import SystemBootstrap

DEFAULT_CONFIG_PATH = "config/config.yaml"


def setup_logging(console: Console, log_dir: str = "logs", level: str = "INFO") -> None:
    """Configura o sistema de logging."""
    log_path = Path(log_dir)
    log_path.mkdir(exist_ok=True)
    
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    
    file_handler = logging.FileHandler(
        log_path / "system.log", 
        mode='w', 
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )
    
    console_handler = RichHandler(
        console=console,
        level=getattr(logging, str(level).upper(), logging.INFO),
        show_time=False,
        markup=True
    )
    
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)


def print_banner(console: Console, base_url: str) -> None:
    """Exibe o banner do sistema com o servidor alvo."""
    banner = f"""
    ╔═══════════════════════════════════════════════════════════╗
    ║      ORDER BOOK MONITOR                                   ║
    ║      {base_url.center(53)}      ║
    ║                                                           ║
    ║  📊 Livro de ofertas ao vivo                              ║
    ║  📝 Envio e cancelamento de ordens                        ║
    ╚═══════════════════════════════════════════════════════════╝
    """
    console.print(banner, style="bold cyan")


def main() -> None:
    """Função principal; aceita o caminho do config como argumento opcional."""
    console = Console()
    
    config_path = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_CONFIG_PATH
    
    try:
        config = ConfigLoader(config_path).load()
    except ConfigurationError as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)
    
    print_banner(console, build_base_url(config))
    setup_logging(console, config['system']['log_dir'], config['system']['log_level'])
    
    console.print("\n[cyan]Inicializando sistema...[/cyan]")
    
    bootstrap = SystemBootstrap(config=config)
    
    if not bootstrap.initialize():
        console.print("\n[red]❌ Falha na inicialização do sistema[/red]")
        sys.exit(1)
    
    def signal_handler(sig, frame):
        console.print("\n[yellow]⏹️  Sinal de interrupção recebido[/yellow]")
        bootstrap.shutdown()
        sys.exit(0)
    
    signal.signal(signal.SIGTERM, signal_handler)
    
    try:
        bootstrap.run()
    except Exception as e:
        logging.critical(f"Erro fatal: {e}", exc_info=True)
        console.print(f"\n[red]💥 Erro fatal: {e}[/red]")
    finally:
        bootstrap.shutdown()


if __name__ == "__main__":
    main()
