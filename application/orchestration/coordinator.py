# application/orchestration/coordinator.py
"""Coordenador do cliente - ciclo de vida da sessão ligado à montagem da tela."""
import asyncio
import logging
from typing import Any, Dict, Optional

from rich.logging import RichHandler

from core.contracts.messaging import ISystemEventBus
from core.entities.order import OrderRequest
from core.factories.services import ServiceFactory
from core.monitoring.sync_monitor import SyncMonitor
from application.state.view_state import ViewState
from config.settings import get_config_value

logger = logging.getLogger(__name__)


class SessionNotMountedError(RuntimeError):
    """Operação da tela chamada sem sessão montada."""
    pass


class SystemCoordinator:
    """
    Dono do ciclo de vida da sessão.
    
    mount() cria um ViewState vazio e serviços novos e inicia os pollers;
    unmount() para os pollers e descarta a sessão. A tela chama os dois nos
    seus eventos de montagem/desmontagem.
    """
    
    def __init__(self, config: Dict[str, Any], infrastructure: Dict[str, Any],
                 service_factory: ServiceFactory):
        self.config = config
        self.infrastructure = infrastructure
        self.service_factory = service_factory
        
        self.event_bus: ISystemEventBus = infrastructure['event_bus']
        self.gateway = infrastructure['gateway']
        self.monitor: SyncMonitor = service_factory.monitor
        
        self.session: Optional[Dict[str, Any]] = None
        self.display = None
        self.handlers = None
        self.mount_count = 0
        self.shutdown_timeout = get_config_value(config, 'system.shutdown_timeout_seconds', 2.0)
    
    def setup(self, display: Any = None):
        """Cria o display e inscreve os handlers."""
        from application.orchestration.handlers import OrchestrationHandlers
        
        if display is None:
            from presentation.display.monitor import OrderBookMonitorApp
            display = OrderBookMonitorApp(coordinator=self)
        self.display = display
        
        self.handlers = OrchestrationHandlers(
            event_bus=self.event_bus,
            display=self.display,
            state_provider=lambda: self.view_state
        )
        self.handlers.subscribe_to_events()
        
        logger.info("✅ Coordenador pronto")

    # ------------------------------------------------------------------
    # Sessão
    # ------------------------------------------------------------------

    @property
    def mounted(self) -> bool:
        return self.session is not None

    @property
    def view_state(self) -> Optional[ViewState]:
        return self.session['view_state'] if self.session else None

    def mount(self) -> ViewState:
        """Cria a sessão da tela e inicia o polling. Precisa de loop rodando."""
        if self.session:
            logger.warning("Sessão já montada - desmontando a anterior")
            self.unmount()
        
        self.session = self.service_factory.create_session()
        self.mount_count += 1
        
        self.session['book_poller'].start()
        if 'tape_poller' in self.session:
            self.session['tape_poller'].start()
        
        logger.info(f"🖥️ Tela montada (montagem #{self.mount_count})")
        return self.session['view_state']

    def unmount(self) -> None:
        """Para os pollers e descarta o estado da sessão."""
        if not self.session:
            return
        
        session, self.session = self.session, None
        session['book_poller'].stop()
        if 'tape_poller' in session:
            session['tape_poller'].stop()
        
        for name in ('book_poller', 'tape_poller', 'submitter'):
            if name in session:
                logger.info(f"📈 {name}: {session[name].get_statistics()}")
        
        logger.info("🖥️ Tela desmontada - estado descartado")

    def submit(self, request: OrderRequest) -> asyncio.Task:
        return self._require_session()['submitter'].submit(request)

    def cancel_last_order(self) -> Optional[asyncio.Task]:
        """Cancela a última ordem aceita nesta sessão, se houver."""
        session = self._require_session()
        order_id = session['view_state'].last_order_id
        if order_id is None:
            logger.info("Nenhuma ordem para cancelar")
            return None
        return session['submitter'].cancel(order_id)

    def _require_session(self) -> Dict[str, Any]:
        if not self.session:
            raise SessionNotMountedError("Nenhuma sessão montada")
        return self.session

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------

    def start(self):
        """Executa a interface até o usuário sair (bloqueante)."""
        if self.display is None:
            raise RuntimeError("Coordenador não configurado - chame setup()")
        
        # o Textual assume o terminal: o console do rich sai enquanto a tela roda
        root_logger = logging.getLogger()
        console_handlers = [h for h in root_logger.handlers if isinstance(h, RichHandler)]
        for handler in console_handlers:
            root_logger.removeHandler(handler)
        
        try:
            logger.info("🚀 Interface iniciada")
            self.display.run()
        finally:
            for handler in console_handlers:
                root_logger.addHandler(handler)
            self.unmount()
    
    async def drain(self) -> None:
        """Espera operações pendentes da sessão atual (até shutdown_timeout)."""
        if not self.session:
            return
        for name in ('book_poller', 'tape_poller', 'submitter'):
            if name in self.session:
                await self.session[name].drain(timeout=self.shutdown_timeout)

    def stop(self):
        """Para o sistema de forma ordenada."""
        logger.info("🛑 Encerrando coordenador...")
        
        self.unmount()
        
        if self.display is not None and getattr(self.display, 'is_running', False):
            self.display.exit()
        
        self.monitor.log_summary()
        logger.info(f"✅ Coordenador encerrado após {self.mount_count} montagem(ns)")
