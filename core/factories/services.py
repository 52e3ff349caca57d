# core/factories/services.py
"""Factory para criar os serviços de uma sessão da tela."""
from typing import Dict, Any, Optional

from core.contracts.gateway import IOrderBookGateway
from core.contracts.messaging import ISystemEventBus
from core.monitoring.sync_monitor import SyncMonitor
from application.state.view_state import ViewState
from application.services.sync import BookPoller, OrderSubmitter, TradeTapePoller
from config.settings import get_config_value


class ServiceFactory:
    """
    Factory para os serviços de sincronização.
    
    O monitor vive o processo inteiro; ViewState, pollers e submissor são
    recriados a cada montagem da tela (create_session).
    """
    
    def __init__(self, config: Dict[str, Any], event_bus: ISystemEventBus,
                 gateway: IOrderBookGateway, monitor: Optional[SyncMonitor] = None):
        """
        Inicializa a factory.
        
        Args:
            config: Configurações do sistema
            event_bus: Barramento de eventos
            gateway: Gateway HTTP compartilhado
            monitor: Monitor de sincronização (criado se None)
        """
        self.config = config
        self.event_bus = event_bus
        self.gateway = gateway
        self.monitor = monitor or self.create_sync_monitor()
    
    def create_session(self) -> Dict[str, Any]:
        """Cria um conjunto novo de estado + serviços para uma montagem."""
        view_state = self.create_view_state()
        
        session = {
            'view_state': view_state,
            'book_poller': self.create_book_poller(view_state),
            'submitter': self.create_order_submitter(view_state),
        }
        
        if get_config_value(self.config, 'tape.enabled', True):
            session['tape_poller'] = self.create_tape_poller(view_state)
        
        return session
    
    def create_sync_monitor(self) -> SyncMonitor:
        return SyncMonitor()
    
    def create_view_state(self) -> ViewState:
        """Cria o estado vazio da tela."""
        return ViewState(
            event_bus=self.event_bus,
            reject_stale_snapshots=get_config_value(self.config, 'sync.reject_stale_snapshots', False)
        )
    
    def create_book_poller(self, view_state: ViewState) -> BookPoller:
        return BookPoller(
            gateway=self.gateway,
            view_state=view_state,
            depth=get_config_value(self.config, 'book.depth', 10),
            interval=get_config_value(self.config, 'book.poll_interval', 0.5),
            event_bus=self.event_bus,
            monitor=self.monitor
        )
    
    def create_tape_poller(self, view_state: ViewState) -> TradeTapePoller:
        """Cria o poller da fita (fora dos contadores do monitor)."""
        return TradeTapePoller(
            gateway=self.gateway,
            view_state=view_state,
            limit=get_config_value(self.config, 'tape.limit', 50),
            interval=get_config_value(self.config, 'tape.poll_interval', 1.0),
            event_bus=self.event_bus
        )
    
    def create_order_submitter(self, view_state: ViewState) -> OrderSubmitter:
        """Cria o submissor com a mesma profundidade do polling."""
        return OrderSubmitter(
            gateway=self.gateway,
            view_state=view_state,
            depth=get_config_value(self.config, 'book.depth', 10),
            event_bus=self.event_bus,
            monitor=self.monitor
        )
