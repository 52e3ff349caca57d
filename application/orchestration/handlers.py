# application/orchestration/handlers.py
"""Handlers de eventos - levam as mudanças do ViewState até o display."""
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from core.contracts.messaging import ISystemEventBus
from core.entities.order import CancelResult, OrderResult
from application.state.view_state import ViewState

logger = logging.getLogger(__name__)


class OrchestrationHandlers:
    """
    Handlers dos eventos do sistema.
    
    Fluxo único: serviços -> ViewState -> VIEW_STATE_CHANGED -> display.
    O display nunca fala com a rede.
    """
    
    def __init__(self, event_bus: ISystemEventBus, display: Any,
                 state_provider: Callable[[], Optional[ViewState]]):
        self.event_bus = event_bus
        self.display = display
        self.state_provider = state_provider
        
        self.render_count = 0
    
    def subscribe_to_events(self):
        """Inscreve handlers nos eventos do sistema."""
        self.event_bus.subscribe("VIEW_STATE_CHANGED", self.handle_state_changed)
        self.event_bus.subscribe("ORDER_ACCEPTED", self.handle_order_accepted)
        self.event_bus.subscribe("ORDER_CANCELLED", self.handle_order_cancelled)
        self.event_bus.subscribe("SESSION_STARTED", self.handle_session_event)
        self.event_bus.subscribe("SESSION_STOPPED", self.handle_session_event)
        
        logger.info("Handlers inscritos nos eventos da tela")
    
    def handle_state_changed(self, fields: Tuple[str, ...]):
        """Renderiza o snapshot atual; só os painéis dos campos alterados."""
        view_state = self.state_provider()
        if view_state is None:
            return
        self.render_count += 1
        self.display.render_state(view_state.snapshot(), fields)
    
    def handle_order_accepted(self, result: OrderResult):
        trades = len(result.trades)
        self.display.notify_event(
            f"Ordem #{result.order_id} aceita - {trades} negócio(s)",
            severity="information"
        )
    
    def handle_order_cancelled(self, result: CancelResult):
        self.display.notify_event(f"Ordem #{result.order_id} cancelada", severity="warning")
    
    def handle_session_event(self, data: Dict[str, Any]):
        if data.get('poller') == 'book':
            status = "ativo" if self.state_provider() is not None else "parado"
            self.display.update_system_phase(f"Polling {status} (sessão #{data.get('session')})")
