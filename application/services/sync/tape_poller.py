#application/services/sync/tape_poller.py
"""Poller da fita de negócios recentes (GET /trades)."""
import logging
from typing import List, Optional

from core.contracts.gateway import HttpReply, IOrderBookGateway
from core.contracts.messaging import ISystemEventBus
from core.entities.trade import Trade, TradeTape
from core.monitoring.sync_monitor import SyncMonitor
from application.state.view_state import ViewState
from .poller import IntervalPoller

logger = logging.getLogger(__name__)


class TradeTapePoller(IntervalPoller):
    """Mesma mecânica de sessão do BookPoller, com canal de erro próprio."""

    name = "tape"
    failure_event = "TAPE_POLL_FAILED"

    def __init__(self, gateway: IOrderBookGateway, view_state: ViewState,
                 limit: int = 50, interval: float = 1.0,
                 event_bus: Optional[ISystemEventBus] = None,
                 monitor: Optional[SyncMonitor] = None):
        super().__init__(view_state, interval, event_bus=event_bus, monitor=monitor)
        self.gateway = gateway
        self.limit = limit

    async def fetch(self) -> HttpReply:
        return await self.gateway.fetch_trades(self.limit)

    def decode(self, reply: HttpReply) -> List[Trade]:
        return TradeTape.model_validate_json(reply.body).trades

    def apply(self, decoded: List[Trade], stamp: int) -> bool:
        self.view_state.apply_tape(decoded)
        return True

    def apply_failure(self, message: str) -> None:
        self.view_state.apply_tape_failure(message)
