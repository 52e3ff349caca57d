#application/services/sync/book_poller.py
"""Poller do livro de ofertas - mantém ViewState.book aproximadamente atual."""
import logging
from typing import Optional

from core.contracts.gateway import HttpReply, IOrderBookGateway
from core.contracts.messaging import ISystemEventBus
from core.entities.book import Book
from core.monitoring.sync_monitor import SyncMonitor
from application.state.view_state import ViewState
from .poller import IntervalPoller

logger = logging.getLogger(__name__)

DEFAULT_DEPTH = 10
DEFAULT_INTERVAL = 0.5


class BookPoller(IntervalPoller):
    """
    Lê GET /book?depth=N periodicamente.
    
    Sucesso sobrescreve o livro e limpa poll_error; falha (transporte,
    status não-2xx ou corpo malformado) mantém o livro anterior e define
    poll_error. A agenda nunca para por causa de uma falha.
    """

    name = "book"
    failure_event = "BOOK_POLL_FAILED"

    def __init__(self, gateway: IOrderBookGateway, view_state: ViewState,
                 depth: int = DEFAULT_DEPTH, interval: float = DEFAULT_INTERVAL,
                 event_bus: Optional[ISystemEventBus] = None,
                 monitor: Optional[SyncMonitor] = None):
        super().__init__(view_state, interval, event_bus=event_bus, monitor=monitor)
        self.gateway = gateway
        self.depth = depth
        
        logger.info(f"BookPoller configurado - depth: {depth}, intervalo: {interval}s")

    async def fetch(self) -> HttpReply:
        return await self.gateway.fetch_book(self.depth)

    def decode(self, reply: HttpReply) -> Book:
        return Book.model_validate_json(reply.body)

    def apply(self, decoded: Book, stamp: int) -> bool:
        return self.view_state.apply_poll_success(decoded, stamp)

    def apply_failure(self, message: str) -> None:
        self.view_state.apply_poll_failure(message)
