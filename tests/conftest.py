"""
Fixtures compartilhadas: gateway falso roteirizado, barramento e estado.

O FakeGateway devolve, para cada chamada, o próximo item da fila do
endpoint: HttpReply, exceção (levantada) ou asyncio.Future (aguardado e
depois tratado como os demais). Com futures o teste controla a ordem em que
as respostas chegam.
"""
import asyncio
import json
from collections import deque
from typing import Any, Deque, List, Tuple

import pytest

from core.contracts.gateway import HttpReply, IOrderBookGateway
from core.entities.order import OrderRequest
from core.monitoring.sync_monitor import SyncMonitor
from infrastructure.messaging.event_bus import LocalEventBus
from application.state.view_state import ViewState

EMPTY_BOOK = {"bids": [], "asks": []}


def json_reply(status: int, payload: Any) -> HttpReply:
    return HttpReply(status=status, body=json.dumps(payload))


def book_payload(bids=(), asks=()) -> dict:
    return {
        "bids": [{"price": p, "qty": q} for p, q in bids],
        "asks": [{"price": p, "qty": q} for p, q in asks],
    }


def order_payload(order_id=42, trades=(), bids=(), asks=()) -> dict:
    """Corpo de OrderResult; trades como (preço, qtd, maker)."""
    return {
        "order_id": order_id,
        "trades": [
            {"price": p, "qty": q, "taker_order_id": order_id, "maker_order_id": m}
            for p, q, m in trades
        ],
        "book": book_payload(bids=bids, asks=asks),
    }


class FakeGateway(IOrderBookGateway):
    """Gateway em memória com respostas roteirizadas por endpoint."""

    def __init__(self):
        self.book_replies: Deque[Any] = deque()
        self.order_replies: Deque[Any] = deque()
        self.cancel_replies: Deque[Any] = deque()
        self.trade_replies: Deque[Any] = deque()
        self.health_replies: Deque[Any] = deque()
        self.calls: List[Tuple] = []
        self.closed = False

    async def fetch_book(self, depth: int) -> HttpReply:
        self.calls.append(('fetch_book', depth))
        return await self._next(self.book_replies, json_reply(200, EMPTY_BOOK))

    async def post_order(self, request: OrderRequest, depth: int) -> HttpReply:
        self.calls.append(('post_order', request.to_payload(), depth))
        return await self._next(self.order_replies, json_reply(500, {}))

    async def cancel_order(self, order_id: int, depth: int) -> HttpReply:
        self.calls.append(('cancel_order', order_id, depth))
        return await self._next(self.cancel_replies, json_reply(404, {"error": "order not found"}))

    async def fetch_trades(self, limit: int) -> HttpReply:
        self.calls.append(('fetch_trades', limit))
        return await self._next(self.trade_replies, json_reply(200, {"trades": []}))

    async def check_health(self) -> HttpReply:
        self.calls.append(('check_health',))
        return await self._next(self.health_replies, json_reply(200, {"status": "ok"}))

    def close(self) -> None:
        self.closed = True

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    @staticmethod
    async def _next(queue: Deque[Any], default: HttpReply) -> HttpReply:
        item = queue.popleft() if queue else default
        if isinstance(item, asyncio.Future):
            item = await item
        if isinstance(item, BaseException):
            raise item
        return item


class RecordingBus(LocalEventBus):
    """Barramento que também guarda tudo o que foi publicado."""

    __slots__ = ['events']

    def __init__(self):
        super().__init__()
        self.events: List[Tuple[str, Any]] = []

    def publish(self, event_type: str, data: Any = None) -> None:
        self.events.append((event_type, data))
        super().publish(event_type, data)

    def of_type(self, event_type: str) -> List[Any]:
        return [data for name, data in self.events if name == event_type]


class FakeDisplay:
    """Display que só registra o que o coordenador e os handlers pedem."""

    def __init__(self):
        self.renders: List[Tuple[Any, Tuple[str, ...]]] = []
        self.notifications: List[Tuple[str, str]] = []
        self.phases: List[str] = []
        self.is_running = False
        self.on_run = None

    def render_state(self, snapshot, fields) -> None:
        self.renders.append((snapshot, tuple(fields)))

    def notify_event(self, message: str, severity: str = "information") -> None:
        self.notifications.append((message, severity))

    def update_system_phase(self, phase: str) -> None:
        self.phases.append(phase)

    def run(self) -> None:
        if self.on_run:
            self.on_run()

    def exit(self) -> None:
        self.is_running = False


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def event_bus() -> RecordingBus:
    return RecordingBus()


@pytest.fixture
def monitor() -> SyncMonitor:
    return SyncMonitor()


@pytest.fixture
def view_state(event_bus) -> ViewState:
    return ViewState(event_bus=event_bus)


@pytest.fixture
def base_config() -> dict:
    from config.settings import get_default_config
    return get_default_config()
