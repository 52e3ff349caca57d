#core/types/trading.py
"""Tipos customizados para o cliente do livro de ofertas."""
from typing import TypedDict, Literal, Optional


class PollerStatistics(TypedDict):
    """Estado de um poller periódico."""
    name: str
    running: bool
    session: int
    cycles_issued: int
    inflight: int
    interval: float


class SubmitterStatistics(TypedDict):
    """Contadores do submissor de ordens."""
    submissions: int
    cancels: int
    inflight: int


class SyncTotals(TypedDict):
    """Totais de sincronização exibidos no cabeçalho."""
    polls_ok: int
    polls_failed: int
    dropped: int
    rejected_stale: int
    orders_accepted: int
    orders_rejected: int
    cancels: int
    cancels_failed: int
    last_poll_latency_ms: Optional[float]


# Type aliases
PollOutcomeType = Literal['ok', 'failed', 'dropped']
