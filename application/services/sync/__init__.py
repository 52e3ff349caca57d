"""
Núcleo de sincronização do cliente.
Polling do livro, submissão de ordens e fita de negócios.
"""
from .poller import IntervalPoller
from .book_poller import BookPoller
from .tape_poller import TradeTapePoller
from .order_submitter import OrderSubmitter, InvalidOrderError

__all__ = [
    'IntervalPoller',
    'BookPoller',
    'TradeTapePoller',
    'OrderSubmitter',
    'InvalidOrderError'
]
