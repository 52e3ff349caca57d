#core/types/init.py 
"""
Tipos customizados do cliente.
TypedDict e aliases que não são entidades.
"""

from .trading import (
    PollerStatistics,
    SubmitterStatistics,
    SyncTotals,
    PollOutcomeType
)

__all__ = [
    'PollerStatistics',
    'SubmitterStatistics',
    'SyncTotals',
    'PollOutcomeType'
]
