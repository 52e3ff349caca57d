# core/monitoring/sync_monitor.py
"""Monitor de sincronização - contabiliza ciclos de polling e submissões."""
import threading
import logging
from collections import defaultdict
from typing import Optional

from core.types.trading import PollOutcomeType, SyncTotals

logger = logging.getLogger(__name__)


class SyncMonitor:
    """
    Contabiliza o resultado dos ciclos de polling e das submissões.
    
    As escritas acontecem no loop da interface, mas a leitura pode vir de
    outra thread (log de encerramento), então os contadores ficam sob lock.
    """
    
    def __init__(self):
        self.counters = defaultdict(int)
        self.last_poll_latency_ms: Optional[float] = None
        self._lock = threading.Lock()
        
        logger.info("SyncMonitor inicializado")
        
    def record_poll(self, outcome: PollOutcomeType, latency_ms: Optional[float] = None) -> None:
        """Registra o desfecho de um ciclo de polling."""
        with self._lock:
            self.counters[f'poll_{outcome}'] += 1
            if latency_ms is not None and outcome != 'dropped':
                self.last_poll_latency_ms = latency_ms

    def record_stale_rejection(self) -> None:
        """Snapshot ignorado por carimbo mais antigo que o último aplicado."""
        with self._lock:
            self.counters['rejected_stale'] += 1

    def record_order(self, accepted: bool) -> None:
        with self._lock:
            self.counters['orders_accepted' if accepted else 'orders_rejected'] += 1

    def record_cancel(self, succeeded: bool = True) -> None:
        with self._lock:
            self.counters['cancels' if succeeded else 'cancels_failed'] += 1

    def get_totals(self) -> SyncTotals:
        """Retorna uma cópia dos totais."""
        with self._lock:
            return {
                'polls_ok': self.counters.get('poll_ok', 0),
                'polls_failed': self.counters.get('poll_failed', 0),
                'dropped': self.counters.get('poll_dropped', 0),
                'rejected_stale': self.counters.get('rejected_stale', 0),
                'orders_accepted': self.counters.get('orders_accepted', 0),
                'orders_rejected': self.counters.get('orders_rejected', 0),
                'cancels': self.counters.get('cancels', 0),
                'cancels_failed': self.counters.get('cancels_failed', 0),
                'last_poll_latency_ms': self.last_poll_latency_ms,
            }

    def log_summary(self) -> None:
        totals = self.get_totals()
        logger.info(
            f"SyncMonitor - polls: {totals['polls_ok']:,} ok / {totals['polls_failed']:,} falhas "
            f"/ {totals['dropped']:,} descartados, ordens: {totals['orders_accepted']:,} aceitas "
            f"/ {totals['orders_rejected']:,} rejeitadas, cancelamentos: {totals['cancels']:,} ok "
            f"/ {totals['cancels_failed']:,} falhas, snapshots antigos ignorados: {totals['rejected_stale']:,}"
        )
