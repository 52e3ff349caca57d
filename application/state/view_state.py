#application/state/view_state.py
"""
Estado observável da tela - ponto único de escrita do poller e do submissor.

Toda escrita acontece no loop da interface, de forma síncrona, dentro do
callback que a decidiu; não há await entre decidir e escrever. Cada mudança
é anunciada no barramento como VIEW_STATE_CHANGED com os campos alterados.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from core.contracts.messaging import ISystemEventBus
from core.entities.book import Book
from core.entities.order import CancelResult, OrderResult
from core.entities.trade import Trade

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewSnapshot:
    """Cópia imutável do estado entregue ao renderizador."""
    book: Book
    poll_error: Optional[str]
    last_order_id: Optional[int]
    last_trades: Tuple[Trade, ...]
    submit_error: Optional[str]
    submitting: bool
    recent_trades: Tuple[Trade, ...]
    tape_error: Optional[str]
    last_cancelled_order_id: Optional[int]


class ViewState:
    """
    Estado compartilhado da tela, criado vazio na montagem.
    
    Reconciliação do livro:
    - modo padrão (última escrita vence): o snapshot que COMPLETA por último
      sobrescreve o livro, seja de um poll ou de uma submissão;
    - com reject_stale_snapshots=True, cada requisição recebe um carimbo
      crescente na emissão (issue_stamp) e um snapshot com carimbo menor que
      o último aplicado é ignorado.
    """

    def __init__(self, event_bus: Optional[ISystemEventBus] = None,
                 reject_stale_snapshots: bool = False):
        self.event_bus = event_bus
        self.reject_stale_snapshots = reject_stale_snapshots
        
        self.book: Book = Book.empty()
        self.poll_error: Optional[str] = None
        self.last_order_id: Optional[int] = None
        self.last_trades: List[Trade] = []
        self.submit_error: Optional[str] = None
        self.submitting: bool = False
        
        self.recent_trades: List[Trade] = []
        self.tape_error: Optional[str] = None
        self.last_cancelled_order_id: Optional[int] = None
        
        self._issued_stamps = 0
        self._book_stamp = 0

    # ------------------------------------------------------------------
    # Carimbos
    # ------------------------------------------------------------------

    def issue_stamp(self) -> int:
        """Carimbo monotônico tirado no momento em que a requisição é emitida."""
        self._issued_stamps += 1
        return self._issued_stamps

    @property
    def book_stamp(self) -> int:
        """Carimbo do snapshot atualmente exibido (0 = livro inicial vazio)."""
        return self._book_stamp

    def _write_book(self, book: Book, stamp: int) -> bool:
        if self.reject_stale_snapshots and stamp < self._book_stamp:
            logger.debug(f"Snapshot #{stamp} ignorado (exibido: #{self._book_stamp})")
            return False
        self.book = book
        self._book_stamp = max(stamp, self._book_stamp)
        return True

    # ------------------------------------------------------------------
    # Polling do livro
    # ------------------------------------------------------------------

    def apply_poll_success(self, book: Book, stamp: int) -> bool:
        """
        Aplica o resultado de um poll bem-sucedido.
        
        Returns:
            False se o snapshot foi descartado por ser mais antigo
        """
        applied = self._write_book(book, stamp)
        self.poll_error = None
        self._notify('book', 'poll_error')
        return applied

    def apply_poll_failure(self, message: str) -> None:
        """Mantém o livro anterior e registra o erro do poll."""
        self.poll_error = message
        self._notify('poll_error')

    # ------------------------------------------------------------------
    # Submissão / cancelamento
    # ------------------------------------------------------------------

    def begin_submission(self) -> None:
        self.submitting = True
        self.submit_error = None
        self._notify('submitting', 'submit_error')

    def end_submission(self) -> None:
        self.submitting = False
        self._notify('submitting')

    def fail_submission(self, message: str) -> None:
        """Falha nunca toca no livro, no id da ordem ou nos negócios."""
        self.submit_error = message
        self._notify('submit_error')

    def apply_order_result(self, result: OrderResult, stamp: int) -> bool:
        """Substitui (não acumula) os negócios e sobrescreve o livro."""
        self.last_order_id = result.order_id
        self.last_trades = list(result.trades)
        applied = self._write_book(result.book, stamp)
        self._notify('last_order_id', 'last_trades', 'book')
        return applied

    def apply_cancel_result(self, result: CancelResult, stamp: int) -> bool:
        self.last_cancelled_order_id = result.order_id
        applied = self._write_book(result.book, stamp)
        self._notify('last_cancelled_order_id', 'book')
        return applied

    # ------------------------------------------------------------------
    # Fita de negócios
    # ------------------------------------------------------------------

    def apply_tape(self, trades: List[Trade]) -> None:
        self.recent_trades = list(trades)
        self.tape_error = None
        self._notify('recent_trades', 'tape_error')

    def apply_tape_failure(self, message: str) -> None:
        self.tape_error = message
        self._notify('tape_error')

    # ------------------------------------------------------------------

    def snapshot(self) -> ViewSnapshot:
        return ViewSnapshot(
            book=self.book,
            poll_error=self.poll_error,
            last_order_id=self.last_order_id,
            last_trades=tuple(self.last_trades),
            submit_error=self.submit_error,
            submitting=self.submitting,
            recent_trades=tuple(self.recent_trades),
            tape_error=self.tape_error,
            last_cancelled_order_id=self.last_cancelled_order_id,
        )

    def _notify(self, *fields: str) -> None:
        if self.event_bus:
            self.event_bus.publish("VIEW_STATE_CHANGED", fields)
