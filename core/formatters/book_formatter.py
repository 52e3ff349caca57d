#core/formatters/book_formatter.py
"""Formatador do livro e dos negócios em renderizáveis do rich."""
from typing import Iterable, Optional, Sequence

from rich.markup import escape
from rich.table import Table
from rich.text import Text

from core.entities.book import Book, PriceLevel
from core.entities.trade import Trade
from core.types.trading import SyncTotals

NONE_TEXT = "(nenhuma)"


class BookFormatter:
    """Converte snapshots do ViewState em tabelas e textos para a tela."""
    
    __slots__ = []  # Sem estado

    def levels_table(self, levels: Sequence[PriceLevel], side: str) -> Table:
        """
        Tabela de um lado do livro, na ordem recebida do servidor.
        
        Args:
            levels: Níveis de preço (melhor primeiro)
            side: 'bids' ou 'asks'
        """
        is_bid = side == 'bids'
        color = "green" if is_bid else "red"
        
        table = Table(
            title=Text("Compra" if is_bid else "Venda", style=f"bold {color}"),
            expand=True,
            show_edge=False,
            pad_edge=False
        )
        table.add_column("Preço", justify="right", style=color)
        table.add_column("Qtd", justify="right")
        
        for level in levels:
            table.add_row(str(level.price), f"{level.qty:,}")
        
        if not levels:
            table.add_row(Text("—", style="dim"), Text("—", style="dim"))
        
        return table

    def trades_table(self, trades: Iterable[Trade], show_taker: bool = False) -> Table:
        """Tabela de negócios (px / qty / maker e, opcionalmente, taker)."""
        table = Table(expand=True, show_edge=False, pad_edge=False)
        table.add_column("Preço", justify="right")
        table.add_column("Qtd", justify="right")
        if show_taker:
            table.add_column("Taker", justify="right", style="dim")
        table.add_column("Maker", justify="right", style="dim")
        
        for trade in trades:
            row = [f"px {trade.price}", f"qty {trade.qty}"]
            if show_taker:
                row.append(str(trade.taker_order_id))
            row.append(f"maker {trade.maker_order_id}")
            table.add_row(*row)
        
        return table

    def book_summary(self, book: Book) -> str:
        """Linha com melhor compra, melhor venda e spread."""
        bid = book.best_bid if book.best_bid is not None else "—"
        ask = book.best_ask if book.best_ask is not None else "—"
        spread = book.spread if book.spread is not None else "—"
        return f"Melhor compra: [green]{bid}[/green]  •  Melhor venda: [red]{ask}[/red]  •  Spread: {spread}"

    def order_id_text(self, order_id: Optional[int]) -> str:
        return f"ID da ordem: {order_id if order_id is not None else NONE_TEXT}"

    def submit_label(self, submitting: bool) -> str:
        return "Enviando..." if submitting else "Enviar"

    def error_text(self, prefix: str, message: Optional[str]) -> str:
        """Texto de erro em vermelho, ou vazio quando não há erro."""
        if not message:
            return ""
        return f"[red]{prefix}{escape(message)}[/red]"

    def header_text(self, totals: SyncTotals, base_url: str) -> str:
        latency = totals['last_poll_latency_ms']
        latency_text = f"{latency:.0f}ms" if latency is not None else "—"
        return (
            f"[bold cyan]{base_url}[/bold cyan]  •  "
            f"Polls: [green]{totals['polls_ok']:,}[/green] / [red]{totals['polls_failed']:,}[/red]  •  "
            f"Latência: {latency_text}  •  "
            f"Ordens: {totals['orders_accepted']:,} aceitas / {totals['orders_rejected']:,} rejeitadas"
        )
