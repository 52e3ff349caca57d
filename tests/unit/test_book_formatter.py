"""Testes do formatador de livro e negócios."""
from rich.table import Table

from core.entities.book import Book
from core.entities.trade import Trade
from core.formatters.book_formatter import NONE_TEXT, BookFormatter
from core.monitoring.sync_monitor import SyncMonitor
from tests.conftest import book_payload

formatter = BookFormatter()


def test_levels_table_keeps_server_order():
    book = Book.model_validate(book_payload(asks=[(10300, 5), (10200, 1)]))

    table = formatter.levels_table(book.asks, 'asks')

    assert isinstance(table, Table)
    assert table.row_count == 2
    assert list(table.columns[0].cells) == ["10300", "10200"]


def test_empty_side_has_placeholder_row():
    table = formatter.levels_table([], 'bids')
    assert table.row_count == 1


def test_trades_table_optional_taker_column():
    trades = [Trade(price=10200, qty=3, taker_order_id=42, maker_order_id=7)]

    short = formatter.trades_table(trades)
    full = formatter.trades_table(trades, show_taker=True)

    assert len(short.columns) == 3
    assert len(full.columns) == 4
    assert list(short.columns[0].cells) == ["px 10200"]
    assert list(short.columns[2].cells) == ["maker 7"]


def test_book_summary():
    book = Book.model_validate(book_payload(bids=[(10100, 1)], asks=[(10300, 1)]))
    assert "Spread: 200" in formatter.book_summary(book)
    assert "Spread: —" in formatter.book_summary(Book.empty())


def test_texts():
    assert formatter.order_id_text(None) == f"ID da ordem: {NONE_TEXT}"
    assert formatter.order_id_text(42) == "ID da ordem: 42"
    assert formatter.submit_label(True) == "Enviando..."
    assert formatter.submit_label(False) == "Enviar"


def test_error_text_escapes_markup():
    assert formatter.error_text("Erro: ", None) == ""
    text = formatter.error_text("", "[bold]price[/bold] must be positive")
    assert "\\[bold]" in text


def test_header_text_with_and_without_latency():
    monitor = SyncMonitor()
    assert "Latência: —" in formatter.header_text(monitor.get_totals(), "http://localhost:8080")

    monitor.record_poll('ok', 12.4)
    monitor.record_order(accepted=False)
    header = formatter.header_text(monitor.get_totals(), "http://localhost:8080")
    assert "12ms" in header
    assert "0 aceitas / 1 rejeitadas" in header
