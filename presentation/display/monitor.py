# presentation/display/monitor.py
"""Display do livro de ofertas usando Textual - só lê o ViewState."""

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.widgets import Button, Footer, Header, Input, Label, Select, Static
from textual.css.query import NoMatches

from typing import Any, Iterable, Optional
import logging

from application.orchestration.coordinator import SessionNotMountedError
from application.services.sync.order_submitter import InvalidOrderError, OrderSubmitter
from application.state.view_state import ViewSnapshot
from config.settings import build_base_url
from core.formatters.book_formatter import BookFormatter

logger = logging.getLogger(__name__)

ALL_FIELDS = (
    'book', 'poll_error', 'last_order_id', 'last_trades', 'submit_error',
    'submitting', 'recent_trades', 'tape_error', 'last_cancelled_order_id'
)


class TradingSurface(Container):
    """
    Superfície da tela: formulário, último resultado, livro e fita.
    
    A montagem deste widget inicia a sessão de polling e a desmontagem a
    encerra. Nenhuma regra de negócio aqui: só leitura do snapshot.
    """

    def __init__(self, coordinator: Any, formatter: BookFormatter, **kwargs):
        super().__init__(**kwargs)
        self.coordinator = coordinator
        self.formatter = formatter
        self.form_defaults = coordinator.config.get('form', {})

    def compose(self) -> ComposeResult:
        with Horizontal(id="top-row"):
            with Vertical(classes="panel", id="form-panel"):
                yield Label("📝 NOVA ORDEM", classes="panel-title")
                yield Label("Lado")
                yield Select(
                    [("buy", "buy"), ("sell", "sell")],
                    value=self.form_defaults.get('side', 'buy'),
                    allow_blank=False,
                    id="side"
                )
                yield Label("Preço (centavos)")
                yield Input(value=str(self.form_defaults.get('price', 10200)), type="number", id="price")
                yield Label("Quantidade")
                yield Input(value=str(self.form_defaults.get('qty', 1)), type="number", id="qty")
                yield Button(self.formatter.submit_label(False), id="submit-button", variant="primary")
                yield Static("", id="submit-error")
            
            with Vertical(classes="panel", id="result-panel"):
                yield Label("📄 ÚLTIMO RESULTADO", classes="panel-title")
                yield Static(self.formatter.order_id_text(None), id="order-id")
                yield Static("", id="cancelled-id")
                yield Label("Negócios", classes="dim")
                yield Static("", id="last-trades")
        
        with Vertical(classes="panel", id="book-panel"):
            yield Label("📊 LIVRO DE OFERTAS", classes="panel-title")
            yield Static("", id="poll-error")
            yield Static("", id="book-summary")
            with Horizontal(id="book-sides"):
                yield Static("", id="bids", classes="column")
                yield Static("", id="asks", classes="column")
        
        with VerticalScroll(classes="panel", id="tape-panel"):
            yield Label("🧾 NEGÓCIOS RECENTES", classes="panel-title")
            yield Static("", id="tape-error")
            yield Static("", id="tape")

    def on_mount(self) -> None:
        """Montagem da tela: cria a sessão e começa o polling."""
        view_state = self.coordinator.mount()
        self.render_state(view_state.snapshot(), ALL_FIELDS)

    def on_unmount(self) -> None:
        self.coordinator.unmount()

    # --- Entrada do usuário ---

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "submit-button":
            self.submit_form()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.submit_form()

    def submit_form(self) -> None:
        """Lê o formulário e dispara a submissão (nunca duas ao mesmo tempo pela tela)."""
        view_state = self.coordinator.view_state
        if view_state is None or view_state.submitting:
            return
        
        try:
            request = OrderSubmitter.build_request(
                self.query_one("#side", Select).value,
                self.query_one("#price", Input).value,
                self.query_one("#qty", Input).value,
            )
        except InvalidOrderError as e:
            self.app.notify(str(e), severity="error")
            return
        
        self.coordinator.submit(request)

    # --- Renderização ---

    def render_state(self, snapshot: ViewSnapshot, fields: Iterable[str]) -> None:
        """Atualiza os painéis correspondentes aos campos alterados."""
        changed = set(fields)
        fmt = self.formatter
        
        try:
            if 'submitting' in changed:
                button = self.query_one("#submit-button", Button)
                button.disabled = snapshot.submitting
                button.label = fmt.submit_label(snapshot.submitting)
            
            if 'submit_error' in changed:
                self.query_one("#submit-error", Static).update(fmt.error_text("", snapshot.submit_error))
            
            if 'last_order_id' in changed:
                self.query_one("#order-id", Static).update(fmt.order_id_text(snapshot.last_order_id))
            
            if 'last_cancelled_order_id' in changed and snapshot.last_cancelled_order_id is not None:
                self.query_one("#cancelled-id", Static).update(
                    f"[yellow]Cancelada: #{snapshot.last_cancelled_order_id}[/yellow]"
                )
            
            if 'last_trades' in changed:
                trades_widget = self.query_one("#last-trades", Static)
                if snapshot.last_trades:
                    trades_widget.update(fmt.trades_table(snapshot.last_trades))
                else:
                    trades_widget.update("[dim](nenhum)[/dim]")
            
            if 'poll_error' in changed:
                self.query_one("#poll-error", Static).update(fmt.error_text("Erro: ", snapshot.poll_error))
            
            if 'book' in changed:
                self.query_one("#book-summary", Static).update(fmt.book_summary(snapshot.book))
                self.query_one("#bids", Static).update(fmt.levels_table(snapshot.book.bids, 'bids'))
                self.query_one("#asks", Static).update(fmt.levels_table(snapshot.book.asks, 'asks'))
            
            if 'tape_error' in changed:
                self.query_one("#tape-error", Static).update(fmt.error_text("Erro: ", snapshot.tape_error))
            
            if 'recent_trades' in changed:
                self.query_one("#tape", Static).update(
                    fmt.trades_table(snapshot.recent_trades, show_taker=True)
                )
        except NoMatches:
            # tela ainda sendo montada ou já desmontada
            pass


class OrderBookMonitorApp(App):
    """Aplicação Textual principal do cliente."""
    
    CSS = """
    Screen {
        background: $surface;
    }
    #header-container {
        height: 3;
        background: $panel;
        border: solid $primary;
        content-align: center middle;
    }
    #top-row {
        height: auto;
    }
    .panel {
        border: solid $primary;
        padding: 0 1;
        margin: 0 1;
    }
    #form-panel {
        width: 40;
        height: auto;
    }
    #result-panel {
        width: 1fr;
        height: auto;
    }
    #book-panel {
        height: auto;
        border: solid $success;
    }
    #book-sides {
        height: auto;
    }
    .column {
        width: 1fr;
    }
    #tape-panel {
        height: 1fr;
    }
    #submit-button {
        width: 100%;
        margin-top: 1;
    }
    .panel-title {
        text-style: bold;
        color: $warning;
        margin-bottom: 1;
    }
    .dim {
        color: $text-disabled;
    }
    """
    
    BINDINGS = [
        ("q", "quit", "Sair"),
        ("x", "cancel_last", "Cancelar última ordem"),
    ]
    
    def __init__(self, coordinator: Any, **kwargs):
        super().__init__(**kwargs)
        self.coordinator = coordinator
        self.formatter = BookFormatter()
        self.base_url = build_base_url(coordinator.config)
    
    def compose(self) -> ComposeResult:
        """Cria o layout da interface."""
        yield Header()
        
        with Container(id="header-container"):
            yield Label("", id="header-info")
        
        yield TradingSurface(self.coordinator, self.formatter, id="surface")
        
        yield Footer()
    
    def on_mount(self) -> None:
        """Chamado quando a aplicação é montada."""
        self.title = "Order Book Monitor"
        self.sub_title = self.base_url
        self.update_header()
        self.set_interval(1.0, self.update_header)
    
    def update_header(self) -> None:
        """Atualiza o cabeçalho com os totais de sincronização."""
        header_text = self.formatter.header_text(self.coordinator.monitor.get_totals(), self.base_url)
        try:
            self.query_one("#header-info", Label).update(header_text)
        except NoMatches:
            pass
    
    # --- Chamados pelos handlers ---

    def render_state(self, snapshot: ViewSnapshot, fields: Iterable[str]) -> None:
        try:
            self.query_one(TradingSurface).render_state(snapshot, fields)
        except NoMatches:
            pass
    
    def notify_event(self, message: str, severity: str = "information") -> None:
        self.notify(message, severity=severity)
    
    def update_system_phase(self, phase: str) -> None:
        self.sub_title = f"{self.base_url} • {phase}"
    
    # --- Ações ---

    async def action_quit(self) -> None:
        """Sai depois de esperar ordens e ciclos em andamento (até o timeout configurado)."""
        await self.coordinator.drain()
        self.exit()

    def action_cancel_last(self) -> None:
        """Cancela a última ordem aceita na sessão."""
        try:
            task: Optional[Any] = self.coordinator.cancel_last_order()
        except SessionNotMountedError:
            return
        if task is None:
            self.notify("Nenhuma ordem para cancelar", severity="warning")
