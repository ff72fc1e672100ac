from __future__ import annotations

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.screen import Screen
from textual.widgets import Button, DataTable, Footer, Label, Static

from leitor.models.invoice import InvoiceRecord
from leitor.services.summary import Summary, provider_label, summarize
from leitor.utils.formatters import format_brl, format_date_br, format_iss_retido

# (card id, title, Summary attribute)
CARDS = (
    ("servicos-info", "Valor Total", "servicos"),
    ("liquido-info", "Valor Líquido", "liquido"),
    ("tributos-info", "Tributos", "tributos"),
    ("csll-info", "CSLL", "csll"),
    ("iss-retido-info", "ISS Retido", "iss_retido"),
    ("iss-nao-retido-info", "ISS Não Retido", "iss_nao_retido"),
)

TABLE_COLUMNS = ("Número", "Emissão", "Prestador", "Tomador", "Valor", "Líquido", "ISS", "Retido")


class ReportScreen(Screen):
    """Summary cards plus a table of every stored invoice."""

    BINDINGS = [
        Binding("r", "reload", "Recarregar"),
        Binding("e", "export", "Exportar Excel"),
        Binding("c", "clear", "Limpar"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._invoices: list[InvoiceRecord] = []

    def compose(self) -> ComposeResult:
        with Horizontal(id="top-bar"):
            yield Static("Leitor NFS-e", id="app-title")
            yield Static("…", id="provider-info")

        with Horizontal(id="info-bar"):
            with Vertical(id="card-count", classes="info-card"):
                yield Label("Notas", classes="card-title")
                yield Label("…", id="count-info", classes="card-value")
            for card_id, title, _ in CARDS:
                with Vertical(classes="info-card"):
                    yield Label(title, classes="card-title")
                    yield Label("…", id=card_id, classes="card-value")

        with Horizontal(id="action-bar"):
            yield Button("↻ Recarregar", id="btn-reload", tooltip="Recarregar notas armazenadas (r)")
            yield Button(
                "⇓ Exportar Excel",
                id="btn-export",
                variant="success",
                tooltip="Gerar planilha .xlsx com todas as notas (e)",
            )
            yield Button(
                "✕ Limpar",
                id="btn-clear",
                variant="error",
                tooltip="Remover todas as notas armazenadas (c)",
            )

        yield DataTable(id="invoice-table", cursor_type="row")

        yield Static(
            "Nenhuma nota fiscal importada.\n"
            "Use [bold]leitor-nfse importar ARQUIVOS[/bold] para carregar XMLs ou ZIPs "
            "e pressione [bold]r[/bold] para recarregar.",
            id="empty-state",
        )

        yield Footer()

    def on_mount(self) -> None:
        self._load_invoices()
        self.query_one("#invoice-table", DataTable).focus()

    def on_key(self, event: Key) -> None:
        table = self.query_one("#invoice-table", DataTable)
        match event.key:
            case "j":
                table.action_cursor_down()
            case "k":
                table.action_cursor_up()
            case _:
                return
        event.prevent_default()
        event.stop()

    # --- Data loading (threaded) ---

    @work(thread=True, exclusive=True, group="load")
    def _load_invoices(self) -> None:
        from leitor.utils.store import list_invoices

        try:
            invoices = list_invoices()
        except Exception as e:
            self.app.call_from_thread(self.notify, f"Erro ao ler notas: {e}", severity="error")
            invoices = []
        self.app.call_from_thread(self._show_invoices, invoices)

    def _show_invoices(self, invoices: list[InvoiceRecord]) -> None:
        self._invoices = invoices
        summary = summarize(invoices)
        self._update_cards(summary)
        self._populate_table(invoices)

    def _update_cards(self, summary: Summary) -> None:
        self.query_one("#count-info", Label).update(str(summary.count))
        self.query_one("#provider-info", Static).update(provider_label(summary))
        for card_id, _, attr in CARDS:
            self.query_one(f"#{card_id}", Label).update(format_brl(getattr(summary, attr)))

    def _populate_table(self, invoices: list[InvoiceRecord]) -> None:
        table = self.query_one("#invoice-table", DataTable)
        table.clear(columns=True)
        table.add_columns(*TABLE_COLUMNS)

        for inv in invoices:
            retido = "[yellow]Sim[/yellow]" if inv.retido else format_iss_retido(inv.iss_retido)
            table.add_row(
                inv.numero,
                format_date_br(inv.data_emissao),
                inv.prestador_razao_social,
                inv.tomador_razao_social,
                format_brl(inv.valor_servicos),
                format_brl(inv.valor_liquido_nfse),
                format_brl(inv.valor_iss),
                retido,
            )

        has_rows = table.row_count > 0
        table.display = has_rows
        self.query_one("#empty-state", Static).display = not has_rows

    # --- Event handlers ---

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-reload":
                self.action_reload()
            case "btn-export":
                self.action_export()
            case "btn-clear":
                self.action_clear()

    # --- Actions ---

    def action_reload(self) -> None:
        self._load_invoices()
        self.notify("Notas recarregadas", timeout=2)

    def action_export(self) -> None:
        if not self._invoices:
            self.notify("Nenhuma nota para exportar", severity="warning", timeout=3)
            return
        self._export(list(self._invoices))

    @work(thread=True, exclusive=True, group="export")
    def _export(self, invoices: list[InvoiceRecord]) -> None:
        from leitor.config import get_export_dir
        from leitor.services.exporter import default_export_path, export_xlsx

        try:
            path = export_xlsx(invoices, default_export_path(get_export_dir()))
        except Exception as e:
            self.app.call_from_thread(self.notify, f"Erro ao exportar: {e}", severity="error")
            return
        self.app.call_from_thread(self.notify, f"Planilha salva em {path}", timeout=5)

    def action_clear(self) -> None:
        from leitor.tui.screens.confirm import ConfirmScreen

        if not self._invoices:
            self.notify("Nenhuma nota armazenada", severity="warning", timeout=3)
            return
        self.app.push_screen(
            ConfirmScreen(
                f"Remover as {len(self._invoices)} nota(s) armazenada(s)?",
                title="Limpar dados",
                confirm_label="Limpar",
            ),
            callback=self._on_clear_confirmed,
        )

    def _on_clear_confirmed(self, confirmed: bool | None) -> None:
        if not confirmed:
            return
        from leitor.utils.store import clear_invoices

        removed = clear_invoices()
        self._show_invoices([])
        self.notify(f"{removed} nota(s) removida(s)", timeout=3)
