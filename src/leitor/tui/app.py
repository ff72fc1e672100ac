from __future__ import annotations

from textual.app import App
from textual.binding import Binding


class LeitorApp(App):
    """Leitor NFS-e TUI application."""

    CSS_PATH = "app.tcss"
    TITLE = "Leitor NFS-e"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("q", "quit", "Sair", priority=True),
    ]

    def on_mount(self) -> None:
        from leitor.tui.screens.report import ReportScreen

        self.push_screen(ReportScreen())
