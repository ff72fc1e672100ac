from __future__ import annotations

import pytest
from textual.widgets import DataTable

from leitor.tui.app import LeitorApp
from leitor.tui.screens.confirm import ConfirmScreen
from leitor.tui.screens.report import ReportScreen
from leitor.utils.store import list_invoices


async def _settle(app, pilot) -> None:
    await app.workers.wait_for_complete()
    await pilot.pause()


def _text(app, selector: str) -> str:
    return app.screen.query_one(selector).render().plain


@pytest.mark.asyncio
async def test_app_launches(leitor_dirs):
    app = LeitorApp()
    async with app.run_test():
        assert app.title == "Leitor NFS-e"
        assert isinstance(app.screen, ReportScreen)


@pytest.mark.asyncio
async def test_empty_store_shows_empty_state(leitor_dirs):
    app = LeitorApp()
    async with app.run_test() as pilot:
        await _settle(app, pilot)
        assert _text(app, "#count-info") == "0"
        assert _text(app, "#provider-info") == "Empresa não identificada"
        assert app.screen.query_one("#empty-state").display
        assert not app.screen.query_one("#invoice-table").display


@pytest.mark.asyncio
async def test_cards_and_table(stored_invoices):
    app = LeitorApp()
    async with app.run_test() as pilot:
        await _settle(app, pilot)
        assert _text(app, "#count-info") == "2"
        assert _text(app, "#servicos-info") == "R$ 1.200,00"
        assert _text(app, "#liquido-info") == "R$ 1.150,00"
        assert _text(app, "#iss-retido-info") == "R$ 50,00"
        assert _text(app, "#iss-nao-retido-info") == "R$ 10,00"
        assert _text(app, "#provider-info") == "ACME SERVICOS, GLOBEX"
        table = app.screen.query_one("#invoice-table", DataTable)
        assert table.row_count == 2
        assert table.get_row_at(0)[0] == "1"
        assert table.get_row_at(0)[1] == "15/03/2024"


@pytest.mark.asyncio
async def test_j_k_move_cursor(stored_invoices):
    app = LeitorApp()
    async with app.run_test() as pilot:
        await _settle(app, pilot)
        table = app.screen.query_one("#invoice-table", DataTable)
        assert table.cursor_row == 0
        await pilot.press("j")
        assert table.cursor_row == 1
        await pilot.press("k")
        assert table.cursor_row == 0


@pytest.mark.asyncio
async def test_reload_picks_up_new_invoices(leitor_dirs):
    from leitor.models.invoice import InvoiceRecord
    from leitor.utils.store import add_invoices

    app = LeitorApp()
    async with app.run_test() as pilot:
        await _settle(app, pilot)
        assert _text(app, "#count-info") == "0"
        add_invoices([InvoiceRecord(numero="9", valor_servicos=5.0)])
        await pilot.press("r")
        await _settle(app, pilot)
        assert _text(app, "#count-info") == "1"
        assert app.screen.query_one("#invoice-table", DataTable).row_count == 1


@pytest.mark.asyncio
async def test_export_writes_spreadsheet(stored_invoices, leitor_dirs):
    _, data_dir = leitor_dirs
    app = LeitorApp()
    async with app.run_test() as pilot:
        await _settle(app, pilot)
        await pilot.press("e")
        await _settle(app, pilot)
    assert len(list((data_dir / "relatorios").glob("Relatorio_NFSe_*.xlsx"))) == 1


@pytest.mark.asyncio
async def test_export_with_empty_store_does_nothing(leitor_dirs):
    _, data_dir = leitor_dirs
    app = LeitorApp()
    async with app.run_test() as pilot:
        await _settle(app, pilot)
        await pilot.press("e")
        await _settle(app, pilot)
    assert not (data_dir / "relatorios").exists()


@pytest.mark.asyncio
async def test_clear_asks_for_confirmation(stored_invoices):
    app = LeitorApp()
    async with app.run_test() as pilot:
        await _settle(app, pilot)
        await pilot.press("c")
        assert isinstance(app.screen, ConfirmScreen)
        await pilot.press("escape")
        assert isinstance(app.screen, ReportScreen)
    assert len(list_invoices()) == 2


@pytest.mark.asyncio
async def test_clear_confirmed(stored_invoices):
    app = LeitorApp()
    async with app.run_test() as pilot:
        await _settle(app, pilot)
        await pilot.press("c")
        await pilot.click("#btn-confirm")
        await pilot.pause()
        assert isinstance(app.screen, ReportScreen)
        assert _text(app, "#count-info") == "0"
        assert app.screen.query_one("#empty-state").display
    assert list_invoices() == []


@pytest.mark.asyncio
async def test_confirm_screen_keys():
    from textual.app import App

    results: list[bool | None] = []

    class _Host(App):
        def on_mount(self) -> None:
            self.push_screen(ConfirmScreen("Tem certeza?"), callback=results.append)

    app = _Host()
    async with app.run_test() as pilot:
        await pilot.press("s")
        await pilot.pause()
    assert results == [True]


@pytest.mark.asyncio
async def test_q_quits(leitor_dirs):
    app = LeitorApp()
    async with app.run_test() as pilot:
        await _settle(app, pilot)
        await pilot.press("q")
    assert app.return_code == 0
