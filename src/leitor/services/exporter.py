from __future__ import annotations

import logging
import os
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from leitor.models.invoice import InvoiceRecord
from leitor.utils.formatters import format_date_br, format_iss_retido

logger = logging.getLogger(__name__)

SHEET_TITLE = "Dados NFSe"
TOTAL_LABEL = "TOTAL GERAL"
MONEY_FORMAT = '"R$" #,##0.00'

# (header, value getter, summed in total row, width)
Column = tuple[str, Callable[[InvoiceRecord], Any], bool, int]

COLUMNS: tuple[Column, ...] = (
    ("Número", lambda r: r.numero, False, 12),
    ("Data Emissão", lambda r: format_date_br(r.data_emissao), False, 20),
    ("Item Lista Serviço", lambda r: r.item_lista_servico, False, 14),
    ("Cód. Trib. Município", lambda r: r.codigo_tributacao_municipio, False, 16),
    (
        "Descrição Cód. Trib. Município",
        lambda r: r.descricao_codigo_tributacao_municipio,
        False,
        40,
    ),
    ("Valor Total Nota", lambda r: r.valor_servicos, True, 16),
    ("Valor Líquido", lambda r: r.valor_liquido_nfse, True, 16),
    ("ISS", lambda r: r.valor_iss, True, 14),
    ("ISS Retido", lambda r: format_iss_retido(r.iss_retido), False, 10),
    ("PIS", lambda r: r.valor_pis, True, 14),
    ("COFINS", lambda r: r.valor_cofins, True, 14),
    ("CSLL", lambda r: r.valor_csll, True, 14),
    ("IR", lambda r: r.valor_ir, True, 14),
    ("INSS", lambda r: r.valor_inss, True, 14),
    ("Total Tributos", lambda r: r.val_tot_tributos, True, 16),
    ("BC PIS/COFINS", lambda r: r.v_bc_pis_cofins, True, 16),
    ("BC IBS/CBS (Novo)", lambda r: r.v_bc_ibs_cbs, True, 16),
    ("Tomador", lambda r: r.tomador_razao_social, False, 36),
    ("CNPJ Tomador", lambda r: r.tomador_cpf_cnpj, False, 20),
    ("Prestador", lambda r: r.prestador_razao_social, False, 36),
)

_HEADER_FONT = Font(bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
_TOTAL_FONT = Font(bold=True)
_TOTAL_FILL = PatternFill(start_color="D9E2F3", end_color="D9E2F3", fill_type="solid")


def default_export_path(directory: Path) -> Path:
    ts = datetime.now().strftime("%Y%m%dT%H%M%S")
    return directory / f"Relatorio_NFSe_{ts}.xlsx"


def _total_row(records: Sequence[InvoiceRecord]) -> list[Any]:
    row: list[Any] = []
    for i, (_, getter, summed, _) in enumerate(COLUMNS):
        if i == 0:
            row.append(TOTAL_LABEL)
        elif summed:
            row.append(round(sum(getter(r) for r in records), 2))
        else:
            row.append("")
    return row


def build_workbook(records: Sequence[InvoiceRecord]) -> Workbook:
    """Build the report workbook: one row per invoice plus a totals row."""
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    ws.append([header for header, _, _, _ in COLUMNS])
    for cell in ws[1]:
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)

    for r in records:
        ws.append([getter(r) for _, getter, _, _ in COLUMNS])
    ws.append(_total_row(records))
    total_idx = ws.max_row
    for cell in ws[total_idx]:
        cell.font = _TOTAL_FONT
        cell.fill = _TOTAL_FILL

    for col_idx, (_, _, summed, width) in enumerate(COLUMNS, start=1):
        letter = get_column_letter(col_idx)
        ws.column_dimensions[letter].width = width
        if summed:
            for row_idx in range(2, total_idx + 1):
                ws.cell(row=row_idx, column=col_idx).number_format = MONEY_FORMAT

    ws.freeze_panes = "A2"
    return wb


def export_xlsx(records: Sequence[InvoiceRecord], path: Path) -> Path:
    """Write the spreadsheet report to *path* (atomic write)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    wb = build_workbook(records)
    tmp = path.with_suffix(".tmp")
    wb.save(tmp)
    os.replace(tmp, path)
    logger.info("Relatorio exportado: %s (%d nota(s))", path, len(records))
    return path
