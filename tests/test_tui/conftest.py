from __future__ import annotations

import pytest

from leitor.models.invoice import InvoiceRecord
from leitor.utils.store import add_invoices


@pytest.fixture
def stored_invoices(leitor_dirs):
    """Populate the isolated store with two invoices from two providers."""
    records = [
        InvoiceRecord(
            id="nfse-1",
            numero="1",
            data_emissao="2024-03-15",
            valor_servicos=1000.0,
            valor_liquido_nfse=950.0,
            valor_iss=50.0,
            iss_retido=1,
            prestador_razao_social="ACME SERVICOS",
            prestador_cnpj="11222333000181",
        ),
        InvoiceRecord(
            id="nfse-2",
            numero="2",
            valor_servicos=200.0,
            valor_liquido_nfse=200.0,
            valor_iss=10.0,
            prestador_razao_social="GLOBEX",
            prestador_cnpj="55444333000122",
        ),
    ]
    add_invoices(records)
    return records
