from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from leitor.models.invoice import InvoiceRecord


@dataclass(frozen=True)
class Summary:
    count: int = 0
    servicos: float = 0.0
    liquido: float = 0.0
    csll: float = 0.0
    tributos: float = 0.0
    iss_retido: float = 0.0
    iss_nao_retido: float = 0.0
    providers: tuple[str, ...] = field(default_factory=tuple)


def summarize(records: Iterable[InvoiceRecord]) -> Summary:
    """Aggregate the totals shown on the report cards."""
    count = 0
    servicos = liquido = csll = tributos = iss_retido = iss_nao_retido = 0.0
    providers: dict[str, None] = {}
    for r in records:
        count += 1
        servicos += r.valor_servicos
        liquido += r.valor_liquido_nfse
        csll += r.valor_csll
        tributos += r.val_tot_tributos
        if r.retido:
            iss_retido += r.valor_iss
        else:
            iss_nao_retido += r.valor_iss
        if r.prestador_razao_social:
            providers.setdefault(r.prestador_razao_social)
    return Summary(
        count=count,
        servicos=round(servicos, 2),
        liquido=round(liquido, 2),
        csll=round(csll, 2),
        tributos=round(tributos, 2),
        iss_retido=round(iss_retido, 2),
        iss_nao_retido=round(iss_nao_retido, 2),
        providers=tuple(providers),
    )


def provider_label(summary: Summary) -> str:
    if not summary.providers:
        return "Empresa não identificada"
    return ", ".join(summary.providers)
