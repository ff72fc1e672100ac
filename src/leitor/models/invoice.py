from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any

ISS_RETIDO = 1
ISS_NAO_RETIDO = 2


def _key(name: str) -> Any:
    return {"key": name}


@dataclass(frozen=True)
class InvoiceRecord:
    """One NFS-e as extracted from a source document.

    Attributes are snake_case; the ``key`` metadata holds the canonical
    record key used by the store and the exporter.
    """

    id: str = field(default="", metadata=_key("id"))
    numero: str = field(default="", metadata=_key("numero"))
    codigo_verificacao: str = field(default="", metadata=_key("codigoVerificacao"))
    data_emissao: str = field(default="", metadata=_key("dataEmissao"))

    valor_servicos: float = field(default=0.0, metadata=_key("valorServicos"))
    valor_deducoes: float = field(default=0.0, metadata=_key("valorDeducoes"))
    valor_pis: float = field(default=0.0, metadata=_key("valorPis"))
    valor_cofins: float = field(default=0.0, metadata=_key("valorCofins"))
    valor_inss: float = field(default=0.0, metadata=_key("valorInss"))
    valor_ir: float = field(default=0.0, metadata=_key("valorIr"))
    valor_csll: float = field(default=0.0, metadata=_key("valorCsll"))
    val_tot_tributos: float = field(default=0.0, metadata=_key("valTotTributos"))
    v_bc_pis_cofins: float = field(default=0.0, metadata=_key("vBCPisCofins"))
    v_bc_ibs_cbs: float = field(default=0.0, metadata=_key("vBC_IBSCBS"))
    outras_retencoes: float = field(default=0.0, metadata=_key("outrasRetencoes"))
    valor_iss: float = field(default=0.0, metadata=_key("valorIss"))
    iss_retido: int = field(default=ISS_NAO_RETIDO, metadata=_key("issRetido"))  # 1 = sim, 2 = nao
    aliquota: float = field(default=0.0, metadata=_key("aliquota"))
    desconto_incondicionado: float = field(default=0.0, metadata=_key("descontoIncondicionado"))
    desconto_condicionado: float = field(default=0.0, metadata=_key("descontoCondicionado"))
    base_calculo: float = field(default=0.0, metadata=_key("baseCalculo"))
    valor_liquido_nfse: float = field(default=0.0, metadata=_key("valorLiquidoNfse"))

    item_lista_servico: str = field(default="", metadata=_key("itemListaServico"))
    codigo_cnae: str = field(default="", metadata=_key("codigoCnae"))
    codigo_tributacao_municipio: str = field(
        default="", metadata=_key("codigoTributacaoMunicipio")
    )
    descricao_codigo_tributacao_municipio: str = field(
        default="", metadata=_key("descricaoCodigoTributacaoMunicipio")
    )
    discriminacao: str = field(default="", metadata=_key("discriminacao"))

    prestador_razao_social: str = field(default="", metadata=_key("prestadorRazaoSocial"))
    prestador_cnpj: str = field(default="", metadata=_key("prestadorCnpj"))
    tomador_razao_social: str = field(default="", metadata=_key("tomadorRazaoSocial"))
    tomador_cpf_cnpj: str = field(default="", metadata=_key("tomadorCpfCnpj"))

    codigo_municipio: str = field(default="", metadata=_key("codigoMunicipio"))
    uf: str = field(default="", metadata=_key("uf"))

    def __post_init__(self) -> None:
        if self.iss_retido != ISS_RETIDO:
            object.__setattr__(self, "iss_retido", ISS_NAO_RETIDO)

    @property
    def dedup_key(self) -> tuple[str, str]:
        """Identity used by callers to drop the same invoice imported twice."""
        return (self.numero, self.prestador_cnpj)

    @property
    def retido(self) -> bool:
        return self.iss_retido == ISS_RETIDO

    def to_dict(self) -> dict[str, Any]:
        """Return the record keyed by canonical names, in declaration order."""
        return {f.metadata["key"]: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> InvoiceRecord:
        """Create a record from canonical keys, defaulting and coercing missing values."""
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            value = d.get(f.metadata["key"])
            if value is None:
                continue
            if f.type == "float":
                kwargs[f.name] = _to_float(value)
            elif f.type == "int":
                kwargs[f.name] = _to_int(value)
            else:
                kwargs[f.name] = str(value)
        return cls(**kwargs)


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return ISS_NAO_RETIDO


def canonical_keys() -> list[str]:
    """Canonical record keys in declaration order."""
    return [f.metadata["key"] for f in fields(InvoiceRecord)]


def field_names() -> list[str]:
    return [f.name for f in fields(InvoiceRecord)]
