"""NFS-e dialects and their field-resolution tables.

Each table maps an ``InvoiceRecord`` attribute to an ordered tuple of
``Candidate(scope, tag)`` pairs. ``scope`` names a sub-node located by the
dialect traversal in ``extractor``; the first candidate yielding non-empty
text wins. Order goes from the most specific location to the least.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from lxml import etree

from leitor.config import NFSE_NS
from leitor.utils.xml_lookup import find_all


class Dialect(str, Enum):
    GISS = "giss"  # ABRASF / GISS municipal layout
    NATIONAL = "nacional"  # Padrao Nacional (SPED)


class Candidate(NamedTuple):
    scope: str
    tag: str


GISS_INVOICE_TAG = "InfNfse"
NATIONAL_INVOICE_TAG = "infNFSe"


def detect_dialect(root: etree._Element) -> Dialect:
    """Classify a parsed document once, before any node is extracted.

    Any ``infNFSe`` element, namespaced or not, makes the document National,
    even when ABRASF tags are also present. Everything else is GISS/ABRASF.
    """
    if next(root.iter(f"{{{NFSE_NS}}}{NATIONAL_INVOICE_TAG}"), None) is not None:
        return Dialect.NATIONAL
    if find_all(root, NATIONAL_INVOICE_TAG):
        return Dialect.NATIONAL
    return Dialect.GISS


def _c(scope: str, tag: str) -> Candidate:
    return Candidate(scope, tag)


GISS_FIELDS: dict[str, tuple[Candidate, ...]] = {
    "numero": (_c("node", "Numero"),),
    "codigo_verificacao": (_c("node", "CodigoVerificacao"),),
    "data_emissao": (_c("node", "DataEmissao"),),
    "valor_servicos": (
        _c("valores_dps", "ValorServicos"),
        _c("valores_nfse", "ValorServicos"),
        _c("node", "ValorServicos"),
    ),
    "valor_deducoes": (_c("valores_dps", "ValorDeducoes"),),
    "valor_pis": (_c("valores_dps", "ValorPis"), _c("piscofins", "vPis")),
    "valor_cofins": (_c("valores_dps", "ValorCofins"), _c("piscofins", "vCofins")),
    "valor_inss": (_c("valores_dps", "ValorInss"),),
    "valor_ir": (_c("valores_dps", "ValorIr"),),
    "valor_csll": (_c("valores_dps", "ValorCsll"),),
    "val_tot_tributos": (_c("valores_dps", "ValTotTributos"),),
    "v_bc_pis_cofins": (_c("piscofins", "vBCPisCofins"),),
    "v_bc_ibs_cbs": (_c("ibscbs_valores", "vBC"),),
    "outras_retencoes": (_c("valores_dps", "OutrasRetencoes"),),
    "valor_iss": (_c("valores_nfse", "ValorIss"), _c("valores_dps", "ValorIss")),
    "iss_retido": (
        _c("valores_nfse", "IssRetido"),
        _c("valores_dps", "IssRetido"),
        _c("servico", "IssRetido"),
    ),
    "aliquota": (_c("valores_nfse", "Aliquota"), _c("valores_dps", "Aliquota")),
    "desconto_incondicionado": (_c("valores_dps", "DescontoIncondicionado"),),
    "desconto_condicionado": (_c("valores_dps", "DescontoCondicionado"),),
    "base_calculo": (_c("valores_nfse", "BaseCalculo"), _c("valores_dps", "vBC")),
    "valor_liquido_nfse": (_c("valores_nfse", "ValorLiquidoNfse"),),
    "item_lista_servico": (_c("servico", "ItemListaServico"),),
    "codigo_cnae": (_c("servico", "CodigoCnae"),),
    "codigo_tributacao_municipio": (_c("servico", "CodigoTributacaoMunicipio"),),
    "descricao_codigo_tributacao_municipio": (
        _c("servico", "DescricaoCodigoTributacaoMunicipio"),
    ),
    "discriminacao": (_c("servico", "Discriminacao"),),
    "prestador_razao_social": (_c("prestador", "RazaoSocial"),),
    "prestador_cnpj": (_c("prestador", "Cnpj"), _c("prestador_doc", "Cnpj")),
    "tomador_razao_social": (_c("tomador", "RazaoSocial"), _c("tomador", "Nome")),
    "tomador_cpf_cnpj": (
        _c("tomador_doc", "Cnpj"),
        _c("tomador_doc", "Cpf"),
        _c("tomador", "Cnpj"),
        _c("tomador", "Cpf"),
    ),
    "codigo_municipio": (_c("orgao", "CodigoMunicipio"),),
    "uf": (_c("orgao", "Uf"),),
}

NATIONAL_FIELDS: dict[str, tuple[Candidate, ...]] = {
    "numero": (_c("node", "nNFSe"),),
    "data_emissao": (_c("node", "dhProc"), _c("inf_dps", "dhEmi")),
    "valor_servicos": (_c("v_serv_prest", "vServ"), _c("valores_dps", "vServ")),
    "valor_deducoes": (_c("v_ded_red", "vDR"),),
    "valor_pis": (_c("piscofins", "vPis"),),
    "valor_cofins": (_c("piscofins", "vCofins"),),
    "valor_inss": (_c("trib_fed", "vRetCP"),),
    "valor_ir": (_c("trib_fed", "vRetIRRF"),),
    "valor_csll": (_c("trib_fed", "vRetCSLL"),),
    "v_bc_pis_cofins": (_c("piscofins", "vBCPisCofins"),),
    "v_bc_ibs_cbs": (_c("ibscbs_valores", "vBC"),),
    "valor_iss": (_c("valores_nfse", "vISSQN"),),
    "iss_retido": (_c("trib_mun", "tpRetISSQN"),),
    "aliquota": (_c("valores_nfse", "pAliqAplic"), _c("trib_mun", "pAliq")),
    "desconto_incondicionado": (_c("v_desc", "vDescIncond"),),
    "desconto_condicionado": (_c("v_desc", "vDescCond"),),
    "base_calculo": (_c("valores_nfse", "vBC"),),
    "valor_liquido_nfse": (_c("valores_nfse", "vLiq"),),
    "item_lista_servico": (_c("c_serv", "cTribNac"),),
    "codigo_tributacao_municipio": (_c("c_serv", "cTribMun"),),
    "descricao_codigo_tributacao_municipio": (
        _c("node", "xTribMun"),
        _c("node", "xTribNac"),
    ),
    "discriminacao": (_c("c_serv", "xDescServ"),),
    "prestador_razao_social": (_c("emit", "xNome"), _c("prest", "xNome")),
    "prestador_cnpj": (_c("emit", "CNPJ"), _c("prest", "CNPJ"), _c("emit", "CPF")),
    "tomador_razao_social": (_c("toma", "xNome"),),
    "tomador_cpf_cnpj": (_c("toma", "CNPJ"), _c("toma", "CPF"), _c("toma", "NIF")),
    "codigo_municipio": (
        _c("node", "cLocIncid"),
        _c("ender_emit", "cMun"),
        _c("inf_dps", "cLocEmi"),
    ),
    "uf": (_c("ender_emit", "UF"),),
}

# Fields whose value is the sum of every candidate instead of the first hit.
NATIONAL_SUMMED_FIELDS: dict[str, tuple[Candidate, ...]] = {
    "val_tot_tributos": (
        _c("tot_trib", "vTotTribFed"),
        _c("tot_trib", "vTotTribEst"),
        _c("tot_trib", "vTotTribMun"),
    ),
}

FIELD_TABLES: dict[Dialect, dict[str, tuple[Candidate, ...]]] = {
    Dialect.GISS: GISS_FIELDS,
    Dialect.NATIONAL: NATIONAL_FIELDS,
}

SUMMED_FIELD_TABLES: dict[Dialect, dict[str, tuple[Candidate, ...]]] = {
    Dialect.GISS: {},
    Dialect.NATIONAL: NATIONAL_SUMMED_FIELDS,
}
