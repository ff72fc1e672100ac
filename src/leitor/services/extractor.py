"""Extraction of InvoiceRecord values from NFS-e XML text.

Pure and stateless: every call parses its own tree and keeps its own id
bookkeeping, so concurrent calls on different documents need no locking.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import string
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any

from lxml import etree

from leitor.models.invoice import ISS_NAO_RETIDO, ISS_RETIDO, InvoiceRecord
from leitor.services.dialects import (
    FIELD_TABLES,
    GISS_INVOICE_TAG,
    NATIONAL_INVOICE_TAG,
    SUMMED_FIELD_TABLES,
    Candidate,
    Dialect,
    detect_dialect,
)
from leitor.services.exceptions import MalformedDocumentError
from leitor.utils.normalizer import normalize_number, sanitize_text
from leitor.utils.xml_lookup import find_all, find_child, find_first, tag_text

logger = logging.getLogger(__name__)

Scopes = Mapping[str, "etree._Element | None"]

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ACCESS_KEY_PREFIX = "NFS"


class IdStrategy(str, Enum):
    RANDOM = "random"
    HASH = "hash"


_FIELD_TYPES = {f.name: f.type for f in fields(InvoiceRecord)}


def parse_document(text: str, source: str | None = None) -> etree._Element:
    """Parse XML text into an lxml tree root.

    The text is already decoded, so any encoding declaration inside it is
    overridden. Raises MalformedDocumentError for non-well-formed input.
    """
    parser = etree.XMLParser(
        encoding="utf-8",
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
    )
    data = text.lstrip("\ufeff").encode("utf-8")
    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise MalformedDocumentError(f"XML invalido: {exc}", source=source) from exc
    return root


def resolve_field(scopes: Scopes, candidates: tuple[Candidate, ...]) -> str:
    """Return the first non-empty text among *candidates*, or ""."""
    for scope, tag in candidates:
        value = tag_text(scopes.get(scope), tag)
        if value:
            return value
    return ""


def _sum_fields(scopes: Scopes, candidates: tuple[Candidate, ...]) -> float:
    return sum(normalize_number(tag_text(scopes.get(scope), tag)) for scope, tag in candidates)


# --- Dialect traversal ---


def _giss_scopes(node: etree._Element) -> dict[str, etree._Element | None]:
    dps = find_first(node, "InfDeclaracaoPrestacaoServico")
    if dps is None:
        dps = node
    servico = find_first(dps, "Servico")
    valores_dps = find_first(servico, "Valores")

    prestador = find_first(node, "PrestadorServico")
    if prestador is None:
        prestador = find_first(node, "Prestador")
    if prestador is None:
        prestador = find_first(dps, "Prestador")

    tomador = find_first(node, "TomadorServico")
    if tomador is None:
        tomador = find_first(node, "Tomador")
    if tomador is None:
        tomador = find_first(dps, "TomadorServico")

    return {
        "node": node,
        "dps": dps,
        "servico": servico,
        "valores_dps": valores_dps,
        "valores_nfse": find_first(node, "ValoresNfse"),
        "piscofins": find_first(valores_dps, "piscofins"),
        "ibscbs_valores": find_first(find_first(valores_dps, "IBSCBS"), "valores"),
        "prestador": prestador,
        "prestador_doc": find_first(prestador, "CpfCnpj"),
        "tomador": tomador,
        "tomador_doc": find_first(tomador, "CpfCnpj"),
        "orgao": find_first(node, "OrgaoGerador"),
    }


def _national_scopes(node: etree._Element) -> dict[str, etree._Element | None]:
    inf_dps = find_first(node, "infDPS")
    if inf_dps is None:
        inf_dps = node
    emit = find_child(node, "emit")
    if emit is None:
        emit = find_first(node, "emit")

    valores_dps = find_child(inf_dps, "valores")
    serv = find_first(inf_dps, "serv")
    trib = find_first(valores_dps, "trib")
    trib_fed = find_first(trib, "tribFed")

    ibscbs = find_child(node, "IBSCBS")
    if ibscbs is None:
        ibscbs = find_first(inf_dps, "IBSCBS")

    return {
        "node": node,
        "inf_dps": inf_dps,
        "emit": emit,
        "ender_emit": find_first(emit, "enderNac"),
        "valores_nfse": find_child(node, "valores"),
        "prest": find_first(inf_dps, "prest"),
        "toma": find_first(inf_dps, "toma"),
        "serv": serv,
        "c_serv": find_first(serv, "cServ"),
        "valores_dps": valores_dps,
        "v_serv_prest": find_first(valores_dps, "vServPrest"),
        "v_desc": find_first(valores_dps, "vDescCondIncond"),
        "v_ded_red": find_first(valores_dps, "vDedRed"),
        "trib_mun": find_first(trib, "tribMun"),
        "trib_fed": trib_fed,
        "piscofins": find_first(trib_fed, "piscofins"),
        "tot_trib": find_first(trib, "vTotTrib"),
        "ibscbs_valores": find_first(ibscbs, "valores"),
    }


def _giss_net_value(values: dict[str, Any]) -> float:
    return values["valor_servicos"] - values["valor_iss"]


def _national_net_value(values: dict[str, Any]) -> float:
    return values["valor_servicos"]


def _national_extras(node: etree._Element, values: dict[str, Any]) -> None:
    if not values.get("codigo_verificacao"):
        node_id = node.get("Id", "").strip()
        if node_id.startswith(_ACCESS_KEY_PREFIX):
            node_id = node_id[len(_ACCESS_KEY_PREFIX):]
        values["codigo_verificacao"] = node_id


@dataclass(frozen=True)
class _DialectRules:
    invoice_tag: str
    scopes: Callable[[etree._Element], dict[str, etree._Element | None]]
    net_value: Callable[[dict[str, Any]], float]
    extras: Callable[[etree._Element, dict[str, Any]], None] | None = None


_RULES: dict[Dialect, _DialectRules] = {
    Dialect.GISS: _DialectRules(GISS_INVOICE_TAG, _giss_scopes, _giss_net_value),
    Dialect.NATIONAL: _DialectRules(
        NATIONAL_INVOICE_TAG, _national_scopes, _national_net_value, _national_extras
    ),
}


# --- Ids ---


class _IdFactory:
    """Per-call id generator guaranteeing unique synthesized ids."""

    def __init__(self, strategy: IdStrategy) -> None:
        self._strategy = strategy
        self._seen: set[str] = set()

    def _candidate(self, numero: str, prestador_cnpj: str) -> str:
        if self._strategy is IdStrategy.HASH:
            digest = hashlib.sha1(f"{numero}|{prestador_cnpj}".encode()).hexdigest()
            return f"inv-{numero}-{digest[:10]}"
        suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(5))
        return f"inv-{numero}-{suffix}"

    def keep(self, node_id: str) -> str:
        """Record an id taken from the source so no synthesized id reuses it."""
        self._seen.add(node_id)
        return node_id

    def make(self, numero: str, prestador_cnpj: str) -> str:
        base = self._candidate(numero, prestador_cnpj)
        new_id = base
        n = 2
        while new_id in self._seen:
            new_id = f"{base}-{n}"
            n += 1
        self._seen.add(new_id)
        return new_id


# --- Extraction ---


def _convert(name: str, raw: str) -> Any:
    kind = _FIELD_TYPES[name]
    if name == "iss_retido":
        return ISS_RETIDO if normalize_number(raw) == ISS_RETIDO else ISS_NAO_RETIDO
    if kind == "float":
        return normalize_number(raw)
    return sanitize_text(raw)


def _extract_node(
    node: etree._Element,
    dialect: Dialect,
    ids: _IdFactory,
) -> InvoiceRecord:
    rules = _RULES[dialect]
    scopes = rules.scopes(node)

    values: dict[str, Any] = {}
    for name, candidates in FIELD_TABLES[dialect].items():
        values[name] = _convert(name, resolve_field(scopes, candidates))
    for name, candidates in SUMMED_FIELD_TABLES[dialect].items():
        values[name] = _sum_fields(scopes, candidates)
    if rules.extras is not None:
        rules.extras(node, values)

    if not values.get("valor_liquido_nfse"):
        values["valor_liquido_nfse"] = round(rules.net_value(values), 2)

    node_id = node.get("Id", "").strip()
    if node_id:
        values["id"] = ids.keep(node_id)
    else:
        values["id"] = ids.make(values["numero"], values["prestador_cnpj"])
    return InvoiceRecord(**values)


def extract_from_tree(
    root: etree._Element,
    *,
    id_strategy: IdStrategy | str = IdStrategy.RANDOM,
) -> list[InvoiceRecord]:
    """Extract one record per invoice node of an already-parsed document."""
    dialect = detect_dialect(root)
    rules = _RULES[dialect]
    nodes = find_all(root, rules.invoice_tag)
    logger.debug("Dialeto %s: %d nota(s) encontrada(s)", dialect.value, len(nodes))
    ids = _IdFactory(IdStrategy(id_strategy))
    return [_extract_node(node, dialect, ids) for node in nodes]


def extract_invoices(
    text: str,
    *,
    id_strategy: IdStrategy | str = IdStrategy.RANDOM,
    source: str | None = None,
) -> list[InvoiceRecord]:
    """Extract every NFS-e from one XML document.

    Returns an empty list for a well-formed document with no recognizable
    invoice node. Raises MalformedDocumentError if the XML is not well-formed.
    """
    root = parse_document(text, source=source)
    return extract_from_tree(root, id_strategy=id_strategy)
