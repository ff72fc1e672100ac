"""Turn files on disk (.xml or .zip) into InvoiceRecord lists.

Wraps the pure extractor with the I/O it deliberately lacks: reading files,
unwrapping zip archives, choosing the text encoding and deduplicating.
"""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from leitor.config import DEFAULT_LEGACY_ENCODING, Settings, load_settings
from leitor.models.invoice import InvoiceRecord
from leitor.services.exceptions import MalformedDocumentError, UnsupportedFileError
from leitor.services.extractor import extract_invoices

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    invoices: list[InvoiceRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    files: int = 0


def decode_document(raw: bytes, legacy_encoding: str = DEFAULT_LEGACY_ENCODING) -> str:
    """Decode XML bytes: strict UTF-8 first, legacy single-byte encoding on failure."""
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug("UTF-8 falhou, usando %s", legacy_encoding)
        return raw.decode(legacy_encoding, errors="replace")


def _is_xml(name: str) -> bool:
    return name.lower().endswith(".xml")


def iter_documents(path: Path) -> Iterator[tuple[str, bytes]]:
    """Yield (name, raw bytes) for an .xml file or each .xml entry of a .zip."""
    suffix = path.suffix.lower()
    if suffix == ".xml":
        yield path.name, path.read_bytes()
    elif suffix == ".zip":
        with zipfile.ZipFile(path) as zf:
            for info in zf.infolist():
                if info.is_dir() or not _is_xml(info.filename):
                    continue
                yield f"{path.name}:{info.filename}", zf.read(info)
    else:
        raise UnsupportedFileError(f"Formato nao suportado: {path.name}")


def merge_invoices(
    existing: Iterable[InvoiceRecord],
    new: Iterable[InvoiceRecord],
) -> list[InvoiceRecord]:
    """Concatenate and drop repeats by (numero, prestador_cnpj); first one wins."""
    seen: set[tuple[str, str]] = set()
    merged: list[InvoiceRecord] = []
    for inv in (*existing, *new):
        if inv.dedup_key in seen:
            continue
        seen.add(inv.dedup_key)
        merged.append(inv)
    return merged


def _limit_reached(result: LoadResult, settings: Settings) -> bool:
    if settings.max_files and result.files >= settings.max_files:
        logger.warning("Limite de %d arquivo(s) atingido", settings.max_files)
        return True
    return False


def load_files(paths: Iterable[Path | str], settings: Settings | None = None) -> LoadResult:
    """Extract invoices from every document found in *paths*.

    A malformed document or unreadable archive is logged and reported in
    ``errors``; the remaining documents are still processed.
    """
    settings = settings or load_settings()
    result = LoadResult()
    for p in paths:
        if _limit_reached(result, settings):
            break
        path = Path(p)
        try:
            for name, raw in iter_documents(path):
                if _limit_reached(result, settings):
                    break
                result.files += 1
                text = decode_document(raw, settings.legacy_encoding)
                try:
                    found = extract_invoices(text, id_strategy=settings.id_strategy, source=name)
                except MalformedDocumentError as exc:
                    logger.warning("Documento ignorado: %s", exc)
                    result.errors.append(str(exc))
                    continue
                if not found:
                    logger.info("Nenhuma NFS-e reconhecida em %s", name)
                result.invoices.extend(found)
        except (UnsupportedFileError, zipfile.BadZipFile, OSError) as exc:
            logger.warning("Arquivo ignorado %s: %s", path, exc)
            result.errors.append(f"{path.name}: {exc}")
    result.invoices = merge_invoices([], result.invoices)
    return result
