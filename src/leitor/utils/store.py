"""Local invoice store: keeps every imported NFS-e between sessions.

Records live in a JSON list (canonical keys) under the data directory.
Every read-modify-write holds a file lock; writes are atomic.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from filelock import FileLock

from leitor import config as _config
from leitor.models.invoice import InvoiceRecord
from leitor.services.loader import merge_invoices

logger = logging.getLogger(__name__)


def _store_path() -> Path:
    return _config.get_data_dir() / "invoices.json"


def _backup_corrupt(path: Path) -> Path:
    """Rename a corrupt file to a timestamped backup before it gets overwritten."""
    ts = datetime.now(UTC).strftime("%Y%m%dT%H%M%S")
    backup = path.with_name(f"{path.name}.corrupt.{ts}")
    path.rename(backup)
    logger.warning("Corrupt file backed up: %s → %s", path, backup)
    return backup


@contextmanager
def _locked() -> Iterator[None]:
    """Hold an exclusive file lock during store read-modify-write."""
    sp = _store_path()
    sp.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(sp.with_suffix(".lock"))
    with lock:
        yield


def _load() -> list[dict[str, Any]]:
    sp = _store_path()
    if not sp.exists():
        return []
    try:
        data = json.loads(sp.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError):
        _backup_corrupt(sp)
        return []
    if not isinstance(data, list):
        _backup_corrupt(sp)
        return []
    return [e for e in data if isinstance(e, dict)]


def _save(entries: list[dict[str, Any]]) -> None:
    sp = _store_path()
    sp.parent.mkdir(parents=True, exist_ok=True)
    tmp = sp.with_suffix(".tmp")
    tmp.write_text(json.dumps(entries, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    os.replace(tmp, sp)


def list_invoices() -> list[InvoiceRecord]:
    """Return all stored invoices in import order."""
    with _locked():
        entries = _load()
    return [InvoiceRecord.from_dict(e) for e in entries]


def add_invoices(records: Iterable[InvoiceRecord]) -> int:
    """Merge *records* into the store, skipping known (numero, prestador_cnpj).

    Returns how many records were actually added.
    """
    with _locked():
        existing = [InvoiceRecord.from_dict(e) for e in _load()]
        merged = merge_invoices(existing, records)
        added = len(merged) - len(existing)
        if added:
            _save([r.to_dict() for r in merged])
    return added


def clear_invoices() -> int:
    """Remove every stored invoice. Returns how many were removed."""
    with _locked():
        entries = _load()
        if entries:
            _save([])
    return len(entries)


@dataclass
class StoreHealth:
    store_ok: bool
    store_count: int
    corrupt_backups: list[str] = field(default_factory=list)


def check_store_health() -> StoreHealth:
    """Probe the store file for corruption (read-only)."""
    sp = _store_path()
    store_ok = True
    count = 0
    if sp.exists():
        try:
            data = json.loads(sp.read_text(encoding="utf-8"))
            if isinstance(data, list):
                count = len(data)
            else:
                store_ok = False
        except (json.JSONDecodeError, ValueError):
            store_ok = False
    if sp.parent.exists():
        backups = sorted(str(p) for p in sp.parent.glob(f"{sp.name}.corrupt.*"))
    else:
        backups = []
    return StoreHealth(store_ok=store_ok, store_count=count, corrupt_backups=backups)
