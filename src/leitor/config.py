from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import platformdirs
import yaml
from dotenv import load_dotenv

APP_NAME = "leitor-nfse"


def _resolve_config_dir_for_dotenv() -> Path | None:
    """Resolve config dir for .env loading without depending on env vars from .env itself.

    Uses the same 3-tier resolution as _resolve_dir but only checks sources
    available before .env is loaded (env var set in shell, dev layout).
    Returns None if only platformdirs would resolve (since the dir may not exist yet).
    """
    from_env = os.environ.get("LEITOR_CONFIG_DIR")
    if from_env:
        return Path(from_env)
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / "config"
    if candidate.is_dir():
        return candidate
    pd = Path(platformdirs.user_config_dir(APP_NAME))
    if pd.is_dir():
        return pd
    return None


# Load .env: cwd first (highest priority), then config dir (won't override)
load_dotenv()
_cfg_dir = _resolve_config_dir_for_dotenv()
if _cfg_dir is not None:
    load_dotenv(_cfg_dir / ".env")


def _resolve_dir(env_var: str, default_subdir: str, kind: str) -> Path:
    """Resolve a directory from env var, repo layout, or platform default.

    Priority: 1) env var, 2) dev repo layout, 3) platformdirs user directory.
    """
    from_env = os.environ.get(env_var)
    if from_env:
        return Path(from_env)
    # Development layout: src/leitor/config.py -> ../../.. = project root
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / default_subdir
    if candidate.is_dir():
        return candidate
    if kind == "config":
        return Path(platformdirs.user_config_dir(APP_NAME))
    return Path(platformdirs.user_data_dir(APP_NAME))


def get_config_dir() -> Path:
    """Resolve config directory. Re-evaluated on each call to pick up env changes."""
    return _resolve_dir("LEITOR_CONFIG_DIR", "config", kind="config")


def get_data_dir() -> Path:
    """Resolve data directory. Re-evaluated on each call to pick up env changes."""
    return _resolve_dir("LEITOR_DATA_DIR", "data", kind="data")


NFSE_NS = "http://www.sped.fazenda.gov.br/nfse"

DEFAULT_LEGACY_ENCODING = "latin-1"
ID_STRATEGIES = ("random", "hash")


@dataclass(frozen=True)
class Settings:
    id_strategy: str = "random"
    legacy_encoding: str = DEFAULT_LEGACY_ENCODING
    export_dir: str | None = None
    max_files: int = 0  # 0 = sem limite

    @classmethod
    def from_dict(cls, d: dict) -> Settings:
        """Create Settings from a YAML-loaded dict, applying defaults for missing keys."""
        strategy = str(d.get("id_strategy", "random")).strip().lower()
        if strategy not in ID_STRATEGIES:
            raise ValueError(f"id_strategy invalido: '{strategy}'. Use random ou hash.")
        max_files = int(d.get("max_files", 0) or 0)
        if max_files < 0:
            raise ValueError("max_files deve ser >= 0")
        export_dir = d.get("export_dir")
        return cls(
            id_strategy=strategy,
            legacy_encoding=str(d.get("legacy_encoding") or DEFAULT_LEGACY_ENCODING),
            export_dir=str(export_dir) if export_dir else None,
            max_files=max_files,
        )

    def to_dict(self) -> dict:
        d: dict = {
            "id_strategy": self.id_strategy,
            "legacy_encoding": self.legacy_encoding,
            "max_files": self.max_files,
        }
        if self.export_dir:
            d["export_dir"] = self.export_dir
        return d


# --- YAML config ---


def load_yaml(path: Path) -> dict:
    """Load and parse a YAML file, returning the top-level dict."""
    return yaml.safe_load(path.read_text()) or {}


def settings_path() -> Path:
    return get_config_dir() / "settings.yaml"


def load_settings() -> Settings:
    """Load settings.yaml (if present) and apply LEITOR_* env overrides."""
    path = settings_path()
    data = load_yaml(path) if path.is_file() else {}
    strategy = os.environ.get("LEITOR_ID_STRATEGY")
    if strategy:
        data["id_strategy"] = strategy
    encoding = os.environ.get("LEITOR_LEGACY_ENCODING")
    if encoding:
        data["legacy_encoding"] = encoding
    return Settings.from_dict(data)


def save_settings(settings: Settings) -> Path:
    """Save settings to config/settings.yaml (atomic write)."""
    path = settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(yaml.dump(settings.to_dict(), default_flow_style=False, allow_unicode=True))
    os.replace(tmp, path)
    return path


def get_export_dir(settings: Settings | None = None) -> Path:
    """Return the directory where spreadsheet reports are written."""
    settings = settings or load_settings()
    if settings.export_dir:
        return Path(settings.export_dir).expanduser()
    return get_data_dir() / "relatorios"
