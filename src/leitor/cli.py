from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

USAGE = """\
Uso: leitor-nfse [comando]

  (sem comando)            abre o relatório interativo
  init                     cria diretórios e settings.yaml
  importar ARQ [ARQ ...]   importa arquivos .xml ou .zip
  exportar [ARQ.xlsx]      exporta as notas armazenadas para Excel
  limpar                   remove todas as notas armazenadas
"""


def _configure_logging() -> None:
    level = os.environ.get("LEITOR_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _init_config() -> None:
    """Create config/data directories and a default settings.yaml."""
    from leitor.config import Settings, get_config_dir, get_data_dir, save_settings, settings_path

    config_dir = get_config_dir()
    data_dir = get_data_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    data_dir.mkdir(parents=True, exist_ok=True)

    path = settings_path()
    if path.exists():
        print(f"  já existe: {path}")
    else:
        save_settings(Settings())
        print(f"  criado: {path}")

    print()
    print(f"Configuração: {config_dir}")
    print(f"Dados:   {data_dir}")


def _import_files(paths: list[str]) -> int:
    """Load files into the local store. Returns the process exit code."""
    from leitor.services.loader import load_files
    from leitor.utils.store import add_invoices

    if not paths:
        print("Erro: informe ao menos um arquivo .xml ou .zip")
        return 2

    result = load_files([Path(p) for p in paths])
    added = add_invoices(result.invoices)
    print(f"Documentos lidos: {result.files}")
    print(f"Notas encontradas: {len(result.invoices)}")
    print(f"Notas novas armazenadas: {added}")
    if result.errors:
        print()
        print("Erros:")
        for err in result.errors:
            print(f"  - {err}")
        return 1
    return 0


def _export(target: str | None) -> int:
    from leitor.config import get_export_dir
    from leitor.services.exporter import default_export_path, export_xlsx
    from leitor.utils.store import list_invoices

    invoices = list_invoices()
    if not invoices:
        print("Nenhuma nota armazenada para exportar.")
        return 1
    path = Path(target) if target else default_export_path(get_export_dir())
    export_xlsx(invoices, path)
    print(f"Relatório salvo em {path} ({len(invoices)} nota(s))")
    return 0


def _clear() -> int:
    from leitor.utils.store import clear_invoices

    try:
        answer = input("Deseja realmente limpar todos os dados? [s/N]: ").strip().lower()
    except (EOFError, KeyboardInterrupt):
        print()
        return 1
    if answer not in ("s", "sim", "y", "yes"):
        print("Operação cancelada.")
        return 1
    removed = clear_invoices()
    print(f"{removed} nota(s) removida(s).")
    return 0


def _preflight() -> bool:
    """Verify the data directory and store before launching the TUI.

    Auto-creates the data directory. Returns False with a helpful message
    when settings.yaml is invalid or the store cannot be read.
    """
    from leitor.config import get_data_dir, load_settings
    from leitor.utils.store import check_store_health

    data_dir = get_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)

    try:
        load_settings()
    except (ValueError, OSError) as e:
        print(f"Erro: settings.yaml inválido: {e}")
        print("Corrija o arquivo ou execute 'leitor-nfse init'.")
        return False

    health = check_store_health()
    if not health.store_ok:
        print(f"Aviso: armazenamento corrompido em {data_dir}; será recriado ao abrir.")
    return True


def main() -> None:
    """Entry point for the leitor-nfse CLI/TUI."""
    _configure_logging()
    args = sys.argv[1:]
    command = args[0] if args else None

    if command == "init":
        _init_config()
        return
    if command == "importar":
        sys.exit(_import_files(args[1:]))
    if command == "exportar":
        sys.exit(_export(args[1] if len(args) > 1 else None))
    if command == "limpar":
        sys.exit(_clear())
    if command in ("-h", "--help", "ajuda"):
        print(USAGE)
        return
    if command is not None:
        print(f"Comando desconhecido: {command}")
        print(USAGE)
        sys.exit(2)

    if not _preflight():
        sys.exit(1)

    from leitor.tui.app import LeitorApp

    app = LeitorApp()
    app.run()


if __name__ == "__main__":
    main()
