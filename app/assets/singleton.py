from __future__ import annotations

from pathlib import Path

from app.assets.registry import SymbolCatalog, load_symbol_catalog


_CATALOG: SymbolCatalog | None = None


def init_assets(*, project_root: Path) -> SymbolCatalog:
    """Load the symbol catalog once and cache it.

    Safe to call multiple times; subsequent calls return the already loaded instance.
    """

    global _CATALOG
    if _CATALOG is None:
        _CATALOG = load_symbol_catalog(root=project_root)
    return _CATALOG


def reset_assets_for_tests() -> None:
    """Reset the cached catalog so tests can load from fixture directories."""

    global _CATALOG
    _CATALOG = None


def get_assets() -> SymbolCatalog:
    if _CATALOG is None:
        raise RuntimeError("Assets not initialized. Call init_assets() at startup.")
    return _CATALOG
