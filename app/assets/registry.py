from __future__ import annotations

import csv
import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from app.api.models import BOMB_ID
from app.errors import AssetLoadError, InvalidConfiguration, UnknownSymbolSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Symbol:
    id: str
    content: str


@dataclass(frozen=True, slots=True)
class SymbolSet:
    """Named collection of symbols; each symbol becomes one pair of tiles."""

    set_id: str
    symbols: tuple[Symbol, ...]

    def __post_init__(self) -> None:
        if not self.symbols:
            raise InvalidConfiguration(f"Symbol set '{self.set_id}' has no symbols")
        seen: set[str] = set()
        for s in self.symbols:
            if not s.id:
                raise InvalidConfiguration(f"Symbol set '{self.set_id}' has a symbol without id")
            if s.id == BOMB_ID:
                raise InvalidConfiguration(f"Symbol id '{BOMB_ID}' is reserved (set '{self.set_id}')")
            if s.id in seen:
                raise InvalidConfiguration(f"Duplicate symbol id '{s.id}' in set '{self.set_id}'")
            seen.add(s.id)


@dataclass(frozen=True, slots=True)
class SymbolCatalog:
    """All selectable symbol sets, in configuration order."""

    sets: tuple[SymbolSet, ...]
    _by_id: dict[str, SymbolSet]

    @staticmethod
    def from_sets(sets: Iterable[SymbolSet]) -> "SymbolCatalog":
        ordered = tuple(sets)
        if not ordered:
            raise InvalidConfiguration("At least one symbol set is required")
        by_id: dict[str, SymbolSet] = {}
        for s in ordered:
            if s.set_id in by_id:
                raise InvalidConfiguration(f"Duplicate symbol set id: {s.set_id}")
            by_id[s.set_id] = s
        return SymbolCatalog(sets=ordered, _by_id=by_id)

    @staticmethod
    def from_mapping(data: Mapping[str, Iterable[tuple[str, str]]]) -> "SymbolCatalog":
        """Build from `{set_id: [(symbol_id, content), ...]}`."""

        return SymbolCatalog.from_sets(
            SymbolSet(set_id=set_id, symbols=tuple(Symbol(id=i, content=c) for i, c in pairs))
            for set_id, pairs in data.items()
        )

    @property
    def default_set_id(self) -> str:
        return self.sets[0].set_id

    def require(self, set_id: str) -> SymbolSet:
        s = self._by_id.get(set_id)
        if s is None:
            raise UnknownSymbolSet(set_id)
        return s

    def __contains__(self, item: object) -> bool:
        return isinstance(item, str) and item in self._by_id


def _read_csv_rows(path: Path) -> list[list[str]]:
    try:
        with path.open(encoding="utf-8-sig", newline="") as f:
            rows = [[c.strip() for c in row] for row in csv.reader(f)]
    except FileNotFoundError as e:
        raise AssetLoadError(f"Asset file not found: {path}") from e

    return [row for row in rows if any(cell.strip() for cell in row)]


def load_symbol_sets_csv(path: Path) -> SymbolCatalog:
    rows = _read_csv_rows(path)
    if not rows:
        raise InvalidConfiguration(f"Empty symbol set CSV: {path}")

    header = [c.casefold() for c in rows[0]]
    if header[:3] != ["set", "id", "content"]:
        raise InvalidConfiguration(f"Unexpected header in {path}: {rows[0]}")

    # dicts keep insertion order, so sets come out in file order.
    grouped: dict[str, list[Symbol]] = {}
    for row in rows[1:]:
        if len(row) < 3:
            raise InvalidConfiguration(f"Malformed row in {path}: {row}")
        set_id, sid, content = row[0], row[1], row[2]
        if not set_id or not sid or not content:
            raise InvalidConfiguration(f"Malformed row in {path}: {row}")
        grouped.setdefault(set_id, []).append(Symbol(id=sid, content=content))

    return SymbolCatalog.from_sets(SymbolSet(set_id=k, symbols=tuple(v)) for k, v in grouped.items())


def _fallback_symbol_catalog() -> SymbolCatalog:
    """Small built-in catalog used when the CSV is missing."""

    return SymbolCatalog.from_mapping(
        {
            "animals": [("dog", "🐶"), ("cat", "🐱"), ("fox", "🦊"), ("frog", "🐸"), ("panda", "🐼"), ("owl", "🦉")],
            "fruits": [("apple", "🍎"), ("banana", "🍌"), ("grapes", "🍇"), ("cherry", "🍒"), ("lemon", "🍋"), ("kiwi", "🥝")],
            "weather": [("sun", "☀️"), ("cloud", "☁️"), ("rain", "🌧️"), ("snow", "❄️"), ("bolt", "⚡"), ("rainbow", "🌈")],
        }
    )


def load_symbol_catalog(*, root: Path) -> SymbolCatalog:
    path = root / "assets" / "symbol_sets.csv"

    # A missing file falls back to the built-in catalog; malformed data always raises.
    # Set MEMORY_BOMB_STRICT_ASSETS=1 to make a missing file fatal too.
    strict = os.getenv("MEMORY_BOMB_STRICT_ASSETS", "").strip().lower() in {"1", "true", "yes"}

    try:
        catalog = load_symbol_sets_csv(path)
    except AssetLoadError:
        if strict:
            raise
        logger.warning("Symbol set file %s not found; using built-in catalog", path)
        return _fallback_symbol_catalog()

    logger.info("Loaded %d symbol sets from %s", len(catalog.sets), path)
    return catalog
