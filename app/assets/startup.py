from __future__ import annotations

from pathlib import Path

from app.assets.registry import SymbolCatalog
from app.assets.singleton import init_assets
from app.engine_config import EngineConfig, engine_config_from_env


def init_app_resources() -> tuple[SymbolCatalog, EngineConfig]:
    """Load the symbol catalog and read engine settings.

    Both raise InvalidConfiguration on bad input, so a misconfigured service
    fails at startup rather than on the first game.
    """

    # project root is two levels up from this file: app/assets/startup.py
    project_root = Path(__file__).resolve().parents[2]
    return init_assets(project_root=project_root), engine_config_from_env()
