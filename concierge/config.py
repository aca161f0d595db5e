"""TOML configuration loader for the tracking engine."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

DEFAULT_DB_PATH = "~/.config/concierge/concierge.db"


@dataclass
class StorageConfig:
    path: str = DEFAULT_DB_PATH


@dataclass
class TrackerConfig:
    refresh_interval: int = 3600  # seconds
    prune_orphans: bool = True
    demo_seed: bool = True


@dataclass
class SessionConfig:
    check_interval: int = 60  # seconds


@dataclass
class ShoppingConfig:
    checkout_clear_delay: float = 2.0
    currency: str = "R$"
    list_title: str = "Minha Lista de Compras - Concierge"


@dataclass
class ShareConfig:
    command: str = ""
    clipboard_command: str = ""


@dataclass
class ConciergeConfig:
    storage: StorageConfig = field(default_factory=StorageConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    shopping: ShoppingConfig = field(default_factory=ShoppingConfig)
    share: ShareConfig = field(default_factory=ShareConfig)


def load_config(path: str | Path | None = None) -> ConciergeConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    The database path can be overridden via ``CONCIERGE_DB_PATH``.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    sto = raw.get("storage", {})
    trk = raw.get("tracker", {})
    ses = raw.get("session", {})
    shp = raw.get("shopping", {})
    shr = raw.get("share", {})

    # Resolve DB path: environment variable → config file → default
    db_path = os.environ.get("CONCIERGE_DB_PATH", "") or sto.get(
        "path", DEFAULT_DB_PATH
    )

    return ConciergeConfig(
        storage=StorageConfig(path=db_path),
        tracker=TrackerConfig(
            refresh_interval=trk.get("refresh_interval", 3600),
            prune_orphans=trk.get("prune_orphans", True),
            demo_seed=trk.get("demo_seed", True),
        ),
        session=SessionConfig(
            check_interval=ses.get("check_interval", 60),
        ),
        shopping=ShoppingConfig(
            checkout_clear_delay=shp.get("checkout_clear_delay", 2.0),
            currency=shp.get("currency", "R$"),
            list_title=shp.get(
                "list_title", "Minha Lista de Compras - Concierge"
            ),
        ),
        share=ShareConfig(
            command=shr.get("command", ""),
            clipboard_command=shr.get("clipboard_command", ""),
        ),
    )
