from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os
import sys


LOW_STOCK_THRESHOLD = 5
LARGE_QUANTITY_WARNING = 1000
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    db_path: Path
    logs_dir: Path
    templates_dir: Path


@dataclass(frozen=True)
class StockSettings:
    low_stock_threshold: int = LOW_STOCK_THRESHOLD
    large_quantity_warning: int = LARGE_QUANTITY_WARNING
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    max_displayed_warnings: int = 5
    preview_limit: int = 10
    accepted_extensions: tuple[str, ...] = ("xlsx",)


@dataclass(frozen=True)
class BackendConfig:
    url: str
    api_key: str
    timeout: float = 10.0

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "BackendConfig":
        env = os.environ if environ is None else environ
        url = env.get("BOXSTOCK_BACKEND_URL", "").strip()
        key = env.get("BOXSTOCK_BACKEND_KEY", "").strip()
        if not url or not key:
            raise ValueError("BOXSTOCK_BACKEND_URL and BOXSTOCK_BACKEND_KEY must be set.")
        timeout = float(env.get("BOXSTOCK_BACKEND_TIMEOUT", "10") or 10)
        return cls(url=url.rstrip("/"), api_key=key, timeout=timeout)


def default_base_dir(app_name: str = "BoxStockManager", environ: Optional[dict] = None) -> Path:
    """``BOXSTOCK_HOME`` wins; otherwise the per-user data folder of the platform."""
    env = os.environ if environ is None else environ
    override = env.get("BOXSTOCK_HOME", "").strip()
    if override:
        return Path(override)
    if sys.platform.startswith("win"):
        return Path(env.get("APPDATA", str(Path.home() / "AppData" / "Roaming"))) / app_name
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / app_name
    return Path.home() / f".{app_name.lower()}"


def get_app_paths(base_dir: Path | str | None = None, app_name: str = "BoxStockManager") -> AppPaths:
    base = Path(base_dir) if base_dir else default_base_dir(app_name)
    paths = AppPaths(
        base_dir=base,
        db_path=base / "box_stock.db",
        logs_dir=base / "logs",
        templates_dir=base / "templates",
    )
    for d in (paths.base_dir, paths.logs_dir, paths.templates_dir):
        d.mkdir(parents=True, exist_ok=True)
    return paths
