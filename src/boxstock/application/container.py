from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests

from boxstock.config import AppPaths, BackendConfig, StockSettings, get_app_paths
from boxstock.logging_config import setup_logging
from boxstock.repositories.base import RecordStore
from boxstock.repositories.rest_repo import RestRepository
from boxstock.repositories.sqlite_repo import SqliteRepository
from boxstock.services.excel_service import ExcelImportService
from boxstock.services.inventory_service import InventoryService
from boxstock.services.stock_entry_service import StockEntryService


@dataclass(frozen=True)
class AppContainer:
    repo: RecordStore
    settings: StockSettings
    inventory: InventoryService
    entries: StockEntryService
    excel: ExcelImportService
    paths: Optional[AppPaths] = None


def _wire(repo: RecordStore, settings: StockSettings, paths: Optional[AppPaths] = None) -> AppContainer:
    return AppContainer(
        repo=repo,
        settings=settings,
        inventory=InventoryService(repo, settings),
        entries=StockEntryService(repo),
        excel=ExcelImportService(settings),
        paths=paths,
    )


def build_container(
    db_path: Path | str,
    settings: Optional[StockSettings] = None,
    logs_dir: Optional[Path] = None,
) -> AppContainer:
    if logs_dir is not None:
        setup_logging(Path(logs_dir), level=logging.INFO)

    repo = SqliteRepository(db_path)
    repo.init_db()
    return _wire(repo, settings or StockSettings())


def build_app_container(
    paths: Optional[AppPaths] = None,
    settings: Optional[StockSettings] = None,
    configure_logging: bool = True,
) -> AppContainer:
    """Local install: database, logs and templates under the per-user data folder."""
    paths = paths or get_app_paths()
    if configure_logging:
        setup_logging(paths.logs_dir, level=logging.INFO)

    repo = SqliteRepository(paths.db_path)
    repo.init_db()
    return _wire(repo, settings or StockSettings(), paths)


def build_rest_container(
    config: BackendConfig,
    settings: Optional[StockSettings] = None,
    logs_dir: Optional[Path] = None,
    session: Optional[requests.Session] = None,
) -> AppContainer:
    if logs_dir is not None:
        setup_logging(Path(logs_dir), level=logging.INFO)

    return _wire(RestRepository(config, session=session), settings or StockSettings())
