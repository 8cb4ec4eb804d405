"""Configuration helpers for the GeoNotes app."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml


@dataclass(frozen=True)
class StorageConfig:
    """Where the note and user tables live. ``None`` keeps them in memory."""

    base_path: Optional[str] = "./data/store"


@dataclass(frozen=True)
class MapConfig:
    """Clustering resolution and map surface geometry."""

    grid_size: int = 10
    key_precision: int = 6
    fit_padding_px: int = 50
    fit_min_delta_degrees: float = 1e-6
    width_px: int = 800
    height_px: int = 500
    max_zoom: float = 18.0
    map_style: Optional[str] = None


@dataclass(frozen=True)
class AuthConfig:
    min_password_length: int = 6


@dataclass(frozen=True)
class DashboardConfig:
    """Dashboard defaults."""

    page_title: str = "GeoNotes"


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    """Aggregated configuration model."""

    storage: StorageConfig
    map: MapConfig
    auth: AuthConfig
    dashboard: DashboardConfig
    logging: LoggingConfig


def default_config() -> AppConfig:
    return AppConfig(
        storage=StorageConfig(),
        map=MapConfig(),
        auth=AuthConfig(),
        dashboard=DashboardConfig(),
        logging=LoggingConfig(),
    )


def load_config(path: str | Path) -> AppConfig:
    """Parse a YAML config file into an AppConfig dataclass."""

    raw = _load_yaml(path)
    storage_cfg = raw.get("storage", {})
    map_cfg = raw.get("map", {})
    auth_cfg = raw.get("auth", {})
    dashboard_cfg = raw.get("dashboard", {})
    logging_cfg = raw.get("logging", {})

    base_path = storage_cfg.get("base_path", "./data/store")
    storage = StorageConfig(base_path=str(base_path) if base_path is not None else None)
    map_settings = MapConfig(
        grid_size=max(int(map_cfg.get("grid_size", 10)), 1),
        key_precision=int(map_cfg.get("key_precision", 6)),
        fit_padding_px=int(map_cfg.get("fit_padding_px", 50)),
        fit_min_delta_degrees=float(map_cfg.get("fit_min_delta_degrees", 1e-6)),
        width_px=int(map_cfg.get("width_px", 800)),
        height_px=int(map_cfg.get("height_px", 500)),
        max_zoom=float(map_cfg.get("max_zoom", 18.0)),
        map_style=map_cfg.get("map_style"),
    )
    auth = AuthConfig(min_password_length=int(auth_cfg.get("min_password_length", 6)))
    dashboard = DashboardConfig(page_title=str(dashboard_cfg.get("page_title", "GeoNotes")))
    logging_settings = LoggingConfig(level=str(logging_cfg.get("level", "INFO")).upper())
    return AppConfig(
        storage=storage,
        map=map_settings,
        auth=auth,
        dashboard=dashboard,
        logging=logging_settings,
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_yaml(path: str | Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a top-level mapping.")
    return data
