"""Configuration loading and validation for Kitchen Stock.

Loads settings from .env via python-dotenv. Every setting has a default,
so the tracker runs without any configuration at all.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from kitchen_stock.models import RECORD_SEPARATOR

if TYPE_CHECKING:
    from pathlib import Path


class ConfigError(Exception):
    """Raised when configuration values are invalid."""


@dataclass(frozen=True)
class Config:
    """Typed, validated application configuration."""

    # Flat file holding the inventory between sessions
    data_file: str = "data/ingredients.txt"

    # Unit recorded for ingredients entered without one
    default_units: str = "kg"

    # Alert thresholds (overridable per session with ``set``)
    expiry_threshold_days: int = 7
    low_stock_threshold_kg: float = 1.0

    log_level: str = "WARNING"


def _read_non_negative(name: str, default: str, cast: type[int] | type[float]) -> float:
    """Read a numeric environment variable that must not be negative.

    Args:
        name: Environment variable name.
        default: Value used when the variable is unset.
        cast: ``int`` or ``float``.

    Returns:
        The parsed value.

    Raises:
        ConfigError: If the value is not a number of the right kind or is negative.
    """
    raw = os.getenv(name, default)
    kind = "an integer" if cast is int else "a number"
    try:
        value = cast(raw)
    except ValueError as err:
        raise ConfigError(f"{name} must be {kind}, got: {raw!r}") from err
    if not math.isfinite(value) or value < 0:
        raise ConfigError(f"{name} must be finite and not negative, got: {raw!r}")
    return value


def _read_units() -> str:
    """Read the default units, which end up in every stored record."""
    raw = os.getenv("KITCHEN_STOCK_DEFAULT_UNITS", "kg")
    units = raw.strip()
    if not units or RECORD_SEPARATOR in units:
        raise ConfigError(
            "KITCHEN_STOCK_DEFAULT_UNITS must be non-empty and must not contain "
            f"{RECORD_SEPARATOR!r}, got: {raw!r}"
        )
    return units


def _read_log_level() -> str:
    raw = os.getenv("LOG_LEVEL", "WARNING")
    level = raw.strip().upper()
    if level not in logging.getLevelNamesMapping():
        raise ConfigError(f"LOG_LEVEL is not a known logging level, got: {raw!r}")
    return level


def load_config(env_path: str | Path | None = None) -> Config:
    """Load and validate configuration from environment / .env file.

    Args:
        env_path: Optional path to .env file. If None, searches from cwd upward.

    Returns:
        Validated Config instance.

    Raises:
        ConfigError: If a threshold is not a valid non-negative number, the
            default units could not be stored, or the log level is unknown.
    """
    load_dotenv(dotenv_path=env_path)

    expiry_days = _read_non_negative("EXPIRY_THRESHOLD_DAYS", "7", int)
    low_stock = _read_non_negative("LOW_STOCK_THRESHOLD_KG", "1.0", float)

    return Config(
        data_file=os.getenv("KITCHEN_STOCK_DATA_FILE", "data/ingredients.txt"),
        default_units=_read_units(),
        expiry_threshold_days=int(expiry_days),
        low_stock_threshold_kg=float(low_stock),
        log_level=_read_log_level(),
    )
