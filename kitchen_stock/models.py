"""Pydantic models and enums for Kitchen Stock.

This is the shared type system: the Ingredient value type, the date
helpers used by the parser and the storage codec, and the closed set of
command variants produced by the parser.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from enum import StrEnum
from typing import ClassVar, Literal

from pydantic import BaseModel, field_validator

DATE_FORMAT = "%d/%m/%Y"
DATE_FORMAT_DISPLAY = "dd/mm/yyyy"
RECORD_SEPARATOR = "|"

_DATE_RE = re.compile(r"\d{2}/\d{2}/\d{4}")

# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------


def string_to_date(text: str) -> date:
    """Parse a ``dd/mm/yyyy`` string into a date.

    Args:
        text: Raw date text (surrounding whitespace is ignored).

    Returns:
        The parsed calendar date.

    Raises:
        ValueError: If the text is not a valid date in the fixed format.
    """
    cleaned = text.strip()
    if not _DATE_RE.fullmatch(cleaned):
        raise ValueError(f"Date {text!r} is not in {DATE_FORMAT_DISPLAY} format")
    return datetime.strptime(cleaned, DATE_FORMAT).date()


def date_to_string(value: date) -> str:
    """Render a date in the fixed ``dd/mm/yyyy`` format.

    Args:
        value: Date to render.

    Returns:
        Formatted date string, always zero padded.
    """
    return f"{value.day:02d}/{value.month:02d}/{value.year:04d}"


def format_amount(amount: float) -> str:
    """Format an amount for display, dropping a trailing ``.0``."""
    return f"{amount:g}"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class AlertKind(StrEnum):
    """Which alerts the ``alerts`` command reports."""

    ALL = "all"
    EXPIRY = "expiry"
    STOCK = "stock"


class ThresholdKind(StrEnum):
    """Which threshold the ``set`` command changes."""

    EXPIRY = "expiry"
    STOCK = "stock"


# ---------------------------------------------------------------------------
# Ingredient
# ---------------------------------------------------------------------------


class Ingredient(BaseModel):
    """A named, quantified perishable item with a unit and expiry date."""

    name: str
    amount: float
    units: str = "kg"
    expiry: date

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        """Trim the name and reject empty or unpersistable names.

        Args:
            v: Raw name.

        Returns:
            Trimmed name.
        """
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("Ingredient name must not be empty")
        if RECORD_SEPARATOR in cleaned:
            raise ValueError(
                f"Ingredient name must not contain {RECORD_SEPARATOR!r}"
            )
        return cleaned

    @field_validator("amount")
    @classmethod
    def _check_amount(cls, v: float) -> float:
        """Reject negative, infinite and NaN amounts.

        Args:
            v: Parsed amount.

        Returns:
            The amount unchanged.
        """
        if not math.isfinite(v) or v < 0:
            raise ValueError(f"Amount must be a finite non-negative number, got {v}")
        return v

    @field_validator("units")
    @classmethod
    def _check_units(cls, v: str) -> str:
        cleaned = v.strip()
        if RECORD_SEPARATOR in cleaned:
            raise ValueError(f"Units must not contain {RECORD_SEPARATOR!r}")
        return cleaned

    def matches_name(self, name: str) -> bool:
        """Return True if ``name`` equals this ingredient's name, ignoring case."""
        return self.name.lower() == name.strip().lower()

    def __str__(self) -> str:
        return (
            f"{self.name} | Amount Left: {format_amount(self.amount)} {self.units}"
            f" | Expiry Date: {date_to_string(self.expiry)}"
        )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class ListCommand(BaseModel):
    """List every ingredient in the inventory."""

    kind: Literal["list"] = "list"
    mutates: ClassVar[bool] = False


class AddCommand(BaseModel):
    """Add an ingredient (or top up a matching batch)."""

    kind: Literal["add"] = "add"
    mutates: ClassVar[bool] = True
    ingredient: Ingredient


class SubtractCommand(BaseModel):
    """Take an amount of a named ingredient out of stock."""

    kind: Literal["subtract"] = "subtract"
    mutates: ClassVar[bool] = True
    name: str
    amount: float


class DeleteCommand(BaseModel):
    """Remove the batch of an ingredient with the given expiry text."""

    kind: Literal["delete"] = "delete"
    mutates: ClassVar[bool] = True
    name: str
    expiry: str


class UpdateCommand(BaseModel):
    """Replace the amount and expiry of an existing ingredient."""

    kind: Literal["update"] = "update"
    mutates: ClassVar[bool] = True
    ingredient: Ingredient


class DateCommand(BaseModel):
    """Change the current session date."""

    kind: Literal["date"] = "date"
    mutates: ClassVar[bool] = False
    raw_date: str


class HelpCommand(BaseModel):
    """Show the command summary."""

    kind: Literal["help"] = "help"
    mutates: ClassVar[bool] = False


class ExpireCommand(BaseModel):
    """List ingredients expiring on or before a cutoff date."""

    kind: Literal["expire"] = "expire"
    mutates: ClassVar[bool] = False
    before: date


class FindCommand(BaseModel):
    """Search ingredient names for each keyword."""

    kind: Literal["find"] = "find"
    mutates: ClassVar[bool] = False
    keywords: list[str]


class AlertsCommand(BaseModel):
    """Report expiring-soon and/or low-stock ingredients."""

    kind: Literal["alerts"] = "alerts"
    mutates: ClassVar[bool] = False
    alert: AlertKind


class SetThresholdCommand(BaseModel):
    """Change the expiry-alert or low-stock threshold."""

    kind: Literal["set"] = "set"
    mutates: ClassVar[bool] = False
    threshold: ThresholdKind
    value: float
    raw_value: str


class ExitCommand(BaseModel):
    """End the session."""

    kind: Literal["exit"] = "exit"
    mutates: ClassVar[bool] = False


class UnknownCommand(BaseModel):
    """An unrecognized keyword, reported as ordinary output."""

    kind: Literal["unknown"] = "unknown"
    mutates: ClassVar[bool] = False
    keyword: str = ""


Command = (
    ListCommand
    | AddCommand
    | SubtractCommand
    | DeleteCommand
    | UpdateCommand
    | DateCommand
    | HelpCommand
    | ExpireCommand
    | FindCommand
    | AlertsCommand
    | SetThresholdCommand
    | ExitCommand
    | UnknownCommand
)
