"""Flat-file persistence for the ingredient inventory.

Each ingredient is stored on its own line as four pipe-separated fields::

    <name>|<amount>|<units>|<dd/mm/yyyy>

Older files may hold three-field lines (``<name>|<amount>|<dd/mm/yyyy>``);
these are still read, with the configured default unit filled in. The file
is always written back in the four-field form.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from kitchen_stock.models import (
    RECORD_SEPARATOR,
    Ingredient,
    date_to_string,
    string_to_date,
)

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = "data/ingredients.txt"

_CANONICAL_FIELD_COUNT = 4
_LEGACY_FIELD_COUNT = 3


class StorageError(Exception):
    """Raised when the inventory file cannot be written."""


class RecordFormatError(ValueError):
    """Raised when a stored line cannot be turned into an Ingredient."""


def format_record(ingredient: Ingredient) -> str:
    """Render an ingredient as one canonical storage line (no newline).

    Args:
        ingredient: Ingredient to serialize.

    Returns:
        The pipe-delimited record.
    """
    return RECORD_SEPARATOR.join(
        (
            ingredient.name,
            repr(ingredient.amount),
            ingredient.units,
            date_to_string(ingredient.expiry),
        )
    )


def parse_record(line: str, default_units: str = "kg") -> Ingredient:
    """Parse one stored line in either the canonical or legacy layout.

    Args:
        line: A single line from the inventory file.
        default_units: Units used for legacy three-field lines.

    Returns:
        The reconstructed Ingredient.

    Raises:
        RecordFormatError: If the line has too few fields or a bad value.
    """
    fields = [field.strip() for field in line.split(RECORD_SEPARATOR, 3)]

    if len(fields) == _CANONICAL_FIELD_COUNT:
        name, raw_amount, units, raw_expiry = fields
    elif len(fields) == _LEGACY_FIELD_COUNT:
        name, raw_amount, raw_expiry = fields
        units = default_units
    else:
        raise RecordFormatError(
            f"Expected {_LEGACY_FIELD_COUNT} or {_CANONICAL_FIELD_COUNT} fields, "
            f"got {len(fields)}"
        )

    try:
        amount = float(raw_amount)
    except ValueError:
        raise RecordFormatError(
            f"Wrong ingredient amount format: {raw_amount!r}"
        ) from None
    try:
        expiry = string_to_date(raw_expiry)
    except ValueError:
        raise RecordFormatError(f"Wrong expiry date format: {raw_expiry!r}") from None

    try:
        return Ingredient(name=name, amount=amount, units=units, expiry=expiry)
    except ValidationError as err:
        raise RecordFormatError(f"Invalid ingredient: {err.errors()[0]['msg']}") from err


class IngredientStorage:
    """Loads and saves the ingredient collection as a pipe-delimited file.

    The directory and file are created on construction if they do not
    exist yet. Saving always overwrites the whole file.

    Args:
        path: Location of the inventory file.
        default_units: Units substituted for legacy three-field lines.
    """

    def __init__(
        self, path: str | Path = DEFAULT_DATA_FILE, default_units: str = "kg"
    ) -> None:
        self._path = Path(path)
        self._default_units = default_units
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.touch(exist_ok=True)

    @property
    def path(self) -> Path:
        """Location of the backing file."""
        return self._path

    def load(self) -> list[Ingredient]:
        """Read every ingredient from the backing file.

        Lines that cannot be parsed are logged and skipped. If the file
        cannot be opened at all an empty inventory is returned.

        Returns:
            Ingredients in file order.
        """
        ingredients: list[Ingredient] = []
        try:
            with self._path.open("rb") as fh:
                for line_no, raw in enumerate(fh, start=1):
                    try:
                        line = raw.decode("utf-8").rstrip("\r\n")
                    except UnicodeDecodeError:
                        logger.warning(
                            "Skipping line %d of %s: not valid UTF-8",
                            line_no,
                            self._path,
                        )
                        continue
                    if not line.strip():
                        continue
                    try:
                        ingredients.append(parse_record(line, self._default_units))
                    except RecordFormatError as err:
                        logger.warning(
                            "Skipping line %d of %s: %s", line_no, self._path, err
                        )
        except OSError:
            logger.warning("Cannot open the saved inventory file %s", self._path)
            return []

        logger.info("Loaded %d ingredient(s) from %s", len(ingredients), self._path)
        return ingredients

    def save(self, ingredients: list[Ingredient]) -> None:
        """Overwrite the backing file with ``ingredients``.

        Args:
            ingredients: The full inventory, in collection order.

        Raises:
            StorageError: If the file cannot be written.
        """
        try:
            with self._path.open("w", encoding="utf-8") as fh:
                for ingredient in ingredients:
                    fh.write(format_record(ingredient) + "\n")
        except OSError as err:
            raise StorageError(f"Could not save inventory to {self._path}: {err}") from err
        logger.debug("Saved %d ingredient(s) to %s", len(ingredients), self._path)
