"""Command parser: turns one line of user input into a typed command.

Each command keyword has its own argument grammar. Field-based commands
(``add``, ``update``, ``subtract``, ``delete``) tag their arguments with
markers such as ``n/`` (name), ``a/`` (amount) and ``e/`` (expiry); the
remainder of the line is split on those markers and every field is
trimmed, checked for emptiness and converted to its domain type before
any command object is built.

Validation is all-or-nothing: ``parse_command`` either returns a complete
command or a ``CommandError`` describing the first problem found.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import date

from kitchen_stock.models import (
    DATE_FORMAT_DISPLAY,
    RECORD_SEPARATOR,
    AddCommand,
    AlertKind,
    AlertsCommand,
    Command,
    DateCommand,
    DeleteCommand,
    ExitCommand,
    ExpireCommand,
    FindCommand,
    HelpCommand,
    Ingredient,
    ListCommand,
    SetThresholdCommand,
    SubtractCommand,
    ThresholdKind,
    UnknownCommand,
    UpdateCommand,
    string_to_date,
)

logger = logging.getLogger(__name__)

INCORRECT_PARAMETERS_MESSAGE = "The number of parameters is wrong!"
NUMBER_FORMAT_ERROR_MESSAGE = "Invalid number format!"
EXPIRY_FORMAT_ERROR_MESSAGE = (
    "Invalid expiry date format!\n"
    f"Please key in the expiry date in the format {DATE_FORMAT_DISPLAY}!"
)
INVALID_ALERT_TYPE_MESSAGE = "Not an alert type!"
INVALID_INPUT_MESSAGE = "Invalid Input"

NAME_MARKER = "n/"
AMOUNT_MARKER = "a/"
EXPIRY_MARKER = "e/"

_INGREDIENT_MARKERS = (NAME_MARKER, AMOUNT_MARKER, EXPIRY_MARKER)
_SUBTRACT_MARKERS = (NAME_MARKER, AMOUNT_MARKER)
_DELETE_MARKERS = (NAME_MARKER, EXPIRY_MARKER)

# Largest day count a timedelta accepts
MAX_EXPIRY_DAYS = 999_999_999


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class CommandError(Exception):
    """Raised when user input cannot be turned into a valid command."""

    default_message = INVALID_INPUT_MESSAGE

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ParameterCountError(CommandError):
    """Raised when markers are missing, misordered or a field is empty."""

    default_message = INCORRECT_PARAMETERS_MESSAGE


class NumberFormatError(CommandError):
    """Raised when an amount or threshold is not a valid number."""

    default_message = NUMBER_FORMAT_ERROR_MESSAGE


class DateFormatError(CommandError):
    """Raised when a date is not a valid ``dd/mm/yyyy`` date."""

    default_message = EXPIRY_FORMAT_ERROR_MESSAGE


class UnknownAlertTypeError(CommandError):
    """Raised when ``alerts`` is given something other than all/expiry/stock."""

    default_message = INVALID_ALERT_TYPE_MESSAGE


class InvalidInputError(CommandError):
    """Raised for input that is well formed but not acceptable."""


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one input line: a command or an error."""

    command: Command | None = None
    error: CommandError | None = None

    @property
    def ok(self) -> bool:
        """Return True if parsing produced a command."""
        return self.error is None

    @classmethod
    def success(cls, command: Command) -> ParseResult:
        return cls(command=command)

    @classmethod
    def failure(cls, error: CommandError) -> ParseResult:
        return cls(error=error)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def split_marked_fields(text: str, markers: tuple[str, ...]) -> list[str]:
    """Split marker-tagged text into its trimmed field values.

    The text before the first marker is discarded. Each marker must occur
    exactly once, in the order given, and be followed by non-empty text.

    Args:
        text: Argument text following the command keyword.
        markers: Expected markers in order, e.g. ``("n/", "a/")``.

    Returns:
        One trimmed value per marker, in marker order.

    Raises:
        ParameterCountError: If the markers or field values do not line up.
    """
    pattern = "(" + "|".join(re.escape(m) for m in markers) + ")"
    parts = re.split(pattern, text)
    found = tuple(parts[1::2])
    values = [part.strip() for part in parts[2::2]]

    if found != markers:
        raise ParameterCountError()
    if any(not value for value in values):
        raise ParameterCountError()
    return values


def parse_amount(text: str) -> float:
    """Parse a finite, non-negative amount.

    Args:
        text: Raw amount text.

    Returns:
        The amount as a float.

    Raises:
        NumberFormatError: If the text is not a finite non-negative number.
    """
    try:
        amount = float(text)
    except ValueError:
        raise NumberFormatError() from None
    if not math.isfinite(amount) or amount < 0:
        raise NumberFormatError()
    return amount


def parse_date(text: str) -> date:
    """Parse a ``dd/mm/yyyy`` date.

    Args:
        text: Raw date text.

    Returns:
        The parsed date.

    Raises:
        DateFormatError: If the text is not a valid date.
    """
    try:
        return string_to_date(text)
    except ValueError:
        raise DateFormatError() from None


def _check_name(name: str) -> str:
    if RECORD_SEPARATOR in name:
        raise InvalidInputError(
            f"Ingredient names cannot contain '{RECORD_SEPARATOR}'!"
        )
    return name


# ---------------------------------------------------------------------------
# Per-command parsers
# ---------------------------------------------------------------------------


def _parse_ingredient(rest: str, default_units: str) -> Ingredient:
    """Parse the ``n/ a/ e/`` fields shared by ``add`` and ``update``."""
    name, raw_amount, raw_expiry = split_marked_fields(rest, _INGREDIENT_MARKERS)
    amount = parse_amount(raw_amount)
    expiry = parse_date(raw_expiry)
    return Ingredient(
        name=_check_name(name),
        amount=amount,
        units=default_units,
        expiry=expiry,
    )


def _parse_subtract(rest: str) -> SubtractCommand:
    name, raw_amount = split_marked_fields(rest, _SUBTRACT_MARKERS)
    return SubtractCommand(name=name, amount=parse_amount(raw_amount))


def _parse_delete(rest: str) -> DeleteCommand:
    # The expiry is a match key here and is compared as text.
    name, expiry = split_marked_fields(rest, _DELETE_MARKERS)
    return DeleteCommand(name=name, expiry=expiry)


def _parse_find(rest: str) -> FindCommand:
    keywords = rest.split(" ")
    if any(not keyword.strip() for keyword in keywords):
        raise ParameterCountError()
    return FindCommand(keywords=[keyword.strip() for keyword in keywords])


def _parse_alerts(rest: str) -> AlertsCommand:
    try:
        return AlertsCommand(alert=AlertKind(rest))
    except ValueError:
        raise UnknownAlertTypeError() from None


def _parse_set(rest: str) -> SetThresholdCommand:
    """Parse ``set expiry <days>`` or ``set stock <kg>``.

    Args:
        rest: Text following the ``set`` keyword.

    Returns:
        The threshold command.

    Raises:
        ParameterCountError: If the kind or value is missing.
        InvalidInputError: If the kind is not ``expiry`` or ``stock``.
        NumberFormatError: If the value is not a valid number for the kind.
    """
    tokens = rest.split(" ", 1)
    if len(tokens) < 2 or not tokens[0].strip() or not tokens[1].strip():
        raise ParameterCountError()

    kind, raw_value = tokens[0].strip(), tokens[1].strip()
    if kind == ThresholdKind.EXPIRY:
        try:
            days = int(raw_value)
        except ValueError:
            raise NumberFormatError() from None
        if not 0 <= days <= MAX_EXPIRY_DAYS:
            raise NumberFormatError()
        return SetThresholdCommand(
            threshold=ThresholdKind.EXPIRY, value=days, raw_value=raw_value
        )
    if kind == ThresholdKind.STOCK:
        return SetThresholdCommand(
            threshold=ThresholdKind.STOCK,
            value=parse_amount(raw_value),
            raw_value=raw_value,
        )
    raise InvalidInputError()


def _build_command(keyword: str, rest: str, default_units: str) -> Command:
    """Build the command for ``keyword``, raising CommandError on bad input."""
    match keyword:
        case "list":
            return ListCommand()
        case "add":
            return AddCommand(ingredient=_parse_ingredient(rest, default_units))
        case "subtract":
            return _parse_subtract(rest)
        case "delete":
            return _parse_delete(rest)
        case "update":
            return UpdateCommand(ingredient=_parse_ingredient(rest, default_units))
        case "date":
            return DateCommand(raw_date=rest.strip())
        case "help":
            return HelpCommand()
        case "expire":
            return ExpireCommand(before=parse_date(rest))
        case "find":
            return _parse_find(rest)
        case "alerts":
            return _parse_alerts(rest)
        case "set":
            return _parse_set(rest)
        case "exit" if not rest.strip():
            return ExitCommand()
        case _:
            return UnknownCommand(keyword=keyword)


def is_exit(line: str) -> bool:
    """Return True if ``line`` is the exit command."""
    return line.strip().lower() == "exit"


def parse_command(line: str, default_units: str = "kg") -> ParseResult:
    """Parse one line of user input.

    The first whitespace-delimited token (case-insensitive) selects the
    command; argument values keep the case they were typed in.

    Args:
        line: Raw input line.
        default_units: Units recorded on ingredients built by ``add``/``update``.

    Returns:
        A ParseResult holding either the command or the validation error.
    """
    words = line.strip().split(maxsplit=1)
    keyword = words[0].lower() if words else ""
    rest = words[1] if len(words) > 1 else ""

    try:
        command = _build_command(keyword, rest, default_units)
    except CommandError as err:
        logger.debug("Rejected %r: %s", line, err.message)
        return ParseResult.failure(err)
    return ParseResult.success(command)
