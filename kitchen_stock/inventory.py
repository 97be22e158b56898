"""Inventory state and command execution.

Holds the in-memory ingredient collection together with the session date
and the alert thresholds, and runs parsed commands against it. Every
handler returns the text shown to the user; only ``add``, ``subtract``,
``delete`` and ``update`` change the collection.

Key business rules:
- An ingredient is identified by name (case-insensitive); several batches
  of the same name with different expiry dates may coexist.
- Subtracting takes stock from the earliest-expiring batch first.
- ``alerts expiry`` flags batches expiring within the configured number of
  days of the session date (already expired batches included).
- ``alerts stock`` flags batches whose amount is below the threshold.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import TYPE_CHECKING, assert_never

from kitchen_stock.models import (
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
    date_to_string,
    format_amount,
)
from kitchen_stock.parser import CommandError, parse_command, parse_date
from kitchen_stock.storage import StorageError

if TYPE_CHECKING:
    from kitchen_stock.config import Config
    from kitchen_stock.storage import IngredientStorage

logger = logging.getLogger(__name__)

INVALID_COMMAND_MESSAGE = "Invalid command!"
NOT_FOUND_MESSAGE = "Ingredient not found!"
EMPTY_INVENTORY_MESSAGE = "There is nothing in the inventory!"

HELP_MESSAGE = "\n".join(
    [
        "Here are the commands you can use:",
        "  list                                      show every ingredient",
        "  add n/NAME a/AMOUNT e/DD/MM/YYYY          add an ingredient",
        "  subtract n/NAME a/AMOUNT                  use up some of an ingredient",
        "  delete n/NAME e/DD/MM/YYYY                remove one batch",
        "  update n/NAME a/AMOUNT e/DD/MM/YYYY       change amount and expiry",
        "  find KEYWORD [KEYWORD ...]                search by name",
        "  expire DD/MM/YYYY                         ingredients expiring by a date",
        "  alerts all|expiry|stock                   show alerts",
        "  set expiry DAYS                           expiry alert threshold",
        "  set stock KG                              low stock alert threshold",
        "  date DD/MM/YYYY                           change the session date",
        "  help                                      show this message",
        "  exit                                      save and quit",
    ]
)

_EPSILON = 1e-9


@dataclass
class InventoryState:
    """Everything a command may read or change during a session."""

    ingredients: list[Ingredient] = field(default_factory=list)
    session_date: date = field(default_factory=date.today)
    expiry_threshold_days: int = 7
    low_stock_threshold_kg: float = 1.0

    @classmethod
    def from_config(
        cls,
        config: Config,
        ingredients: list[Ingredient] | None = None,
        today: date | None = None,
    ) -> InventoryState:
        """Create the startup state from configuration defaults.

        Args:
            config: Application configuration.
            ingredients: Inventory loaded from storage.
            today: Session date (defaults to the current date).

        Returns:
            A fresh InventoryState.
        """
        return cls(
            ingredients=list(ingredients or []),
            session_date=today or date.today(),
            expiry_threshold_days=config.expiry_threshold_days,
            low_stock_threshold_kg=config.low_stock_threshold_kg,
        )

    def find_by_name(self, name: str) -> list[int]:
        """Return indices of every batch named ``name`` (case-insensitive)."""
        return [i for i, ing in enumerate(self.ingredients) if ing.matches_name(name)]


# ------------------------------------------------------------------
# Formatting
# ------------------------------------------------------------------


def _format_numbered(items: list[Ingredient]) -> str:
    return "\n".join(f"\t{n}. {item}" for n, item in enumerate(items, start=1))


# ------------------------------------------------------------------
# Handlers
# ------------------------------------------------------------------


def _run_list(state: InventoryState) -> str:
    if not state.ingredients:
        return EMPTY_INVENTORY_MESSAGE
    return (
        "Here is the list of ingredients currently in stock:\n"
        + _format_numbered(state.ingredients)
    )


def _run_add(command: AddCommand, state: InventoryState) -> str:
    """Add an ingredient, topping up a batch with the same name and expiry."""
    new = command.ingredient
    for i, existing in enumerate(state.ingredients):
        if existing.matches_name(new.name) and existing.expiry == new.expiry:
            merged = existing.model_copy(
                update={"amount": existing.amount + new.amount}
            )
            state.ingredients[i] = merged
            return (
                "Got it. This ingredient has been topped up:\n"
                f"\t{merged}"
            )

    state.ingredients.append(new)
    return (
        "Got it. This ingredient has been added to the inventory:\n"
        f"\t{new}\n"
        f"Current inventory has {len(state.ingredients)} item(s)."
    )


def _run_subtract(command: SubtractCommand, state: InventoryState) -> str:
    """Subtract stock from the earliest-expiring batches first.

    Args:
        command: Parsed subtract command.
        state: Session state.

    Returns:
        Confirmation, or a not-found / not-enough message.
    """
    indices = state.find_by_name(command.name)
    if not indices:
        return NOT_FOUND_MESSAGE

    batches = sorted(indices, key=lambda i: state.ingredients[i].expiry)
    total = sum(state.ingredients[i].amount for i in batches)
    if total + _EPSILON < command.amount:
        return (
            f"Not enough {command.name} in stock! "
            f"Only {format_amount(total)} {state.ingredients[batches[0]].units} left."
        )

    units = state.ingredients[batches[0]].units
    remaining = command.amount
    emptied: list[int] = []
    for i in batches:
        if remaining <= 0:
            break
        batch = state.ingredients[i]
        taken = min(batch.amount, remaining)
        left = batch.amount - taken
        remaining -= taken
        if math.isclose(left, 0.0, abs_tol=_EPSILON):
            emptied.append(i)
        else:
            state.ingredients[i] = batch.model_copy(update={"amount": left})

    for i in sorted(emptied, reverse=True):
        del state.ingredients[i]

    left_total = max(total - command.amount, 0.0)
    return (
        f"Got it. {format_amount(command.amount)} {units} of {command.name} "
        "has been subtracted.\n"
        f"Amount left: {format_amount(left_total)} {units}"
    )


def _run_delete(command: DeleteCommand, state: InventoryState) -> str:
    for i, ingredient in enumerate(state.ingredients):
        if (
            ingredient.matches_name(command.name)
            and date_to_string(ingredient.expiry) == command.expiry
        ):
            del state.ingredients[i]
            return (
                "Got it. This ingredient has been removed from the inventory:\n"
                f"\t{ingredient}"
            )
    return NOT_FOUND_MESSAGE


def _run_update(command: UpdateCommand, state: InventoryState) -> str:
    """Update the first batch with the same name.

    Returns an empty string when there is no such ingredient; the caller
    substitutes the not-found message.
    """
    new = command.ingredient
    indices = state.find_by_name(new.name)
    if not indices:
        return ""
    i = indices[0]
    updated = state.ingredients[i].model_copy(
        update={"amount": new.amount, "expiry": new.expiry}
    )
    state.ingredients[i] = updated
    return f"Got it. This ingredient has been updated:\n\t{updated}"


def _find_one(keyword: str, state: InventoryState) -> str:
    needle = keyword.lower()
    matches = [ing for ing in state.ingredients if needle in ing.name.lower()]
    if not matches:
        return f"No ingredients found for '{keyword}'!"
    return f"Here are the ingredients matching '{keyword}':\n" + _format_numbered(
        matches
    )


def _run_find(command: FindCommand, state: InventoryState) -> str:
    return "\n".join(_find_one(keyword, state) for keyword in command.keywords)


def _run_date(command: DateCommand, state: InventoryState) -> str:
    """Change the session date.

    Raises:
        DateFormatError: If the date text is invalid (state is unchanged).
    """
    new_date = parse_date(command.raw_date)
    state.session_date = new_date
    logger.info("Session date changed to %s", new_date.isoformat())
    return f"Current session date changed to {date_to_string(new_date)}"


def _expiring_by(cutoff: date, state: InventoryState) -> list[Ingredient]:
    return [ing for ing in state.ingredients if ing.expiry <= cutoff]


def _run_expire(command: ExpireCommand, state: InventoryState) -> str:
    cutoff = date_to_string(command.before)
    matches = _expiring_by(command.before, state)
    if not matches:
        return f"No ingredients expiring by {cutoff}!"
    return f"Here are the ingredients expiring by {cutoff}:\n" + _format_numbered(
        matches
    )


def _expiry_alerts(state: InventoryState) -> str:
    days = state.expiry_threshold_days
    try:
        cutoff = state.session_date + timedelta(days=days)
    except OverflowError:
        cutoff = date.max
    matches = _expiring_by(cutoff, state)
    if not matches:
        return f"No ingredients expiring within {days} day(s)!"
    return f"Ingredients expiring within {days} day(s):\n" + _format_numbered(
        matches
    )


def _stock_alerts(state: InventoryState) -> str:
    threshold = format_amount(state.low_stock_threshold_kg)
    matches = [
        ing
        for ing in state.ingredients
        if ing.amount < state.low_stock_threshold_kg
    ]
    if not matches:
        return f"No ingredients below {threshold} kg!"
    return f"Ingredients below {threshold} kg:\n" + _format_numbered(matches)


def _run_alerts(command: AlertsCommand, state: InventoryState) -> str:
    match command.alert:
        case AlertKind.EXPIRY:
            return _expiry_alerts(state)
        case AlertKind.STOCK:
            return _stock_alerts(state)
        case AlertKind.ALL:
            return _expiry_alerts(state) + "\n" + _stock_alerts(state)
    assert_never(command.alert)


def _run_set(command: SetThresholdCommand, state: InventoryState) -> str:
    if command.threshold == ThresholdKind.EXPIRY:
        state.expiry_threshold_days = int(command.value)
        return f"Successfully set expiry threshold to {command.raw_value} days"
    state.low_stock_threshold_kg = command.value
    return f"Successfully set low stock threshold to {command.raw_value} kg"


# ------------------------------------------------------------------
# Dispatch
# ------------------------------------------------------------------


def execute(command: Command, state: InventoryState) -> str:
    """Run a parsed command against the session state.

    Args:
        command: A validated command from the parser.
        state: Session state, mutated in place by changing commands.

    Returns:
        The text to display.

    Raises:
        CommandError: If a handler rejects its arguments (``date`` only).
    """
    match command:
        case ListCommand():
            return _run_list(state)
        case AddCommand():
            return _run_add(command, state)
        case SubtractCommand():
            return _run_subtract(command, state)
        case DeleteCommand():
            return _run_delete(command, state)
        case UpdateCommand():
            return _run_update(command, state) or NOT_FOUND_MESSAGE
        case DateCommand():
            return _run_date(command, state)
        case HelpCommand():
            return HELP_MESSAGE
        case ExpireCommand():
            return _run_expire(command, state)
        case FindCommand():
            return _run_find(command, state)
        case AlertsCommand():
            return _run_alerts(command, state)
        case SetThresholdCommand():
            return _run_set(command, state)
        case ExitCommand():
            return ""
        case UnknownCommand():
            return INVALID_COMMAND_MESSAGE
        case _:
            assert_never(command)


class InventorySession:
    """Parses, runs and persists commands for one interactive session.

    Args:
        state: Session state (already loaded from storage).
        storage: Where the collection is saved after changing commands.
        default_units: Units recorded on ingredients entered by the user.
    """

    def __init__(
        self,
        state: InventoryState,
        storage: IngredientStorage,
        default_units: str = "kg",
    ) -> None:
        self.state = state
        self._storage = storage
        self._default_units = default_units

    def handle_line(self, line: str) -> str:
        """Process one line of input and return the text to display.

        Args:
            line: Raw user input.

        Returns:
            Handler output, or the error message if the input was rejected.
        """
        result = parse_command(line, self._default_units)
        if not result.ok:
            return result.error.message

        command = result.command
        try:
            output = execute(command, self.state)
        except CommandError as err:
            return err.message

        if command.mutates:
            try:
                self.save()
            except StorageError as err:
                logger.error("Save failed: %s", err)
                output = f"{output}\n{err}"
        return output

    def save(self) -> None:
        """Write the current collection to storage.

        Raises:
            StorageError: If the file cannot be written.
        """
        self._storage.save(self.state.ingredients)
