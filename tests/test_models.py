"""Tests for kitchen_stock.models module."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from kitchen_stock.models import (
    AddCommand,
    AlertKind,
    DeleteCommand,
    ExitCommand,
    Ingredient,
    ListCommand,
    SetThresholdCommand,
    SubtractCommand,
    ThresholdKind,
    UnknownCommand,
    UpdateCommand,
    date_to_string,
    format_amount,
    string_to_date,
)

# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------


class TestStringToDate:
    """Tests for string_to_date."""

    def test_parses_valid_date(self) -> None:
        """Test a well-formed date is parsed."""
        assert string_to_date("05/03/2022") == date(2022, 3, 5)

    def test_strips_whitespace(self) -> None:
        """Test surrounding whitespace is ignored."""
        assert string_to_date("  31/12/2021 ") == date(2021, 12, 31)

    @pytest.mark.parametrize(
        "text",
        ["32/13/2021", "31/02/2021", "5/3/2022", "2022-03-05", "", "05/03/22"],
    )
    def test_rejects_invalid_dates(self, text: str) -> None:
        """Test malformed or impossible dates raise ValueError."""
        with pytest.raises(ValueError):
            string_to_date(text)


class TestDateToString:
    """Tests for date_to_string."""

    def test_zero_pads(self) -> None:
        """Test day and month are rendered with two digits."""
        assert date_to_string(date(2022, 3, 5)) == "05/03/2022"


class TestFormatAmount:
    """Tests for format_amount."""

    def test_whole_number(self) -> None:
        """Test whole amounts drop the decimal part."""
        assert format_amount(2.0) == "2"

    def test_fraction(self) -> None:
        """Test fractional amounts keep their decimals."""
        assert format_amount(0.25) == "0.25"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class TestEnums:
    """Tests for AlertKind and ThresholdKind."""

    def test_alert_values(self) -> None:
        """Test all alert kinds exist."""
        assert {a.value for a in AlertKind} == {"all", "expiry", "stock"}

    def test_threshold_values(self) -> None:
        """Test both threshold kinds exist."""
        assert {t.value for t in ThresholdKind} == {"expiry", "stock"}


# ---------------------------------------------------------------------------
# Ingredient
# ---------------------------------------------------------------------------


class TestIngredient:
    """Tests for the Ingredient model."""

    def test_name_is_trimmed(self) -> None:
        """Test surrounding whitespace is removed from the name."""
        ing = Ingredient(name="  egg ", amount=1.0, expiry=date(2022, 1, 1))
        assert ing.name == "egg"
        assert ing.units == "kg"

    def test_empty_name_rejected(self) -> None:
        """Test a blank name fails validation."""
        with pytest.raises(ValidationError):
            Ingredient(name="   ", amount=1.0, expiry=date(2022, 1, 1))

    def test_pipe_in_name_rejected(self) -> None:
        """Test a name containing the record separator fails validation."""
        with pytest.raises(ValidationError):
            Ingredient(name="salt|pepper", amount=1.0, expiry=date(2022, 1, 1))

    def test_pipe_in_units_rejected(self) -> None:
        """Test units containing the record separator fail validation."""
        with pytest.raises(ValidationError):
            Ingredient(name="egg", amount=1.0, units="k|g", expiry=date(2022, 1, 1))

    @pytest.mark.parametrize("amount", [-1.0, float("nan"), float("inf")])
    def test_bad_amount_rejected(self, amount: float) -> None:
        """Test negative and non-finite amounts fail validation."""
        with pytest.raises(ValidationError):
            Ingredient(name="egg", amount=amount, expiry=date(2022, 1, 1))

    def test_matches_name_case_insensitive(self) -> None:
        """Test name matching ignores case and whitespace."""
        ing = Ingredient(name="Milk", amount=1.0, expiry=date(2022, 1, 1))
        assert ing.matches_name(" milk ")
        assert not ing.matches_name("milkshake")

    def test_str(self) -> None:
        """Test the display form includes amount, units and expiry."""
        ing = Ingredient(name="flour", amount=2.5, units="kg", expiry=date(2022, 1, 9))
        assert str(ing) == "flour | Amount Left: 2.5 kg | Expiry Date: 09/01/2022"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestCommands:
    """Tests for the command variants."""

    def test_mutating_commands(self) -> None:
        """Test only collection-changing commands are flagged as mutating."""
        ing = Ingredient(name="egg", amount=1.0, expiry=date(2022, 1, 1))
        assert AddCommand(ingredient=ing).mutates
        assert UpdateCommand(ingredient=ing).mutates
        assert SubtractCommand(name="egg", amount=1.0).mutates
        assert DeleteCommand(name="egg", expiry="01/01/2022").mutates
        assert not ListCommand().mutates
        assert not ExitCommand().mutates
        assert not UnknownCommand(keyword="x").mutates

    def test_kind_tags(self) -> None:
        """Test each variant carries its keyword as kind."""
        cmd = SetThresholdCommand(
            threshold=ThresholdKind.STOCK, value=0.5, raw_value="0.5"
        )
        assert cmd.kind == "set"
        assert ListCommand().kind == "list"
