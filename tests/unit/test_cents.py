"""Tests for md_common.cents — integer price utilities."""

import pytest

from src.md_common.cents import cents_to_display, validate_price


class TestValidatePrice:
    def test_valid_prices(self) -> None:
        for p in [1, 9500, 12000, 1_000_000]:
            validate_price(p)  # Should not raise

    def test_zero_raises(self) -> None:
        with pytest.raises(ValueError, match="greater than 0"):
            validate_price(0)

    def test_negative_raises(self) -> None:
        with pytest.raises(ValueError, match="greater than 0"):
            validate_price(-500)

    def test_float_raises(self) -> None:
        with pytest.raises(ValueError, match="integer"):
            validate_price(95.5)  # type: ignore[arg-type]

    def test_bool_raises(self) -> None:
        with pytest.raises(ValueError, match="integer"):
            validate_price(True)


class TestCentsToDisplay:
    def test_basic(self) -> None:
        assert cents_to_display(12000) == "$120.00"

    def test_zero(self) -> None:
        assert cents_to_display(0) == "$0.00"

    def test_one_cent(self) -> None:
        assert cents_to_display(1) == "$0.01"

    def test_large(self) -> None:
        assert cents_to_display(150000) == "$1,500.00"

    def test_odd_cents(self) -> None:
        assert cents_to_display(9550) == "$95.50"

    def test_negative(self) -> None:
        assert cents_to_display(-1200) == "-$12.00"
