from datetime import date
from decimal import ROUND_HALF_EVEN, Decimal

import pytest

from systematic_trading.core.data_provider import TradingDayPrice, validate_price_series
from systematic_trading.core.events import ListenerRegistry
from systematic_trading.core.exceptions import DuplicateDate, ValidationError
from systematic_trading.utils.decimals import DECIMAL64, create_context, scale_quantum, to_decimal


def _price(day, close="10"):
    value = Decimal(close)
    return TradingDayPrice(day, value, value, value, value)


def test_default_context_is_decimal64():
    assert DECIMAL64.prec == 16
    assert DECIMAL64.rounding == ROUND_HALF_EVEN

    ctx = create_context(8, "round_down")
    assert ctx.prec == 8
    assert ctx.divide(Decimal(2), Decimal(3)) == Decimal("0.66666666")


def test_create_context_rejects_bad_values():
    with pytest.raises(ValueError):
        create_context(0)
    with pytest.raises(ValueError):
        create_context(16, "getcontext")


def test_to_decimal_avoids_binary_noise():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal("7.5") == Decimal("7.5")
    assert to_decimal(3) == Decimal(3)
    assert scale_quantum(2) == Decimal("0.01")


def test_price_series_sorted_ascending():
    days = [date(2021, 1, 6), date(2021, 1, 4), date(2021, 1, 5)]
    ordered = validate_price_series([_price(day) for day in days])
    assert [price.date for price in ordered] == sorted(days)


def test_duplicate_date_rejected():
    series = [_price(date(2021, 1, 4)), _price(date(2021, 1, 5)), _price(date(2021, 1, 4), "11")]
    with pytest.raises(DuplicateDate) as excinfo:
        validate_price_series(series)
    assert excinfo.value.date == date(2021, 1, 4)
    assert isinstance(excinfo.value, ValidationError)


def test_listener_registry_is_ordered_set():
    calls = []
    first = lambda event: calls.append(("first", event))
    second = lambda event: calls.append(("second", event))

    registry = ListenerRegistry()
    registry.add(first)
    registry.add(second)
    registry.add(first)
    assert len(registry) == 2

    registry.notify(1)
    assert calls == [("first", 1), ("second", 1)]

    registry.remove(first)
    assert first not in registry
    registry.notify(2)
    assert calls[-1] == ("second", 2)
