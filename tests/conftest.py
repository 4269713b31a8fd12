from datetime import date, timedelta
from decimal import Decimal

import pytest

from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.utils.decimals import create_context


def make_prices(closes, start=date(2021, 1, 4), opens=None):
    """종가 목록 → 연속 일자 TradingDayPrice (주말 포함)."""
    prices = []
    for index, close in enumerate(closes):
        close = Decimal(str(close))
        open_price = Decimal(str(opens[index])) if opens else close
        prices.append(TradingDayPrice(
            date=start + timedelta(days=index),
            open=open_price,
            high=max(open_price, close),
            low=min(open_price, close),
            close=close,
        ))
    return prices


@pytest.fixture
def ctx():
    return create_context()


@pytest.fixture
def prices():
    return make_prices
