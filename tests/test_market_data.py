from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from systematic_trading.core.exceptions import ValidationError
from systematic_trading.data.market_data import (
    DataFramePriceProvider,
    load_csv,
    prices_from_frame,
    prices_to_frame,
)


@pytest.fixture
def frame():
    return pd.DataFrame({
        "date": ["2021-01-06", "2021-01-04", "2021-01-05"],
        "open": [10.2, 10.0, 10.1],
        "high": [10.5, 10.3, 10.4],
        "low": [10.0, 9.8, 9.9],
        "close": [10.4, 10.1, 10.2],
        "volume": [100, 200, 300],
    })


def test_prices_from_frame_sorted_decimal(frame):
    prices = prices_from_frame(frame)

    assert [price.date for price in prices] == [date(2021, 1, 4), date(2021, 1, 5), date(2021, 1, 6)]
    assert prices[0].close == Decimal("10.1")
    assert prices[2].high == Decimal("10.5")


def test_prices_to_frame(frame):
    df = prices_to_frame(prices_from_frame(frame))
    assert list(df.columns) == ["date", "open", "high", "low", "close"]
    assert df["close"].tolist() == [10.1, 10.2, 10.4]


def test_missing_columns_and_values(frame):
    with pytest.raises(ValidationError):
        prices_from_frame(frame.drop(columns=["low"]))

    frame.loc[1, "close"] = None
    with pytest.raises(ValidationError):
        prices_from_frame(frame)


def test_load_csv_normalises_columns(tmp_path, frame):
    path = tmp_path / "VGS.csv"
    frame.rename(columns=str.upper).to_csv(path, index=False)

    assert len(prices_from_frame(load_csv(path))) == 3


def test_provider_filters_and_caches(frame):
    provider = DataFramePriceProvider({"VGS": frame})

    prices = provider.get_prices("VGS", date(2021, 1, 5), date(2021, 1, 6))

    assert [price.date for price in prices] == [date(2021, 1, 5), date(2021, 1, 6)]
    assert provider.get_prices("VGS", date(2021, 1, 5), date(2021, 1, 6)) is prices
    assert provider.get_tickers() == ["VGS"]

    provider.clear_cache()
    assert provider.get_prices("VGS", date(2021, 1, 5), date(2021, 1, 6)) is not prices

    with pytest.raises(ValidationError):
        provider.get_prices("IVV", date(2021, 1, 5), date(2021, 1, 6))
