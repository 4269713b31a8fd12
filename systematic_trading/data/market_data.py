"""
시장 데이터 변환 모듈.

[ 역할 ]
    pandas DataFrame(OHLCV) ↔ TradingDayPrice 변환과 DataFrame 기반 PriceProvider.
    같은 (종목, 기간) 조회는 캐시에서 즉시 반환.

[ 의존성 ]
    - core/data_provider.py::PriceProvider, TradingDayPrice

[ 호출하는 곳 ]
    - run_backtest.py (샘플 데이터 / CSV → 시뮬레이션 입력)
"""

from datetime import date
from pathlib import Path

import pandas as pd

from systematic_trading.core.data_provider import PriceProvider, TradingDayPrice
from systematic_trading.core.exceptions import ValidationError
from systematic_trading.utils.decimals import to_decimal

PRICE_COLUMNS = ["open", "high", "low", "close"]


def prices_from_frame(df: pd.DataFrame) -> list[TradingDayPrice]:
    """DataFrame (columns: date, open, high, low, close) → 날짜순 TradingDayPrice 목록."""
    missing = [column for column in ["date", *PRICE_COLUMNS] if column not in df.columns]
    if missing:
        raise ValidationError(f"가격 데이터에 컬럼이 없습니다: {missing}")
    if df[PRICE_COLUMNS].isna().any().any():
        raise ValidationError("가격 데이터에 비어 있는 값이 있습니다 (보정 후 사용)")

    frame = df.copy()
    frame["date"] = pd.to_datetime(frame["date"]).dt.date
    frame = frame.sort_values("date")

    return [
        TradingDayPrice(
            date=row.date,
            open=to_decimal(float(row.open)),
            high=to_decimal(float(row.high)),
            low=to_decimal(float(row.low)),
            close=to_decimal(float(row.close)),
        )
        for row in frame.itertuples(index=False)
    ]


def prices_to_frame(prices: list[TradingDayPrice]) -> pd.DataFrame:
    """TradingDayPrice 목록 → DataFrame (리포트/저장용, float 변환)."""
    return pd.DataFrame([
        {
            "date": price.date,
            "open": float(price.open),
            "high": float(price.high),
            "low": float(price.low),
            "close": float(price.close),
        }
        for price in prices
    ])


def load_csv(path: str | Path) -> pd.DataFrame:
    """CSV (date, open, high, low, close[, volume]) 로드."""
    df = pd.read_csv(path)
    df.columns = [str(column).strip().lower() for column in df.columns]
    return df


class DataFramePriceProvider(PriceProvider):
    """{ticker: OHLCV DataFrame}을 감싼 PriceProvider (캐싱 지원).

    사용 예:
        provider = DataFramePriceProvider({"VGS": df})
        prices = provider.get_prices("VGS", start, end)
    """

    def __init__(self, frames: dict[str, pd.DataFrame]):
        self.frames = frames
        self._cache: dict[str, list[TradingDayPrice]] = {}  # "ticker_start_end" → 가격 목록

    def get_prices(self, ticker: str, start_date: date, end_date: date) -> list[TradingDayPrice]:
        cache_key = f"{ticker}_{start_date}_{end_date}"
        if cache_key in self._cache:
            return self._cache[cache_key]
        if ticker not in self.frames:
            raise ValidationError(f"알 수 없는 종목: {ticker}")

        prices = [
            price for price in prices_from_frame(self.frames[ticker])
            if start_date <= price.date <= end_date
        ]
        self._cache[cache_key] = prices
        return prices

    def get_tickers(self) -> list[str]:
        return sorted(self.frames)

    def clear_cache(self) -> None:
        """캐시 초기화."""
        self._cache.clear()
