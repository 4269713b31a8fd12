"""
지수 이동평균 (EMA).

[ 계산 ]
    seed  = 처음 lookback개 종가의 SMA (lookback-1번째 날짜)
    k     = 2 / (lookback + 1)
    ema_i = (close_i - ema_{i-1}) × k + ema_{i-1}

    include_seed=False이면 seed 날짜 값은 결과에서 빠진다 (MACD 정렬용).
"""

from datetime import date
from decimal import Context, Decimal
from typing import Sequence

from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.indicators.base import (
    Indicator,
    IndicatorLine,
    validate_prices,
    verify_greater_than,
)
from systematic_trading.indicators.sma import simple_moving_average


def exponential_moving_average(
    dates: Sequence[date],
    values: Sequence[Decimal],
    lookback: int,
    context: Context,
    include_seed: bool = True,
) -> IndicatorLine:
    """(날짜, 값) 시계열의 EMA. 가격이 아닌 라인(MACD 등)에도 사용한다."""
    smoothing = context.divide(Decimal(2), Decimal(lookback + 1))
    seed = simple_moving_average(values[:lookback], lookback, context)[0]

    line = []
    if include_seed:
        line.append((dates[lookback - 1], seed))

    previous = seed
    for index in range(lookback, len(values)):
        difference = context.subtract(values[index], previous)
        previous = context.add(context.multiply(difference, smoothing), previous)
        line.append((dates[index], previous))

    return IndicatorLine(line)


class ExponentialMovingAverage(Indicator):
    """EMA(lookback)."""

    def __init__(
        self,
        lookback: int,
        context: Context,
        days_of_values: int = 1,
        include_seed: bool = True,
    ):
        verify_greater_than(0, lookback, "lookback")
        verify_greater_than(0, days_of_values, "days_of_values")
        self.lookback = lookback
        self.days_of_values = days_of_values
        self.include_seed = include_seed
        self.context = context

    def minimum_number_of_prices(self) -> int:
        seed_offset = 0 if self.include_seed else 1
        return self.lookback + seed_offset + self.days_of_values - 1

    def calculate(self, prices: Sequence[TradingDayPrice]) -> IndicatorLine:
        validate_prices(prices, self.minimum_number_of_prices())
        return exponential_moving_average(
            [price.date for price in prices],
            [price.close for price in prices],
            self.lookback,
            self.context,
            self.include_seed,
        )

    def __repr__(self) -> str:
        return f"EMA({self.lookback})"
