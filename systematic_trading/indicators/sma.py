"""
단순 이동평균 (SMA).

[ 계산 ]
    lookback개 종가의 산술 평균을 한 칸씩 밀면서 계산.
    결과 길이 = 입력 길이 - lookback + 1
"""

from decimal import Context, Decimal
from typing import Sequence

from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.indicators.base import (
    Indicator,
    IndicatorLine,
    validate_prices,
    verify_greater_than,
)


def simple_moving_average(values: Sequence[Decimal], lookback: int, context: Context) -> list[Decimal]:
    """values에 대한 이동평균 목록 (values[lookback-1]부터)."""
    divisor = Decimal(lookback)
    averages = []
    for end in range(lookback, len(values) + 1):
        total = Decimal(0)
        for value in values[end - lookback:end]:
            total = context.add(total, value)
        averages.append(context.divide(total, divisor))
    return averages


class SimpleMovingAverage(Indicator):
    """SMA(lookback). days_of_values는 신호 판단에 필요한 결과 값 개수."""

    def __init__(self, lookback: int, context: Context, days_of_values: int = 1):
        verify_greater_than(0, lookback, "lookback")
        verify_greater_than(0, days_of_values, "days_of_values")
        self.lookback = lookback
        self.days_of_values = days_of_values
        self.context = context

    def minimum_number_of_prices(self) -> int:
        return self.lookback + self.days_of_values - 1

    def calculate(self, prices: Sequence[TradingDayPrice]) -> IndicatorLine:
        validate_prices(prices, self.minimum_number_of_prices())
        closes = [price.close for price in prices]
        averages = simple_moving_average(closes, self.lookback, self.context)
        dates = [price.date for price in prices[self.lookback - 1:]]
        return IndicatorLine(list(zip(dates, averages)))

    def __repr__(self) -> str:
        return f"SMA({self.lookback})"
