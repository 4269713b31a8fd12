"""
MACD (이동평균 수렴/확산).

[ 계산 ]
    macd[d]     = 빠른 EMA[d] - 느린 EMA[d]   (두 라인에 모두 있는 날짜, seed 날짜 제외)
    signal_line = macd 값들에 대한 EMA(signal)

[ 반환 ]
    calculate()는 macd 라인을, calculate_lines()는 macd + signal 라인을 함께 반환.
"""

from dataclasses import dataclass
from decimal import Context
from typing import Sequence

from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.core.exceptions import ValidationError
from systematic_trading.indicators.base import (
    Indicator,
    IndicatorLine,
    validate_prices,
    verify_greater_than,
)
from systematic_trading.indicators.ema import ExponentialMovingAverage, exponential_moving_average


@dataclass(frozen=True)
class MacdLines:
    macd: IndicatorLine
    signal_line: IndicatorLine


class MovingAverageConvergenceDivergence(Indicator):
    """MACD(fast, slow, signal)."""

    def __init__(self, fast: int, slow: int, signal: int, context: Context, days_of_values: int = 1):
        verify_greater_than(0, fast, "fast")
        verify_greater_than(0, signal, "signal")
        verify_greater_than(0, days_of_values, "days_of_values")
        if slow <= fast:
            raise ValidationError(f"느린 EMA 기간({slow})은 빠른 EMA 기간({fast})보다 커야 합니다")
        self.fast = fast
        self.slow = slow
        self.signal = signal
        self.days_of_values = days_of_values
        self.context = context
        self._fast_ema = ExponentialMovingAverage(fast, context, include_seed=False)
        self._slow_ema = ExponentialMovingAverage(slow, context, include_seed=False)

    def minimum_number_of_prices(self) -> int:
        return self.slow + self.signal + self.days_of_values - 1

    def calculate(self, prices: Sequence[TradingDayPrice]) -> IndicatorLine:
        return self.calculate_lines(prices).macd

    def signal_input(self, prices: Sequence[TradingDayPrice]) -> MacdLines:
        return self.calculate_lines(prices)

    def calculate_lines(self, prices: Sequence[TradingDayPrice]) -> MacdLines:
        validate_prices(prices, self.minimum_number_of_prices())
        fast = self._fast_ema.calculate(prices)
        slow = self._slow_ema.calculate(prices)

        macd = IndicatorLine([
            (day, self.context.subtract(fast[day], slow_value))
            for day, slow_value in slow.items()
            if day in fast
        ])
        signal_line = exponential_moving_average(
            macd.dates(), macd.values_list(), self.signal, self.context
        )
        return MacdLines(macd=macd, signal_line=signal_line)

    def __repr__(self) -> str:
        return f"MACD({self.fast}, {self.slow}, {self.signal})"
