"""
상대강도 (RS) / 상대강도지수 (RSI).

[ 계산 - Wilder 평활 ]
    상승폭/하락폭 = 전일 대비 종가 변화의 양/음 부분
    초기 평균   = 처음 lookback번 변화의 단순 평균 (lookback번째 날짜의 RS)
    이후 평균   = (평균 × (lookback - 1) + 당일 값) / lookback
    RS          = 평균 상승폭 / 평균 하락폭 (하락폭 평균이 0이면 평균 상승폭)
    RSI         = 100 - 100 / (1 + RS)
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
from systematic_trading.utils.decimals import ONE, ONE_HUNDRED, ZERO


class RelativeStrength(Indicator):
    """RS(lookback)."""

    def __init__(self, lookback: int, context: Context, days_of_values: int = 1):
        verify_greater_than(0, lookback, "lookback")
        verify_greater_than(0, days_of_values, "days_of_values")
        self.lookback = lookback
        self.days_of_values = days_of_values
        self.context = context

    def minimum_number_of_prices(self) -> int:
        return self.lookback + self.days_of_values

    def calculate(self, prices: Sequence[TradingDayPrice]) -> IndicatorLine:
        validate_prices(prices, self.minimum_number_of_prices())
        ctx = self.context
        lookback = Decimal(self.lookback)
        carried = Decimal(self.lookback - 1)

        gains = []
        losses = []
        for previous, current in zip(prices, prices[1:]):
            change = ctx.subtract(current.close, previous.close)
            gains.append(change if change > ZERO else ZERO)
            losses.append(ctx.minus(change) if change < ZERO else ZERO)

        # 워밍업: 처음 lookback번 변화의 단순 평균
        average_gain = ZERO
        average_loss = ZERO
        for index in range(self.lookback):
            average_gain = ctx.add(average_gain, gains[index])
            average_loss = ctx.add(average_loss, losses[index])
        average_gain = ctx.divide(average_gain, lookback)
        average_loss = ctx.divide(average_loss, lookback)

        line = [(prices[self.lookback].date, self._strength(average_gain, average_loss))]

        for index in range(self.lookback, len(gains)):
            average_gain = ctx.divide(ctx.add(ctx.multiply(average_gain, carried), gains[index]), lookback)
            average_loss = ctx.divide(ctx.add(ctx.multiply(average_loss, carried), losses[index]), lookback)
            line.append((prices[index + 1].date, self._strength(average_gain, average_loss)))

        return IndicatorLine(line)

    def _strength(self, average_gain: Decimal, average_loss: Decimal) -> Decimal:
        if average_loss <= ZERO:
            return average_gain
        return self.context.divide(average_gain, average_loss)

    def __repr__(self) -> str:
        return f"RS({self.lookback})"


class RelativeStrengthIndex(Indicator):
    """RSI(lookback). RS 라인을 0~100 범위로 정규화."""

    def __init__(self, lookback: int, context: Context, days_of_values: int = 1):
        self.strength = RelativeStrength(lookback, context, days_of_values)
        self.context = context

    @property
    def lookback(self) -> int:
        return self.strength.lookback

    def minimum_number_of_prices(self) -> int:
        return self.strength.minimum_number_of_prices()

    def calculate(self, prices: Sequence[TradingDayPrice]) -> IndicatorLine:
        ctx = self.context
        strength = self.strength.calculate(prices)
        return IndicatorLine([
            (day, ctx.subtract(ONE_HUNDRED, ctx.divide(ONE_HUNDRED, ctx.add(ONE, value))))
            for day, value in strength.items()
        ])

    def __repr__(self) -> str:
        return f"RSI({self.lookback})"
