"""
운용보수 계산기.

[ 역할 ]
    보유 평가금액에 연간 보수율을 적용. 증권사가 만 1년이 지날 때마다 호출하며,
    보수는 현금이 아닌 보유 수량에서 차감된다.

[ 계산기 ]
    - NoManagementFee: 보수 없음
    - FlatManagementFee: 평가금액 × 연 보수율 × 연수
    - LadderedManagementFee: 평가금액 구간별 보수율 (마지막 구간은 상한 없음) × 연수
"""

from decimal import Context, Decimal
from typing import Sequence

from systematic_trading.core.broker_api import ManagementFeeCalculator
from systematic_trading.core.exceptions import ValidationError
from systematic_trading.utils.decimals import ZERO


class NoManagementFee(ManagementFeeCalculator):

    def calculate_fee(self, number_of_equities, equity_price, years):
        return ZERO


class FlatManagementFee(ManagementFeeCalculator):
    """annual_fraction=0.001 → 연 0.1%."""

    def __init__(self, annual_fraction: Decimal, context: Context):
        self.annual_fraction = annual_fraction
        self.context = context

    def calculate_fee(self, number_of_equities: Decimal, equity_price: Decimal, years: int) -> Decimal:
        if years <= 0:
            return ZERO
        ctx = self.context
        holdings = ctx.multiply(number_of_equities, equity_price)
        return ctx.multiply(ctx.multiply(holdings, self.annual_fraction), Decimal(years))


class LadderedManagementFee(ManagementFeeCalculator):
    """평가금액 구간별 보수.

    ranges=[10000, 50000], fractions=[0.01, 0.005, 0.001] 이면
    0~10000은 1%, 10000~50000은 0.5%, 50000 초과분은 0.1%.
    """

    def __init__(self, ranges: Sequence[Decimal], fractions: Sequence[Decimal], context: Context):
        if len(ranges) + 1 != len(fractions):
            raise ValidationError(
                f"구간 수는 보수율 수보다 하나 적어야 합니다: 구간 {len(ranges)}, 보수율 {len(fractions)}"
            )
        if list(ranges) != sorted(ranges):
            raise ValidationError(f"구간 상한은 오름차순이어야 합니다: {list(ranges)}")
        self.ranges = tuple(ranges)
        self.fractions = tuple(fractions)
        self.context = context

    def calculate_fee(self, number_of_equities: Decimal, equity_price: Decimal, years: int) -> Decimal:
        if years <= 0:
            return ZERO
        ctx = self.context
        holdings = ctx.multiply(number_of_equities, equity_price)

        fee = ZERO
        bottom = ZERO
        for top, fraction in zip(self.ranges, self.fractions):
            if holdings <= bottom:
                break
            spread = ctx.subtract(min(holdings, top), bottom)
            fee = ctx.add(fee, ctx.multiply(spread, fraction))
            bottom = top

        # 상한 없는 마지막 구간
        if self.ranges and holdings > self.ranges[-1]:
            spread = ctx.subtract(holdings, self.ranges[-1])
            fee = ctx.add(fee, ctx.multiply(spread, self.fractions[-1]))
        elif not self.ranges:
            fee = ctx.multiply(holdings, self.fractions[0])

        return ctx.multiply(fee, Decimal(years))
