"""
포지션 크기 결정.

[ 진입 금액 ]
    LargestPossibleEntryPosition(minimum, maximum):
        가용 현금 < minimum 경계 → 0 (주문 없음)
        그 외 → min(가용 현금, max(minimum 경계, maximum 경계))

    경계는 절대값(AbsoluteBound) 또는 가용 현금 비율(RelativeBound).

[ 청산 ]
    HoldForeverExit: 청산 주문을 만들지 않는다.
"""

from decimal import Context, Decimal

from systematic_trading.core.exceptions import ValidationError
from systematic_trading.core.trading_strategy import EntryPositionBound, EntrySize, Exit
from systematic_trading.utils.decimals import ONE, ZERO


class AbsoluteBound(EntryPositionBound):
    """고정 금액."""

    def __init__(self, value: Decimal):
        if value < ZERO:
            raise ValidationError(f"금액 경계는 0 이상이어야 합니다: {value}")
        self.value = value

    def bound(self, funds: Decimal) -> Decimal:
        return self.value


class RelativeBound(EntryPositionBound):
    """가용 현금 × fraction (0~1)."""

    def __init__(self, fraction: Decimal, context: Context):
        if not ZERO <= fraction <= ONE:
            raise ValidationError(f"비율 경계는 0과 1 사이여야 합니다: {fraction}")
        self.fraction = fraction
        self.context = context

    def bound(self, funds: Decimal) -> Decimal:
        return self.context.multiply(funds, self.fraction)


class LargestPossibleEntryPosition(EntrySize):

    def __init__(self, minimum: EntryPositionBound, maximum: EntryPositionBound):
        self.minimum = minimum
        self.maximum = maximum

    def entry_position_size(self, funds: Decimal) -> Decimal:
        minimum = self.minimum.bound(funds)
        if funds < minimum:
            return ZERO
        return min(funds, max(minimum, self.maximum.bound(funds)))


class HoldForeverExit(Exit):

    def exit_tick(self, brokerage, price):
        return None
