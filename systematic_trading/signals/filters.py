"""
시그널 필터 모듈.

[ 역할 ]
    여러 지표의 시그널 묶음({지표 ID: 시그널 목록})을 매수 시그널로 조합.
    필터가 기대하는 지표 ID가 묶음에 없으면 즉시 ValidationError.

[ 필터 ]
    - SameDaySignalFilter: 모든 지표가 같은 날 시그널을 낸 날짜
    - ConfirmationSignalFilter: 기준 시그널 D 이후 [D+delay, D+delay+range]일 안의 확인 시그널
    - RollingTimePeriodSignalFilter: 다른 필터를 감싸 최근 N일 이내 시그널만 유지
    - OperatorSignalFilter: 두 필터 결과의 AND(교집합) / OR(합집합)

[ 호출하는 곳 ]
    - strategies/entry.py::FilteredSignalsEntry
    - strategies/entry.py::ConfirmedByEntry, OperatorEntry (Confirmation, Operator 공용)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Mapping, Sequence

from systematic_trading.core.exceptions import ValidationError
from systematic_trading.signals.models import BuySignal, IndicatorId, Signal

SignalMap = Mapping[IndicatorId, Sequence[Signal]]


@dataclass(frozen=True)
class Confirmation:
    """확인 구간. 기준일 D에 대해 [D + delay, D + delay + range] (양끝 포함)."""
    delay: int
    range: int

    def __post_init__(self):
        if self.delay < 0:
            raise ValidationError(f"delay는 0 이상이어야 합니다: {self.delay}")
        if self.range < 0:
            raise ValidationError(f"range는 0 이상이어야 합니다: {self.range}")

    def window(self, anchor: date) -> tuple[date, date]:
        start = anchor + timedelta(days=self.delay)
        return start, start + timedelta(days=self.range)

    def is_confirmed_by(self, anchor: date, confirmation: date) -> bool:
        start, end = self.window(anchor)
        return start <= confirmation <= end

    @property
    def days_required(self) -> int:
        return self.delay + self.range


class Operator(Enum):
    AND = "and"
    OR = "or"

    def combine(self, left: Iterable[date], right: Iterable[date]) -> set[date]:
        if self == Operator.AND:
            return set(left) & set(right)
        return set(left) | set(right)


def _require(signals: SignalMap, *indicators: IndicatorId) -> None:
    for indicator in indicators:
        if indicator not in signals:
            raise ValidationError(f"시그널 묶음에 지표 '{indicator}'가 없습니다")


def _buy_signals(dates: Iterable[date]) -> list[BuySignal]:
    return [BuySignal(day) for day in sorted(set(dates))]


class SignalFilter(ABC):
    """지표별 시그널 → 매수 시그널."""

    @abstractmethod
    def apply(self, signals: SignalMap, latest_trading_date: date) -> list[BuySignal]:
        ...

    def days_required(self) -> int:
        """지표 계산에 필요한 거래일 외에 이 필터가 더 봐야 하는 일수."""
        return 0


class SameDaySignalFilter(SignalFilter):
    """첫 지표의 시그널 날짜 중 나머지 모든 지표도 시그널이 있는 날짜."""

    def __init__(self, *indicators: IndicatorId):
        if not indicators:
            raise ValidationError("지표가 최소 하나는 필요합니다")
        self.indicators = indicators

    def apply(self, signals, latest_trading_date):
        _require(signals, *self.indicators)
        first, *others = self.indicators
        other_dates = [{signal.date for signal in signals[indicator]} for indicator in others]
        return _buy_signals(
            signal.date
            for signal in signals[first]
            if all(signal.date in dates for dates in other_dates)
        )


class ConfirmationSignalFilter(SignalFilter):
    """기준 지표 시그널 후 확인 구간 안에 확인 지표 시그널이 있으면 확인일에 매수."""

    def __init__(self, anchor: IndicatorId, confirmation: IndicatorId, window: Confirmation):
        self.anchor = anchor
        self.confirmation = confirmation
        self.window = window

    def days_required(self):
        return self.window.days_required

    def apply(self, signals, latest_trading_date):
        _require(signals, self.anchor, self.confirmation)
        return _buy_signals(
            confirmation.date
            for anchor in signals[self.anchor]
            for confirmation in signals[self.confirmation]
            if self.window.is_confirmed_by(anchor.date, confirmation.date)
        )


class RollingTimePeriodSignalFilter(SignalFilter):
    """감싼 필터 결과 중 (최근 거래일 - period일) 이후 시그널만 유지."""

    def __init__(self, wrapped: SignalFilter, period_days: int):
        if period_days < 0:
            raise ValidationError(f"기간은 0 이상이어야 합니다: {period_days}")
        self.wrapped = wrapped
        self.period = timedelta(days=period_days)

    def days_required(self):
        return self.wrapped.days_required() + self.period.days

    def apply(self, signals, latest_trading_date):
        earliest = latest_trading_date - self.period
        return [
            signal for signal in self.wrapped.apply(signals, latest_trading_date)
            if signal.date >= earliest
        ]


class OperatorSignalFilter(SignalFilter):
    """두 필터의 결과를 AND/OR로 결합."""

    def __init__(self, left: SignalFilter, operator: Operator, right: SignalFilter):
        self.left = left
        self.operator = operator
        self.right = right

    def days_required(self):
        return max(self.left.days_required(), self.right.days_required())

    def apply(self, signals, latest_trading_date):
        left = (signal.date for signal in self.left.apply(signals, latest_trading_date))
        right = (signal.date for signal in self.right.apply(signals, latest_trading_date))
        return _buy_signals(self.operator.combine(left, right))
