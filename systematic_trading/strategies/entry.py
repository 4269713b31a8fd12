"""
진입 표현식 트리 노드.

[ 노드 ]
    PeriodicEntry        정해진 주기마다 매수 (first_date, first_date + interval, ...)
    IndicatorEntry       단일 지표 + 시그널 생성기
    ConfirmedByEntry     기준 노드 시그널 후 [D+delay, D+delay+range]일 안의 확인 노드 시그널
    OperatorEntry        두 노드 결과의 AND / OR
    FilteredSignalsEntry 여러 지표 시그널 묶음에 시그널 필터 적용

[ 필요 거래일 ]
    각 노드는 number_of_trading_days_required()로 하위 노드 중 최대값을 반환하고,
    엔진은 이 값만큼만 가격 창을 유지한다.

[ 호출하는 곳 ]
    - strategies/trading_strategy.py::EntryExitStrategy.analyse()
    - strategies/definitions.py::build_entry()에서 설정으로부터 생성
"""

from datetime import date, timedelta
from typing import Sequence

from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.core.exceptions import ValidationError
from systematic_trading.core.trading_strategy import Entry
from systematic_trading.indicators.base import Indicator
from systematic_trading.signals.filters import Confirmation, Operator, SignalFilter
from systematic_trading.signals.generators import SignalGenerator, TradingDaySignalRange
from systematic_trading.signals.models import IndicatorId, Signal, SignalType

PERIODIC = IndicatorId("PERIODIC")


class PeriodicEntry(Entry):
    """first_date부터 interval마다 매수 시그널.

    예정일이 휴장일이면 그 다음 거래일에 시그널이 난다.
    """

    def __init__(self, first_date: date, interval: timedelta):
        if interval.days <= 0:
            raise ValidationError(f"주기는 1일 이상이어야 합니다: {interval}")
        self.first_date = first_date
        self.interval = interval

    def number_of_trading_days_required(self) -> int:
        return 2

    def analyse(self, window: Sequence[TradingDayPrice]) -> list[Signal]:
        if len(window) == 1:
            # 시뮬레이션 첫날: first_date가 그 전(휴장일)이어도 바로 시그널
            today = window[0].date
            return [Signal(today, PERIODIC, SignalType.BULLISH)] if today >= self.first_date else []

        signals = []
        previous: date | None = None
        for price in window:
            if self._is_due(previous, price.date):
                signals.append(Signal(price.date, PERIODIC, SignalType.BULLISH))
            previous = price.date
        return signals

    def _is_due(self, previous: date | None, today: date) -> bool:
        if today < self.first_date:
            return False
        elapsed = (today - self.first_date).days
        if previous is None:
            previous = _previous_weekday(today)
        latest_scheduled = self.first_date + self.interval * (elapsed // self.interval.days)
        return latest_scheduled > previous

    def __repr__(self) -> str:
        return f"Periodic({self.first_date}, every {self.interval.days}d)"


def _previous_weekday(day: date) -> date:
    """창 시작 전날은 알 수 없으므로 직전 평일로 본다."""
    day -= timedelta(days=1)
    while day.weekday() >= 5:
        day -= timedelta(days=1)
    return day


class IndicatorEntry(Entry):
    """지표 계산 → 시그널 생성. 데이터가 부족하면 시그널 없음."""

    def __init__(
        self,
        indicator_id: IndicatorId,
        calculator: Indicator,
        generator: SignalGenerator,
        signal_range: TradingDaySignalRange | None = None,
    ):
        self.indicator_id = indicator_id
        self.calculator = calculator
        self.generator = generator
        self.signal_range = signal_range

    def number_of_trading_days_required(self) -> int:
        return self.calculator.minimum_number_of_prices()

    def analyse(self, window: Sequence[TradingDayPrice]) -> list[Signal]:
        if len(window) < self.number_of_trading_days_required():
            return []
        line = self.calculator.signal_input(window)
        if self.signal_range is None:
            return self.generator.generate(self.indicator_id, line)
        return self.generator.generate(self.indicator_id, line, self.signal_range.date_filter(window))

    def __repr__(self) -> str:
        return f"Indicator({self.indicator_id})"


class ConfirmedByEntry(Entry):
    """기준 노드 시그널이 확인 노드 시그널로 확인되면 확인일에 시그널."""

    def __init__(self, anchor: Entry, confirmation: Entry, window: Confirmation):
        self.anchor = anchor
        self.confirmation = confirmation
        self.window = window

    def number_of_trading_days_required(self) -> int:
        return max(
            self.anchor.number_of_trading_days_required(),
            self.confirmation.number_of_trading_days_required(),
        ) + self.window.days_required

    def analyse(self, window: Sequence[TradingDayPrice]) -> list[Signal]:
        anchors = self.anchor.analyse(window)
        if not anchors:
            return []

        confirmed = {}
        for confirmation in self.confirmation.analyse(window):
            if any(self.window.is_confirmed_by(anchor.date, confirmation.date) for anchor in anchors):
                confirmed.setdefault(confirmation.date, confirmation)
        return sorted(confirmed.values())

    def __repr__(self) -> str:
        return f"({self.anchor} confirmed by {self.confirmation}, delay={self.window.delay}, range={self.window.range})"


class OperatorEntry(Entry):
    """AND: 두 노드가 같은 날 시그널, OR: 어느 한쪽이라도 시그널."""

    def __init__(self, left: Entry, operator: Operator, right: Entry):
        self.left = left
        self.operator = operator
        self.right = right
        self.indicator_id = IndicatorId(operator.name)

    def number_of_trading_days_required(self) -> int:
        return max(
            self.left.number_of_trading_days_required(),
            self.right.number_of_trading_days_required(),
        )

    def analyse(self, window: Sequence[TradingDayPrice]) -> list[Signal]:
        left = [signal.date for signal in self.left.analyse(window)]
        right = [signal.date for signal in self.right.analyse(window)]
        return [
            Signal(day, self.indicator_id, SignalType.BULLISH)
            for day in sorted(self.operator.combine(left, right))
        ]

    def __repr__(self) -> str:
        return f"({self.left} {self.operator.name} {self.right})"


class FilteredSignalsEntry(Entry):
    """여러 지표의 시그널 묶음을 만들고 필터 결과를 모두 합친다.

    지표는 필요 거래일보다 데이터가 많을 때만 계산하고, 아니면 빈 시그널 목록.
    """

    FILTERED = IndicatorId("FILTERED")

    def __init__(self, indicators: Sequence[IndicatorEntry], filters: Sequence[SignalFilter]):
        if not indicators:
            raise ValidationError("지표가 최소 하나는 필요합니다")
        if not filters:
            raise ValidationError("시그널 필터가 최소 하나는 필요합니다")
        self.indicators = tuple(indicators)
        self.filters = tuple(filters)

    def number_of_trading_days_required(self) -> int:
        indicator_days = max(indicator.number_of_trading_days_required() for indicator in self.indicators)
        return indicator_days + 1 + max(signal_filter.days_required() for signal_filter in self.filters)

    def analyse(self, window: Sequence[TradingDayPrice]) -> list[Signal]:
        if not window:
            return []
        signals = {
            indicator.indicator_id: (
                indicator.analyse(window)
                if indicator.number_of_trading_days_required() < len(window)
                else []
            )
            for indicator in self.indicators
        }
        latest = window[-1].date
        buy_dates = {
            buy.date
            for signal_filter in self.filters
            for buy in signal_filter.apply(signals, latest)
        }
        return [Signal(day, self.FILTERED, SignalType.BULLISH) for day in sorted(buy_dates)]
