"""
시그널 생성기 모듈.

[ 역할 ]
    지표 라인을 훑어 임계값 돌파/기울기 이벤트를 날짜별 시그널로 변환.
    모든 생성기는 상태가 없고, 같은 입력에 같은 결과를 반환한다.

[ 생성기 ]
    - MovingAverageGradientSignals: SMA/EMA 기울기 양(상승)/음(하락)
    - RsiThresholdSignals: RSI 과매도 상향 돌파(BULLISH) / 과매수 하향 돌파(BEARISH)
    - MacdCrossoverSignals: MACD가 시그널선 또는 0선을 돌파

[ 호출하는 곳 ]
    - strategies/entry.py::IndicatorEntry.analyse()
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Callable, Sequence

from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.core.exceptions import ValidationError
from systematic_trading.indicators.base import IndicatorLine
from systematic_trading.indicators.macd import MacdLines
from systematic_trading.signals.models import IndicatorId, Signal, SignalType
from systematic_trading.utils.decimals import ONE_HUNDRED, ZERO

DateFilter = Callable[[date], bool]


def _any_date(_: date) -> bool:
    return True


class SignalGenerator(ABC):
    """지표 계산 결과 → 시그널 목록."""

    @property
    @abstractmethod
    def signal_type(self) -> SignalType:
        ...

    @abstractmethod
    def generate(
        self,
        indicator: IndicatorId,
        line: IndicatorLine | MacdLines,
        in_range: DateFilter = _any_date,
    ) -> list[Signal]:
        ...


class Gradient(Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class MovingAverageGradientSignals(SignalGenerator):
    """이동평균 기울기 시그널. 전일 대비 값이 오르면(POSITIVE) BULLISH."""

    def __init__(self, gradient: Gradient = Gradient.POSITIVE):
        self.gradient = gradient

    @property
    def signal_type(self) -> SignalType:
        return SignalType.BULLISH if self.gradient == Gradient.POSITIVE else SignalType.BEARISH

    def generate(self, indicator, line, in_range=_any_date):
        signals = []
        items = list(line.items())
        for (_, previous), (today, current) in zip(items, items[1:]):
            rising = current > previous
            falling = current < previous
            matched = rising if self.gradient == Gradient.POSITIVE else falling
            if matched and in_range(today):
                signals.append(Signal(today, indicator, self.signal_type))
        return signals


class RsiThresholdSignals(SignalGenerator):
    """RSI 임계값 돌파 시그널.

    BULLISH: 어제 < 과매도 <= 오늘 (상승 돌파)
    BEARISH: 오늘 < 과매수 <= 어제 (하락 돌파)
    """

    def __init__(
        self,
        signal_type: SignalType = SignalType.BULLISH,
        oversold: Decimal = Decimal(30),
        overbought: Decimal = Decimal(70),
    ):
        if not (ZERO <= oversold < overbought <= ONE_HUNDRED):
            raise ValidationError(f"RSI 임계값 범위 오류: oversold={oversold}, overbought={overbought}")
        self._signal_type = signal_type
        self.oversold = oversold
        self.overbought = overbought

    @property
    def signal_type(self) -> SignalType:
        return self._signal_type

    def generate(self, indicator, line, in_range=_any_date):
        signals = []
        items = list(line.items())
        for (_, yesterday), (today_date, today) in zip(items, items[1:]):
            if self._signal_type == SignalType.BULLISH:
                crossed = yesterday < self.oversold <= today
            else:
                crossed = today < self.overbought <= yesterday
            if crossed and in_range(today_date):
                signals.append(Signal(today_date, indicator, self._signal_type))
        return signals


class MacdCrossoverSignals(SignalGenerator):
    """MACD 돌파 시그널.

    BULLISH: MACD 상승 중 시그널선을 아래→위로 돌파하거나 0선을 아래→위로 돌파
    BEARISH: MACD 하락 중 시그널선을 위→아래로 돌파하거나 0선을 위→아래로 돌파
    """

    def __init__(self, signal_type: SignalType = SignalType.BULLISH):
        self._signal_type = signal_type

    @property
    def signal_type(self) -> SignalType:
        return self._signal_type

    def generate(self, indicator, line, in_range=_any_date):
        if not isinstance(line, MacdLines):
            raise ValidationError("MACD 시그널에는 MACD 라인과 시그널 라인이 모두 필요합니다")

        signals = []
        dates = [day for day in line.signal_line if day in line.macd]
        for yesterday_date, today_date in zip(dates, dates[1:]):
            yesterday = line.macd[yesterday_date]
            today = line.macd[today_date]
            yesterday_signal = line.signal_line[yesterday_date]
            today_signal = line.signal_line[today_date]

            if self._signal_type == SignalType.BULLISH:
                crossed = today > yesterday and (
                    (today >= today_signal and yesterday_signal > yesterday)
                    or (today >= ZERO and yesterday <= ZERO)
                )
            else:
                crossed = today < yesterday and (
                    (today <= today_signal and yesterday_signal < yesterday)
                    or (today <= ZERO and yesterday >= ZERO)
                )

            if crossed and in_range(today_date):
                signals.append(Signal(today_date, indicator, self._signal_type))
        return signals


class TradingDaySignalRange:
    """시그널 유효 구간: 최근 trading_days 거래일 (마지막 거래일 포함).

    데이터가 부족하면 첫 거래일부터.
    """

    def __init__(self, trading_days: int):
        if trading_days < 0:
            raise ValidationError(f"시그널 구간은 0 이상이어야 합니다: {trading_days}")
        self.trading_days = trading_days

    def earliest(self, prices: Sequence[TradingDayPrice]) -> date:
        index = max(0, len(prices) - 1 - self.trading_days)
        return prices[index].date

    def latest(self, prices: Sequence[TradingDayPrice]) -> date:
        return prices[-1].date

    def date_filter(self, prices: Sequence[TradingDayPrice]) -> DateFilter:
        earliest = self.earliest(prices)
        latest = self.latest(prices)
        return lambda day: earliest <= day <= latest
