"""
시그널 모델 정의.

[ 역할 ]
    지표 시그널(날짜 + 지표 식별자 + 방향)과 필터 결과인 매수 시그널을 정의.
    Signal 동등성은 (날짜, 지표 식별자)로만 판단한다.

[ 호출하는 곳 ]
    - signals/generators.py에서 생성
    - signals/filters.py, strategies/entry.py에서 조합
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class SignalType(Enum):
    """시그널 방향."""
    BULLISH = "bullish"
    BEARISH = "bearish"


@dataclass(frozen=True)
class IndicatorId:
    """지표 식별자 (예: "SMA_20", "RSI_14")."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Signal:
    """지표 시그널. 정렬은 날짜 기준."""
    date: date
    indicator: IndicatorId
    signal_type: SignalType = field(default=SignalType.BULLISH, compare=False)

    def __lt__(self, other: "Signal") -> bool:
        return (self.date, self.indicator.name) < (other.date, other.indicator.name)


@dataclass(frozen=True, order=True)
class BuySignal:
    """필터를 통과한 매수 시그널."""
    date: date
