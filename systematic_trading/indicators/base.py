"""
지표 계산 공통 모듈.

[ 역할 ]
    - IndicatorLine: 날짜 → 값 순서 매핑 (지표 계산 결과)
    - Indicator: 모든 지표 계산기의 추상 클래스
    - validate_prices(): None 시계열, 누락(None) 항목, 최소 데이터 부족 검증

[ 구현체 ]
    - indicators/sma.py::SimpleMovingAverage
    - indicators/ema.py::ExponentialMovingAverage
    - indicators/rsi.py::RelativeStrength, RelativeStrengthIndex
    - indicators/macd.py::MovingAverageConvergenceDivergence

[ 호출하는 곳 ]
    - strategies/entry.py::IndicatorEntry.analyse()
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Iterator, Mapping, Sequence

from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.core.exceptions import TooFewDataPoints, ValidationError


class IndicatorLine(Mapping[date, Decimal]):
    """날짜 오름차순의 지표 값. 계산 후 변경되지 않는다."""

    def __init__(self, values: Mapping[date, Decimal] | Sequence[tuple[date, Decimal]] = ()):
        items = values.items() if isinstance(values, Mapping) else values
        self._values: dict[date, Decimal] = dict(sorted(items, key=lambda item: item[0]))

    def __getitem__(self, key: date) -> Decimal:
        return self._values[key]

    def __iter__(self) -> Iterator[date]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, IndicatorLine):
            return list(self._values.items()) == list(other._values.items())
        return NotImplemented

    def __repr__(self) -> str:
        return f"IndicatorLine({len(self)} values)"

    def dates(self) -> list[date]:
        return list(self._values)

    def values_list(self) -> list[Decimal]:
        return list(self._values.values())

    def after(self, exclusive: date) -> "IndicatorLine":
        """exclusive 이후 날짜의 값만 남긴 새 라인."""
        return IndicatorLine([(d, v) for d, v in self._values.items() if d > exclusive])


def verify_greater_than(minimum: int, value: int, name: str) -> None:
    if value is None or value <= minimum:
        raise ValidationError(f"{name}은(는) {minimum}보다 커야 합니다: {value}")


def validate_prices(prices: Sequence[TradingDayPrice] | None, minimum: int) -> None:
    """지표 입력 검증. 실패 시 ValidationError (부족하면 TooFewDataPoints)."""
    if prices is None:
        raise ValidationError("가격 시계열이 None 입니다")
    for index, price in enumerate(prices):
        if price is None:
            raise ValidationError(f"가격 시계열 {index}번째 항목이 비어 있습니다")
    if len(prices) < minimum:
        raise TooFewDataPoints(minimum, len(prices))


class Indicator(ABC):
    """지표 계산기 추상 클래스. calculate()는 같은 입력에 항상 같은 결과를 반환해야 한다."""

    @abstractmethod
    def minimum_number_of_prices(self) -> int:
        """calculate()에 필요한 최소 가격 수."""
        ...

    @abstractmethod
    def calculate(self, prices: Sequence[TradingDayPrice]) -> IndicatorLine:
        """가격 시계열로 지표 라인 계산. 워밍업 구간의 날짜는 결과에 없다."""
        ...

    def signal_input(self, prices: Sequence[TradingDayPrice]):
        """시그널 생성기에 넘길 계산 결과. 기본은 calculate()."""
        return self.calculate(prices)
