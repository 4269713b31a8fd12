"""
가격 데이터 모델 및 제공 추상 클래스 정의.

[ 역할 ]
    하루치 시가/고가/저가/종가(TradingDayPrice)를 정의하고,
    시뮬레이션에 투입하기 전에 시계열의 날짜 중복을 검증한다.
    가격 조회/보정(백필)은 외부 제공자의 책임이다.

[ 구현체 ]
    - data/market_data.py::DataFramePriceProvider  (pandas DataFrame 기반)

[ 호출하는 곳 ]
    - backtest/engine.py::Simulation.run()에서 validate_price_series() 호출
    - indicators/*에서 종가 시계열 사용
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from systematic_trading.core.exceptions import DuplicateDate


@dataclass(frozen=True)
class TradingDayPrice:
    """단일 거래일 가격. 날짜당 하나만 존재해야 한다."""
    date: date
    open: Decimal     # 시가
    high: Decimal     # 고가
    low: Decimal      # 저가
    close: Decimal    # 종가


def validate_price_series(prices: Iterable[TradingDayPrice]) -> list[TradingDayPrice]:
    """날짜 오름차순으로 정렬된 사본을 반환. 중복 날짜가 있으면 DuplicateDate.

    입력 순서는 자유롭지만 결과는 항상 엄격한 오름차순이다.
    """
    ordered = sorted(prices, key=lambda price: price.date)
    for previous, current in zip(ordered, ordered[1:]):
        if previous.date == current.date:
            raise DuplicateDate(current.date)
    return ordered


class PriceProvider(ABC):
    """단일 종목의 일별 가격 제공 추상 클래스."""

    @abstractmethod
    def get_prices(
        self,
        ticker: str,
        start_date: date,
        end_date: date,
    ) -> list[TradingDayPrice]:
        """[start_date, end_date] 구간의 거래일 가격 (날짜 오름차순).

        Args:
            ticker: 종목 코드
            start_date: 시작일
            end_date: 종료일
        """
        ...

    @abstractmethod
    def get_tickers(self) -> list[str]:
        """조회 가능한 종목 코드 목록."""
        ...
