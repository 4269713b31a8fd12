"""
매매 전략 추상 클래스 정의.

[ 역할 ]
    - Entry: 진입 표현식 트리의 노드. 가격 창(window)을 받아 매수 시그널 목록 반환
    - EntryPositionBound / EntrySize: 진입 금액 결정
    - Exit: 청산 판단 (현재는 보유 유지 구현만 존재)
    - TradingStrategy: 엔진이 매일 호출하는 전략 인터페이스

[ 구현체 ]
    - strategies/entry.py (PeriodicEntry, IndicatorEntry, ConfirmedByEntry, OperatorEntry, FilteredSignalsEntry)
    - strategies/sizing.py (AbsoluteBound, RelativeBound, LargestPossibleEntryPosition, HoldForeverExit)
    - strategies/trading_strategy.py::EntryExitStrategy

[ 호출하는 곳 ]
    - backtest/engine.py::Simulation이 매일 exit_tick() → entry_tick() 순서로 호출
      가격 창 크기는 number_of_trading_days_required()로 결정

[ 데이터 흐름 ]
    window(최근 N일 TradingDayPrice) → Entry.analyse() → Signal 목록
    → 오늘 날짜 시그널이 있으면 EntrySize로 금액 결정 → EquityOrder 반환
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Sequence

from systematic_trading.core.account_api import CashAccount
from systematic_trading.core.broker_api import Brokerage
from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.signals.models import Signal

if TYPE_CHECKING:
    from systematic_trading.backtest.orders import EquityOrder


class Entry(ABC):
    """진입 표현식 트리 노드. 불변이며 analyse()는 순수 함수."""

    @abstractmethod
    def number_of_trading_days_required(self) -> int:
        """analyse()에 필요한 최근 거래일 수 (하위 노드 중 최대값 기준)."""
        ...

    @abstractmethod
    def analyse(self, window: Sequence[TradingDayPrice]) -> list[Signal]:
        """가격 창 안에서 발생한 매수 시그널 (날짜 오름차순)."""
        ...


class EntryPositionBound(ABC):
    """가용 현금 기준 진입 금액 경계."""

    @abstractmethod
    def bound(self, funds: Decimal) -> Decimal:
        ...


class EntrySize(ABC):
    """가용 현금 → 진입 금액. 0이면 주문하지 않는다."""

    @abstractmethod
    def entry_position_size(self, funds: Decimal) -> Decimal:
        ...


class Exit(ABC):
    """청산 판단."""

    @abstractmethod
    def exit_tick(self, brokerage: Brokerage, price: TradingDayPrice) -> "EquityOrder | None":
        ...


class TradingStrategy(ABC):
    """엔진이 매일 호출하는 전략."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def number_of_trading_days_required(self) -> int:
        ...

    @abstractmethod
    def exit_tick(self, brokerage: Brokerage, price: TradingDayPrice) -> "EquityOrder | None":
        """청산 주문 (최대 1개)."""
        ...

    @abstractmethod
    def entry_tick(
        self,
        brokerage: Brokerage,
        cash_account: CashAccount,
        window: Sequence[TradingDayPrice],
    ) -> "EquityOrder | None":
        """진입 주문 (최대 1개). window의 마지막 항목이 오늘."""
        ...
