"""
이벤트 및 리스너 레지스트리 정의.

[ 역할 ]
    현금계좌/증권사/주문/시뮬레이션이 발행하는 불변 이벤트 값과
    이벤트를 받는 콜백을 관리하는 ListenerRegistry를 정의한다.
    리스너는 동기 호출되며, 코어 상태를 변경하면 안 된다.

[ 이벤트 종류 ]
    CashEvent            ← data/cash_account.py (입금, 출금, 예치, 이자)
    BrokerageEvent       ← brokers/single_equity_broker.py (매수, 매도)
    EquityEvent          ← brokers/single_equity_broker.py (운용보수 차감)
    OrderEvent           ← backtest/engine.py (주문 등록/체결/만료/재제출/삭제)
    ReturnOnInvestmentEvent, NetWorthEvent ← backtest/analysis.py
    SimulationStateEvent ← backtest/engine.py (상태 전이)
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Iterator

Listener = Callable[[Any], None]


class ListenerRegistry:
    """리스너 집합. 같은 콜백은 한 번만 등록되고, 등록 순서대로 호출된다."""

    def __init__(self):
        self._listeners: dict[Listener, None] = {}

    def add(self, listener: Listener) -> None:
        self._listeners.setdefault(listener, None)

    def remove(self, listener: Listener) -> None:
        self._listeners.pop(listener, None)

    def notify(self, event: Any) -> None:
        for listener in list(self._listeners):
            listener(event)

    def __contains__(self, listener: Listener) -> bool:
        return listener in self._listeners

    def __len__(self) -> int:
        return len(self._listeners)

    def __iter__(self) -> Iterator[Listener]:
        return iter(list(self._listeners))


# ─── 현금 이벤트 ────────────────────────────────────────────────────────────

class CashEventType(Enum):
    CREDIT = "credit"        # 매도 대금 등 입금
    DEBIT = "debit"          # 매수 대금 출금
    DEPOSIT = "deposit"      # 외부 자금 예치 (정기 적립 포함)
    INTEREST = "interest"    # 월별 이자 지급


@dataclass(frozen=True)
class CashEvent:
    event_type: CashEventType
    transaction_date: date
    amount: Decimal
    funds_before: Decimal
    funds_after: Decimal


# ─── 증권사 이벤트 ──────────────────────────────────────────────────────────

class BrokerageEventType(Enum):
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class BrokerageEvent:
    event_type: BrokerageEventType
    transaction_date: date
    volume: Decimal              # 거래 수량
    equity_before: Decimal       # 거래 전 보유 수량
    equity_after: Decimal        # 거래 후 보유 수량
    trade_value: Decimal         # 가격 × 수량
    transaction_fee: Decimal     # 거래 수수료


class EquityEventType(Enum):
    MANAGEMENT_FEE = "management_fee"


@dataclass(frozen=True)
class EquityEvent:
    event_type: EquityEventType
    transaction_date: date
    units: Decimal               # 차감된 수량
    equity_before: Decimal
    equity_after: Decimal
    fee_value: Decimal           # 차감 수량의 금액 환산 (종가 기준)


# ─── 주문 이벤트 ────────────────────────────────────────────────────────────

class OrderEventType(Enum):
    PLACED = "placed"
    EXECUTED = "executed"
    EXPIRED = "expired"
    RESUBMITTED = "resubmitted"
    DELETED_INSUFFICIENT_FUNDS = "deleted_insufficient_funds"


@dataclass(frozen=True)
class OrderEvent:
    event_type: OrderEventType
    event_date: date
    order_created: date
    direction: str               # "entry" / "exit"
    description: str


# ─── 분석 이벤트 ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ReturnOnInvestmentEvent:
    """전일 대비 순자산 변화율 (입금액 제외, %)."""
    percentage_change: Decimal
    exclusive_start_date: date
    inclusive_end_date: date
    net_worth: Decimal


@dataclass(frozen=True)
class NetWorthEvent:
    """최종 거래일 기준 순자산 요약."""
    event_date: date
    equity_balance: Decimal
    equity_balance_value: Decimal
    cash_balance: Decimal
    net_worth: Decimal


class SimulationState(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SimulationStateEvent:
    """상태 전이 알림. COMPLETE 시 최종 스냅샷 포함."""
    state: SimulationState
    event_date: date
    cash_balance: Decimal
    equity_balance: Decimal
    closing_price: Decimal
    net_worth: Decimal
