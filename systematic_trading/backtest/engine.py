"""
시뮬레이션 엔진 모듈.

[ 역할 ]
    일별 가격 시계열을 날짜 오름차순으로 하루씩 재생하면서
    현금계좌, 증권사, 전략을 조율하는 상태 기계. 시스템의 핵심 실행 루프.

[ 실행 흐름 ]
    run(prices) 호출 시:
        0. validate_price_series(): 날짜 정렬, 중복이면 DuplicateDate (상태 변경 전 중단)
        매 거래일마다:
        1. cash_account.update(date)       이자 적립/지급, 정기 입금
        2. strategy.exit_tick()            청산 주문 (최대 1개)
        3. strategy.entry_tick(window)     진입 주문 (최대 1개)
        4. _process_orders()               대기 주문 만료/체결 조건 확인 후 체결
                                           자금 부족 시 주문 정책(RESUBMIT/DELETE) 적용
        5. brokerage.update(price)         운용보수
        6. day_listeners 통지              (수익률 계산 등)
        마지막 날 이후 COMPLETE 상태 통지 (최종 스냅샷 포함, 한 번만)

[ 가격 창 ]
    전략이 요구하는 거래일 수(number_of_trading_days_required)만큼만 deque로 유지.

[ 의존성 ]
    - core/account_api.py::CashAccount
    - core/broker_api.py::Brokerage
    - core/trading_strategy.py::TradingStrategy
    - backtest/orders.py::EquityOrder

[ 호출하는 곳 ]
    - backtest/bootstrap.py::run_configuration()
    - run_simulation() (리스너 묶음을 받아 분석 리스너까지 연결)
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import date
from decimal import Context
from typing import Callable, Iterable, Sequence

from systematic_trading.backtest.analysis import CumulativeReturnOnInvestment, NetWorthSummary, net_worth
from systematic_trading.backtest.orders import EquityOrder, InsufficientFundsAction
from systematic_trading.core.account_api import CashAccount
from systematic_trading.core.broker_api import Brokerage
from systematic_trading.core.data_provider import TradingDayPrice, validate_price_series
from systematic_trading.core.events import (
    ListenerRegistry,
    OrderEvent,
    OrderEventType,
    SimulationState,
    SimulationStateEvent,
)
from systematic_trading.core.exceptions import OrderError, SimulationError, ValidationError
from systematic_trading.core.trading_strategy import TradingStrategy

logger = logging.getLogger("systematic_trading.simulation")


@dataclass(frozen=True)
class SimulationResult:
    """run()의 반환값."""
    start_date: date
    end_date: date
    trading_days: int
    final_state: SimulationStateEvent
    orders_placed: int
    orders_executed: int
    orders_deleted: int
    orders_resubmitted: int
    orders_expired: int


class Simulation:
    """시뮬레이션 엔진. 한 번만 실행할 수 있다 (재개 미지원)."""

    def __init__(
        self,
        brokerage: Brokerage,
        cash_account: CashAccount,
        strategy: TradingStrategy,
        context: Context,
    ):
        self.brokerage = brokerage
        self.cash_account = cash_account
        self.strategy = strategy
        self.context = context
        self.state = SimulationState.NOT_STARTED

        self.order_listeners = ListenerRegistry()       # OrderEvent
        self.state_listeners = ListenerRegistry()       # SimulationStateEvent
        self.day_listeners = ListenerRegistry()         # TradingDayPrice (하루 처리 완료 후)

        self._counts = {event_type: 0 for event_type in OrderEventType}

    def run(self, prices: Iterable[TradingDayPrice]) -> SimulationResult:
        """전체 기간 시뮬레이션. 치명적 오류(검증, 날짜 역행)는 그대로 전파된다."""
        if self.state != SimulationState.NOT_STARTED:
            raise SimulationError(f"이미 실행된 시뮬레이션입니다 (상태: {self.state.value})")

        series = validate_price_series(prices)
        if not series:
            raise ValidationError("시뮬레이션할 가격 데이터가 없습니다")

        window_size = max(1, self.strategy.number_of_trading_days_required())
        window: deque[TradingDayPrice] = deque(maxlen=window_size)
        pending: list[EquityOrder] = []

        logger.info(
            f"시뮬레이션 시작: {series[0].date} ~ {series[-1].date} "
            f"({len(series)}일, 전략 {self.strategy.name}, 가격 창 {window_size}일)"
        )

        for price in series:
            if self.state == SimulationState.NOT_STARTED:
                self._transition(SimulationState.IN_PROGRESS, price)
            pending = self._simulate_day(price, window, pending)

        final = self._transition(SimulationState.COMPLETE, series[-1])
        logger.info(
            f"시뮬레이션 완료: 순자산 {final.net_worth:,.2f} "
            f"(현금 {final.cash_balance:,.2f}, 보유 {final.equity_balance})"
        )

        return SimulationResult(
            start_date=series[0].date,
            end_date=series[-1].date,
            trading_days=len(series),
            final_state=final,
            orders_placed=self._counts[OrderEventType.PLACED],
            orders_executed=self._counts[OrderEventType.EXECUTED],
            orders_deleted=self._counts[OrderEventType.DELETED_INSUFFICIENT_FUNDS],
            orders_resubmitted=self._counts[OrderEventType.RESUBMITTED],
            orders_expired=self._counts[OrderEventType.EXPIRED],
        )

    def _simulate_day(
        self,
        price: TradingDayPrice,
        window: deque,
        pending: list[EquityOrder],
    ) -> list[EquityOrder]:
        """하루 시뮬레이션. 다음 날로 넘길 대기 주문 목록을 반환."""
        self.cash_account.update(price.date)
        window.append(price)

        exit_order = self.strategy.exit_tick(self.brokerage, price)
        if exit_order is not None:
            pending.append(exit_order)
            self._notify_order(OrderEventType.PLACED, exit_order, price.date)

        entry_order = self.strategy.entry_tick(self.brokerage, self.cash_account, tuple(window))
        if entry_order is not None:
            pending.append(entry_order)
            self._notify_order(OrderEventType.PLACED, entry_order, price.date)

        remaining = self._process_orders(pending, price)

        self.brokerage.update(price)
        self.day_listeners.notify(price)
        return remaining

    def _process_orders(self, orders: Sequence[EquityOrder], price: TradingDayPrice) -> list[EquityOrder]:
        """대기 주문 평가. 만료/체결/폐기된 주문은 빠진다."""
        remaining = []
        for order in orders:
            if not order.is_valid(price.date):
                self._notify_order(OrderEventType.EXPIRED, order, price.date)
                continue

            if not order.are_execution_conditions_met(price):
                remaining.append(order)
                continue

            try:
                order.execute(self.brokerage, self.cash_account, price)
            except OrderError as e:
                if order.insufficient_funds_action == InsufficientFundsAction.RESUBMIT:
                    remaining.append(order)
                    self._notify_order(OrderEventType.RESUBMITTED, order, price.date)
                    logger.info(f"[{price.date}] 주문 재제출: {e}")
                else:
                    self._notify_order(OrderEventType.DELETED_INSUFFICIENT_FUNDS, order, price.date)
                    logger.info(f"[{price.date}] 주문 삭제: {e}")
                continue

            self._notify_order(OrderEventType.EXECUTED, order, price.date)

        return remaining

    def _notify_order(self, event_type: OrderEventType, order: EquityOrder, event_date: date) -> None:
        self._counts[event_type] += 1
        logger.debug(f"[{event_date}] 주문 {event_type.value}: {order.describe()}")
        self.order_listeners.notify(OrderEvent(
            event_type=event_type,
            event_date=event_date,
            order_created=order.creation_date,
            direction=order.direction.value,
            description=order.describe(),
        ))

    def _transition(self, state: SimulationState, price: TradingDayPrice) -> SimulationStateEvent:
        self.state = state
        cash = self.cash_account.balance
        equity = self.brokerage.equity_balance
        event = SimulationStateEvent(
            state=state,
            event_date=price.date,
            cash_balance=cash,
            equity_balance=equity,
            closing_price=price.close,
            net_worth=net_worth(cash, equity, price.close, self.context),
        )
        self.state_listeners.notify(event)
        return event


# ─── 리스너 묶음 실행 ────────────────────────────────────────────────────────

Callback = Callable[[object], None]


@dataclass
class SimulationListeners:
    """외부 리스너 묶음. 각 항목은 이벤트 하나를 받는 콜백."""
    brokerage: list[Callback] = field(default_factory=list)
    cash: list[Callback] = field(default_factory=list)
    equity: list[Callback] = field(default_factory=list)
    order: list[Callback] = field(default_factory=list)
    net_worth: list[Callback] = field(default_factory=list)
    return_on_investment: list[Callback] = field(default_factory=list)
    simulation_state: list[Callback] = field(default_factory=list)


def run_simulation(
    prices: Iterable[TradingDayPrice],
    brokerage: Brokerage,
    cash_account: CashAccount,
    strategy: TradingStrategy,
    context: Context,
    listeners: SimulationListeners | None = None,
) -> SimulationResult:
    """리스너를 연결하고 시뮬레이션 한 번 실행."""
    listeners = listeners or SimulationListeners()
    simulation = Simulation(brokerage, cash_account, strategy, context)

    for callback in listeners.brokerage:
        brokerage.brokerage_listeners.add(callback)
    for callback in listeners.equity:
        brokerage.equity_listeners.add(callback)
    for callback in listeners.cash:
        cash_account.listeners.add(callback)
    for callback in listeners.order:
        simulation.order_listeners.add(callback)
    for callback in listeners.simulation_state:
        simulation.state_listeners.add(callback)

    if listeners.return_on_investment:
        roi = CumulativeReturnOnInvestment(brokerage, cash_account, context)
        for callback in listeners.return_on_investment:
            roi.listeners.add(callback)
        roi.attach(simulation)

    if listeners.net_worth:
        summary = NetWorthSummary(context)
        for callback in listeners.net_worth:
            summary.listeners.add(callback)
        simulation.state_listeners.add(summary.on_state_change)

    return simulation.run(prices)
