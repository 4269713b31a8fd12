"""
시뮬레이션 분석 리스너.

[ 역할 ]
    - CumulativeReturnOnInvestment: 매 거래일 순자산 변화율 (입금액 제외)
    - NetWorthSummary: 시뮬레이션 완료 시 순자산 요약 이벤트
    - EventStatistics: 수수료/거래/이자/입금/운용보수/주문 이벤트 누계

[ 호출하는 곳 ]
    - backtest/engine.py::run_simulation()
    - backtest/bootstrap.py::run_configuration()
"""

from datetime import date
from decimal import Context, Decimal

from systematic_trading.core.account_api import CashAccount
from systematic_trading.core.broker_api import Brokerage
from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.core.events import (
    BrokerageEvent,
    BrokerageEventType,
    CashEvent,
    CashEventType,
    EquityEvent,
    ListenerRegistry,
    NetWorthEvent,
    OrderEvent,
    OrderEventType,
    ReturnOnInvestmentEvent,
    SimulationState,
    SimulationStateEvent,
)
from systematic_trading.utils.decimals import ONE_HUNDRED, ZERO


def net_worth(cash: Decimal, equity: Decimal, price: Decimal, context: Context) -> Decimal:
    """현금 + 보유 수량 × 가격."""
    return context.add(cash, context.multiply(equity, price))


class CumulativeReturnOnInvestment:
    """전일 대비 순자산 변화율.

    변화율 = (오늘 순자산 - 전일 순자산 - 그 사이 입금액) / 전일 순자산 × 100
    첫 거래일은 기준값만 기록한다.
    """

    def __init__(self, brokerage: Brokerage, cash_account: CashAccount, context: Context):
        self.brokerage = brokerage
        self.cash_account = cash_account
        self.context = context
        self.listeners = ListenerRegistry()           # ReturnOnInvestmentEvent

        self.cumulative_percentage = ZERO
        self._previous_net_worth: Decimal | None = None
        self._previous_date: date | None = None
        self._deposits = ZERO

    def attach(self, simulation) -> None:
        """시뮬레이션의 일별 통지와 현금 입금 이벤트를 구독."""
        self.cash_account.listeners.add(self.on_cash_event)
        simulation.day_listeners.add(self.update)

    def on_cash_event(self, event: CashEvent) -> None:
        if event.event_type == CashEventType.DEPOSIT:
            self._deposits = self.context.add(self._deposits, event.amount)

    def update(self, price: TradingDayPrice) -> None:
        ctx = self.context
        current = net_worth(self.cash_account.balance, self.brokerage.equity_balance, price.close, ctx)

        if self._previous_net_worth is None:
            self._reset(current, price.date)
            return

        change = ctx.subtract(ctx.subtract(current, self._previous_net_worth), self._deposits)
        if self._previous_net_worth == ZERO:
            percentage = ZERO
        else:
            percentage = ctx.multiply(ctx.divide(change, self._previous_net_worth), ONE_HUNDRED)
        self.cumulative_percentage = ctx.add(self.cumulative_percentage, percentage)

        self.listeners.notify(ReturnOnInvestmentEvent(
            percentage_change=percentage,
            exclusive_start_date=self._previous_date,
            inclusive_end_date=price.date,
            net_worth=current,
        ))
        self._reset(current, price.date)

    def _reset(self, current: Decimal, today: date) -> None:
        self._previous_net_worth = current
        self._previous_date = today
        self._deposits = ZERO


class NetWorthSummary:
    """COMPLETE 상태 이벤트를 받아 최종 순자산 이벤트 발행."""

    def __init__(self, context: Context):
        self.context = context
        self.listeners = ListenerRegistry()           # NetWorthEvent
        self.last: NetWorthEvent | None = None

    def on_state_change(self, event: SimulationStateEvent) -> None:
        if event.state != SimulationState.COMPLETE:
            return
        self.last = NetWorthEvent(
            event_date=event.event_date,
            equity_balance=event.equity_balance,
            equity_balance_value=self.context.multiply(event.equity_balance, event.closing_price),
            cash_balance=event.cash_balance,
            net_worth=event.net_worth,
        )
        self.listeners.notify(self.last)


class EventStatistics:
    """이벤트 누계. 자금 부족 주문은 실패가 아니라 통계로 기록된다."""

    def __init__(self, context: Context):
        self.context = context
        self.buy_events = 0
        self.sell_events = 0
        self.brokerage_fees = ZERO
        self.amount_bought = ZERO
        self.amount_sold = ZERO
        self.interest_earned = ZERO
        self.deposits = ZERO
        self.management_fee_units = ZERO
        self.management_fee_value = ZERO
        self.orders: dict[OrderEventType, int] = {event_type: 0 for event_type in OrderEventType}

    def attach(self, simulation) -> None:
        """시뮬레이션과 그 증권사/현금계좌의 모든 이벤트를 구독."""
        simulation.brokerage.brokerage_listeners.add(self.on_brokerage_event)
        simulation.brokerage.equity_listeners.add(self.on_equity_event)
        simulation.cash_account.listeners.add(self.on_cash_event)
        simulation.order_listeners.add(self.on_order_event)

    def on_brokerage_event(self, event: BrokerageEvent) -> None:
        ctx = self.context
        self.brokerage_fees = ctx.add(self.brokerage_fees, event.transaction_fee)
        if event.event_type == BrokerageEventType.BUY:
            self.buy_events += 1
            self.amount_bought = ctx.add(self.amount_bought, event.trade_value)
        else:
            self.sell_events += 1
            self.amount_sold = ctx.add(self.amount_sold, event.trade_value)

    def on_cash_event(self, event: CashEvent) -> None:
        if event.event_type == CashEventType.INTEREST:
            self.interest_earned = self.context.add(self.interest_earned, event.amount)
        elif event.event_type == CashEventType.DEPOSIT:
            self.deposits = self.context.add(self.deposits, event.amount)

    def on_equity_event(self, event: EquityEvent) -> None:
        self.management_fee_units = self.context.add(self.management_fee_units, event.units)
        self.management_fee_value = self.context.add(self.management_fee_value, event.fee_value)

    def on_order_event(self, event: OrderEvent) -> None:
        self.orders[event.event_type] += 1

    @property
    def orders_deleted(self) -> int:
        return self.orders[OrderEventType.DELETED_INSUFFICIENT_FUNDS]

    @property
    def orders_resubmitted(self) -> int:
        return self.orders[OrderEventType.RESUBMITTED]
