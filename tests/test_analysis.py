from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from systematic_trading.backtest.analysis import CumulativeReturnOnInvestment, EventStatistics, NetWorthSummary
from systematic_trading.backtest.metrics import DailyNetWorthRecorder, calculate_metrics
from systematic_trading.brokers.fees import cmc_markets
from systematic_trading.brokers.management_fees import NoManagementFee
from systematic_trading.brokers.single_equity_broker import SingleEquityClassBroker
from systematic_trading.core.broker_api import EquityClass
from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.core.events import (
    ListenerRegistry,
    OrderEvent,
    OrderEventType,
    ReturnOnInvestmentEvent,
    SimulationState,
    SimulationStateEvent,
)
from systematic_trading.data.cash_account import CalculatedDailyPaidMonthlyCashAccount, FlatInterestRate

START = date(2021, 1, 4)


def _close(day, value):
    value = Decimal(value)
    return TradingDayPrice(day, value, value, value, value)


def test_return_on_investment_excludes_deposits(ctx):
    broker = SingleEquityClassBroker(cmc_markets(ctx), NoManagementFee(), EquityClass.STOCK, START, ctx)
    cash = CalculatedDailyPaidMonthlyCashAccount(START, Decimal(1000), FlatInterestRate(Decimal(0), ctx), ctx)
    roi = CumulativeReturnOnInvestment(broker, cash, ctx)
    simulation = SimpleNamespace(day_listeners=ListenerRegistry())
    roi.attach(simulation)
    events = []
    roi.listeners.add(events.append)

    broker.buy(Decimal(10), Decimal(100), START)
    simulation.day_listeners.notify(_close(START, "10"))
    simulation.day_listeners.notify(_close(date(2021, 1, 5), "11"))
    cash.deposit(Decimal(100), date(2021, 1, 6))
    simulation.day_listeners.notify(_close(date(2021, 1, 6), "11"))

    assert [event.percentage_change for event in events] == [Decimal(5), Decimal(0)]
    assert events[0].exclusive_start_date == START
    assert events[1].net_worth == Decimal(2200)
    assert roi.cumulative_percentage == Decimal(5)


def test_net_worth_summary_on_complete(ctx):
    summary = NetWorthSummary(ctx)
    received = []
    summary.listeners.add(received.append)
    snapshot = dict(event_date=START, cash_balance=Decimal(100), equity_balance=Decimal(3),
                    closing_price=Decimal(50), net_worth=Decimal(250))

    summary.on_state_change(SimulationStateEvent(state=SimulationState.IN_PROGRESS, **snapshot))
    summary.on_state_change(SimulationStateEvent(state=SimulationState.COMPLETE, **snapshot))

    assert len(received) == 1
    assert received[0].equity_balance_value == Decimal(150)
    assert summary.last.net_worth == Decimal(250)


def test_event_statistics(ctx):
    broker = SingleEquityClassBroker(cmc_markets(ctx), NoManagementFee(), EquityClass.STOCK, START, ctx)
    cash = CalculatedDailyPaidMonthlyCashAccount(START, Decimal(0), FlatInterestRate(Decimal(0), ctx), ctx)
    simulation = SimpleNamespace(brokerage=broker, cash_account=cash, order_listeners=ListenerRegistry())
    statistics = EventStatistics(ctx)
    statistics.attach(simulation)

    cash.deposit(Decimal(500), START)
    broker.buy(Decimal(10), Decimal(20), START)
    broker.sell(Decimal(10), Decimal(5), START)
    simulation.order_listeners.notify(
        OrderEvent(OrderEventType.RESUBMITTED, START, START, "entry", "test")
    )

    assert statistics.deposits == Decimal(500)
    assert statistics.buy_events == 1
    assert statistics.sell_events == 1
    assert statistics.brokerage_fees == Decimal(22)
    assert statistics.amount_bought == Decimal(200)
    assert statistics.orders_resubmitted == 1
    assert statistics.orders_deleted == 0


def test_calculate_metrics(ctx):
    recorder = DailyNetWorthRecorder()
    for day, change, worth in [(5, "10", "1100"), (6, "-20", "880"), (7, "25", "1100")]:
        recorder(ReturnOnInvestmentEvent(Decimal(change), date(2021, 1, day - 1), date(2021, 1, day), Decimal(worth)))
    statistics = EventStatistics(ctx)

    metrics = calculate_metrics(recorder, statistics, Decimal(1000), Decimal(1100), trading_days=4)

    assert metrics.total_return == pytest.approx(10.0)
    assert metrics.max_drawdown == pytest.approx(20.0)
    assert metrics.invested == pytest.approx(1000.0)
    assert metrics.trading_days == 4
    assert "백테스트 성과 리포트" in metrics.summary()
    assert list(recorder.to_frame().columns) == ["date", "net_worth", "percentage_change"]


def test_metrics_without_daily_records(ctx):
    metrics = calculate_metrics(DailyNetWorthRecorder(), EventStatistics(ctx), Decimal(0), Decimal(0), trading_days=1)
    assert metrics.total_return == 0.0
    assert metrics.sharpe_ratio == 0.0
