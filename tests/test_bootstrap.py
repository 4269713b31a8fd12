from datetime import date
from decimal import Decimal

import pytest

from systematic_trading.backtest.bootstrap import (
    build_brokerage,
    build_cash_account,
    build_fee_structure,
    run_configuration,
)
from systematic_trading.brokers.fees import TieredTransactionFee
from systematic_trading.core.broker_api import EquityClass
from systematic_trading.core.exceptions import ValidationError
from systematic_trading.data.cash_account import CalculatedDailyPaidMonthlyCashAccount, RegularDepositCashAccount
from systematic_trading.utils.config import BacktestConfig, Config


@pytest.fixture
def config():
    config = Config()
    config.backtest.start_date = "2021-01-01"
    config.backtest.end_date = "2021-12-31"
    config.backtest.opening_funds = "10000"
    return config


def test_weekly_buy_end_to_end(config, prices):
    series = prices([10 + index * 0.1 for index in range(30)], start=date(2021, 1, 4))

    report = run_configuration(config, series)

    assert report.strategy_name == "weekly_buy"
    assert report.result.trading_days == 30
    assert report.result.start_date == date(2021, 1, 4)
    # 첫 매수로 현금을 대부분 쓰고, 이후 주간 입금(100)은 최소 진입 금액(500)에 못 미친다
    assert report.statistics.buy_events == 1
    assert report.statistics.deposits == Decimal(500)
    assert report.metrics.invested == pytest.approx(10500.0)
    assert report.result.final_state.equity_balance > 0
    assert len(report.daily.dates) == 29


def test_prices_outside_period_rejected(config, prices):
    with pytest.raises(ValidationError):
        run_configuration(config, prices([10, 11], start=date(2022, 3, 1)))


def test_strategy_override(config, prices):
    series = prices([10 + index * 0.1 for index in range(30)], start=date(2021, 1, 4))

    report = run_configuration(config, series, strategy_name="sma_uptrend", strategy_params={"lookback": 5})

    assert report.strategy_name == "sma_uptrend"
    assert report.statistics.buy_events == 1


def test_cash_account_without_deposits(ctx):
    backtest = BacktestConfig(deposit_amount="0")
    account = build_cash_account(backtest, date(2021, 1, 4), ctx)
    assert isinstance(account, CalculatedDailyPaidMonthlyCashAccount)

    account = build_cash_account(BacktestConfig(), date(2021, 1, 4), ctx)
    assert isinstance(account, RegularDepositCashAccount)


def test_fee_structures(ctx):
    custom = BacktestConfig(
        brokerage="custom",
        fee_tiers=[{"max_trades": None, "flat_fee": "5", "percentage": "0.001"}],
    )
    fees = build_fee_structure(custom, ctx)
    assert isinstance(fees, TieredTransactionFee)
    assert fees.calculate_fee(Decimal(1000), EquityClass.BOND, 1) == Decimal(5)

    with pytest.raises(ValidationError):
        build_fee_structure(BacktestConfig(brokerage="nobody"), ctx)


def test_brokerage_equity_class(ctx):
    broker = build_brokerage(BacktestConfig(equity_class="FUND", management_fee="0.002"), date(2021, 1, 4), ctx)
    assert broker.equity_class == EquityClass.FUND

    with pytest.raises(ValidationError):
        build_brokerage(BacktestConfig(equity_class="crypto"), date(2021, 1, 4), ctx)
