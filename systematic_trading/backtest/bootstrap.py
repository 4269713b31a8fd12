"""
설정 → 코어 객체 조립 및 단일 시뮬레이션 실행.

[ 역할 ]
    Config를 검증된 값 객체로 바꿔 현금계좌, 증권사, 전략을 만들고
    분석 리스너(수익률, 통계, 일별 기록)를 연결한 뒤 시뮬레이션을 한 번 실행.

[ 조립 순서 ]
    1. DecimalConfig → decimal.Context (모든 컴포넌트가 공유)
    2. 현금계좌: CalculatedDailyPaidMonthlyCashAccount (+ RegularDepositCashAccount)
    3. 증권사: SingleEquityClassBroker (수수료표 + 운용보수)
    4. 전략: strategies.create_strategy(이름, 설정, 파라미터)
    5. Simulation 실행 → calculate_metrics()

[ 호출하는 곳 ]
    - run_backtest.py::run_single()
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Context, Decimal
from typing import Sequence

from systematic_trading.backtest.analysis import CumulativeReturnOnInvestment, EventStatistics, NetWorthSummary
from systematic_trading.backtest.engine import Simulation, SimulationResult
from systematic_trading.backtest.metrics import BacktestMetrics, DailyNetWorthRecorder, calculate_metrics
from systematic_trading.brokers.fees import FEE_SCHEDULES, TieredTransactionFee, tiers_from_table
from systematic_trading.brokers.management_fees import FlatManagementFee, NoManagementFee
from systematic_trading.brokers.single_equity_broker import SingleEquityClassBroker
from systematic_trading.core.account_api import CashAccount
from systematic_trading.core.broker_api import EquityClass, TransactionFeeStructure
from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.core.exceptions import ValidationError
from systematic_trading.data.cash_account import (
    CalculatedDailyPaidMonthlyCashAccount,
    FlatInterestRate,
    RegularDepositCashAccount,
)
from systematic_trading.strategies import create_strategy
from systematic_trading.strategies.sizing import AbsoluteBound, LargestPossibleEntryPosition, RelativeBound
from systematic_trading.strategies.trading_strategy import StrategySettings
from systematic_trading.utils.config import BacktestConfig, Config
from systematic_trading.utils.decimals import ZERO, create_context, to_decimal

logger = logging.getLogger("systematic_trading.bootstrap")


@dataclass
class BacktestReport:
    """run_configuration()의 반환값."""
    strategy_name: str
    result: SimulationResult
    metrics: BacktestMetrics
    statistics: EventStatistics
    daily: DailyNetWorthRecorder


def build_context(config: Config) -> Context:
    return create_context(config.decimal.precision, config.decimal.rounding)


def build_cash_account(backtest: BacktestConfig, opening_date: date, context: Context) -> CashAccount:
    """이자 계좌 (+ 정기 입금)."""
    account = CalculatedDailyPaidMonthlyCashAccount(
        opening_date=opening_date,
        opening_funds=to_decimal(backtest.opening_funds),
        rate=FlatInterestRate(to_decimal(backtest.interest_rate), context),
        context=context,
    )
    deposit = to_decimal(backtest.deposit_amount)
    if deposit <= ZERO:
        return account
    return RegularDepositCashAccount(
        amount=deposit,
        account=account,
        first_deposit=opening_date,
        interval=timedelta(days=backtest.deposit_interval_days),
    )


def build_fee_structure(backtest: BacktestConfig, context: Context) -> TransactionFeeStructure:
    equity_classes = list(EquityClass)
    if backtest.brokerage == "custom":
        return TieredTransactionFee(tiers_from_table(backtest.fee_tiers), equity_classes, context)
    if backtest.brokerage not in FEE_SCHEDULES:
        available = ", ".join(sorted([*FEE_SCHEDULES, "custom"]))
        raise ValidationError(f"알 수 없는 수수료표: '{backtest.brokerage}'. 사용 가능: {available}")
    return FEE_SCHEDULES[backtest.brokerage](context)


def build_brokerage(backtest: BacktestConfig, opening_date: date, context: Context) -> SingleEquityClassBroker:
    management = to_decimal(backtest.management_fee)
    return SingleEquityClassBroker(
        fees=build_fee_structure(backtest, context),
        management_fee=FlatManagementFee(management, context) if management > ZERO else NoManagementFee(),
        equity_class=_equity_class(backtest.equity_class),
        start_date=opening_date,
        context=context,
        equity_scale=backtest.equity_scale,
        ticker=backtest.ticker,
    )


def build_settings(backtest: BacktestConfig, opening_date: date, context: Context) -> StrategySettings:
    entry_size = LargestPossibleEntryPosition(
        minimum=AbsoluteBound(to_decimal(backtest.minimum_trade)),
        maximum=RelativeBound(to_decimal(backtest.maximum_trade), context),
    )
    expiry = timedelta(days=backtest.order_expiry_days) if backtest.order_expiry_days is not None else None
    return StrategySettings(
        context=context,
        entry_size=entry_size,
        equity_class=_equity_class(backtest.equity_class),
        equity_scale=backtest.equity_scale,
        order_expiry=expiry,
        start_date=opening_date,
    )


def run_configuration(
    config: Config,
    prices: Sequence[TradingDayPrice],
    strategy_name: str | None = None,
    strategy_params: dict | None = None,
) -> BacktestReport:
    """단일 전략 시뮬레이션 실행. 설정 기간 밖의 가격은 제외한다."""
    backtest = config.backtest
    start = date.fromisoformat(backtest.start_date)
    end = date.fromisoformat(backtest.end_date)
    in_range = [price for price in prices if start <= price.date <= end]
    if not in_range:
        raise ValidationError(f"기간 {start} ~ {end}에 가격 데이터가 없습니다")
    opening_date = min(price.date for price in in_range)

    context = build_context(config)
    cash_account = build_cash_account(backtest, opening_date, context)
    brokerage = build_brokerage(backtest, opening_date, context)
    name = strategy_name or config.strategy.name
    params = config.strategy.params if strategy_params is None else strategy_params
    strategy = create_strategy(name, build_settings(backtest, opening_date, context), params)

    simulation = Simulation(brokerage, cash_account, strategy, context)
    statistics = EventStatistics(context)
    statistics.attach(simulation)
    daily = DailyNetWorthRecorder()
    roi = CumulativeReturnOnInvestment(brokerage, cash_account, context)
    roi.listeners.add(daily)
    roi.attach(simulation)
    summary = NetWorthSummary(context)
    simulation.state_listeners.add(summary.on_state_change)

    result = simulation.run(in_range)
    metrics = calculate_metrics(
        recorder=daily,
        statistics=statistics,
        opening_funds=to_decimal(backtest.opening_funds),
        final_net_worth=result.final_state.net_worth,
        trading_days=result.trading_days,
    )
    logger.info(f"[{name}] 총 수익률 {metrics.total_return:.2f}%, 수수료 {metrics.brokerage_fees:,.2f}")
    return BacktestReport(
        strategy_name=name,
        result=result,
        metrics=metrics,
        statistics=statistics,
        daily=daily,
    )


def _equity_class(name: str) -> EquityClass:
    try:
        return EquityClass(name.lower())
    except ValueError:
        available = ", ".join(item.value for item in EquityClass)
        raise ValidationError(f"알 수 없는 자산 종류: '{name}'. 사용 가능: {available}") from None
