from collections import deque
from datetime import date, timedelta
from decimal import Decimal

import pytest

from systematic_trading.backtest.orders import InsufficientFundsAction
from systematic_trading.brokers.fees import cmc_markets
from systematic_trading.brokers.management_fees import NoManagementFee
from systematic_trading.brokers.single_equity_broker import SingleEquityClassBroker
from systematic_trading.core.broker_api import EquityClass
from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.core.exceptions import ValidationError
from systematic_trading.core.trading_strategy import Entry
from systematic_trading.data.cash_account import CalculatedDailyPaidMonthlyCashAccount, FlatInterestRate
from systematic_trading.signals.filters import Confirmation, Operator
from systematic_trading.signals.models import IndicatorId, Signal
from systematic_trading.strategies import create_strategy, list_strategies
from systematic_trading.strategies.definitions import (
    ConfirmationFilterConfig,
    ConfirmedByConfig,
    EmaConfig,
    MacdConfig,
    OperatorConfig,
    PeriodicConfig,
    RsiConfig,
    SameDayFilterConfig,
    SmaConfig,
    build_entry,
    entry_config_from_dict,
    indicator_id,
)
from systematic_trading.strategies.entry import (
    ConfirmedByEntry,
    FilteredSignalsEntry,
    IndicatorEntry,
    OperatorEntry,
    PeriodicEntry,
)
from systematic_trading.strategies.sizing import AbsoluteBound, LargestPossibleEntryPosition, RelativeBound
from systematic_trading.strategies.trading_strategy import StrategySettings

MONDAY = date(2021, 1, 4)


class FixedEntry(Entry):
    def __init__(self, *days):
        self.days = days

    def number_of_trading_days_required(self):
        return 1

    def analyse(self, window):
        return [Signal(day, IndicatorId("FIXED")) for day in self.days]


def _on(*days):
    return [TradingDayPrice(day, Decimal(10), Decimal(10), Decimal(10), Decimal(10)) for day in days]


@pytest.fixture
def settings(ctx):
    return StrategySettings(
        context=ctx,
        entry_size=LargestPossibleEntryPosition(AbsoluteBound(Decimal(500)), RelativeBound(Decimal(1), ctx)),
        start_date=MONDAY,
    )


def _accounts(ctx, funds):
    broker = SingleEquityClassBroker(cmc_markets(ctx), NoManagementFee(), EquityClass.STOCK, MONDAY, ctx)
    cash = CalculatedDailyPaidMonthlyCashAccount(MONDAY, Decimal(funds), FlatInterestRate(Decimal(0), ctx), ctx)
    return broker, cash


# ─── 진입 트리 ──────────────────────────────────────────────────────────────

def test_periodic_entry_moves_to_next_trading_day():
    # 1월 11일(월) 휴장
    days = [MONDAY + timedelta(days=offset) for offset in (0, 1, 2, 3, 4, 8, 9, 10, 11, 14)]
    entry = PeriodicEntry(MONDAY, timedelta(days=7))

    signals = entry.analyse(_on(*days))

    assert [signal.date for signal in signals] == [date(2021, 1, 4), date(2021, 1, 12), date(2021, 1, 18)]
    assert entry.number_of_trading_days_required() == 2


def test_periodic_entry_ignores_days_before_first_date():
    entry = PeriodicEntry(date(2021, 1, 6), timedelta(days=7))
    assert entry.analyse(_on(MONDAY, date(2021, 1, 5))) == []


def test_periodic_entry_first_date_before_series_start():
    # 첫 예정일 1월 2일(토), 데이터는 1월 4일(월)부터
    entry = PeriodicEntry(date(2021, 1, 2), timedelta(days=7))

    assert [signal.date for signal in entry.analyse(_on(MONDAY))] == [MONDAY]
    assert [signal.date for signal in entry.analyse(_on(MONDAY, date(2021, 1, 5)))] == [MONDAY]
    # 창 첫날(금)은 첫 주기 안이어도 시그널 없음, 1월 9일(토) 예정분은 월요일로
    assert [signal.date for signal in entry.analyse(_on(date(2021, 1, 8), date(2021, 1, 11)))] == [date(2021, 1, 11)]


def test_indicator_entry_needs_enough_prices(ctx, prices):
    entry = build_entry(SmaConfig(lookback=2), ctx)
    series = prices([1, 2, 3])

    assert isinstance(entry, IndicatorEntry)
    assert entry.analyse(series[:2]) == []
    assert [signal.date for signal in entry.analyse(series)] == [series[2].date]


def test_confirmed_by_entry():
    entry = ConfirmedByEntry(
        FixedEntry(MONDAY),
        FixedEntry(MONDAY + timedelta(days=2), MONDAY + timedelta(days=8)),
        Confirmation(delay=1, range=2),
    )

    assert [signal.date for signal in entry.analyse([])] == [MONDAY + timedelta(days=2)]
    assert entry.number_of_trading_days_required() == 1 + 3


def test_operator_entry():
    left = FixedEntry(MONDAY, MONDAY + timedelta(days=1))
    right = FixedEntry(MONDAY + timedelta(days=1), MONDAY + timedelta(days=2))

    both = OperatorEntry(left, Operator.AND, right).analyse([])
    either = OperatorEntry(left, Operator.OR, right).analyse([])

    assert [signal.date for signal in both] == [MONDAY + timedelta(days=1)]
    assert len(either) == 3


def test_filtered_signals_entry(ctx, prices):
    entry = build_entry(SameDayFilterConfig((SmaConfig(lookback=2), EmaConfig(lookback=2))), ctx)
    series = prices([1, 2, 3, 4])

    assert isinstance(entry, FilteredSignalsEntry)
    assert entry.number_of_trading_days_required() == 4
    assert entry.analyse(series[:3]) == []
    assert [signal.date for signal in entry.analyse(series)] == [series[2].date, series[3].date]


def test_confirmation_filter_fires_inside_bounded_window(ctx, prices):
    entry = build_entry(ConfirmationFilterConfig(SmaConfig(lookback=2), SmaConfig(lookback=3), delay=3, range=3), ctx)
    series = prices(list(range(10, 40)))
    # SMA(3) 2일치 = 4, 당일 1, 확인 구간 6일
    assert entry.number_of_trading_days_required() == 4 + 1 + 6

    window = deque(maxlen=entry.number_of_trading_days_required())
    fired = []
    for price in series:
        window.append(price)
        fired.append(any(signal.date == price.date for signal in entry.analyse(tuple(window))))

    assert all(fired[10:])


def test_rolling_period_widens_filtered_window(ctx):
    entry = build_entry(SameDayFilterConfig((SmaConfig(lookback=2),), rolling_days=10), ctx)
    assert entry.number_of_trading_days_required() == 3 + 1 + 10


# ─── 진입 금액 ──────────────────────────────────────────────────────────────

def test_largest_possible_entry_position(ctx):
    size = LargestPossibleEntryPosition(AbsoluteBound(Decimal(500)), RelativeBound(Decimal("0.5"), ctx))

    assert size.entry_position_size(Decimal(400)) == 0
    assert size.entry_position_size(Decimal(800)) == Decimal(500)
    assert size.entry_position_size(Decimal(2000)) == Decimal(1000)

    capped = LargestPossibleEntryPosition(AbsoluteBound(Decimal(500)), AbsoluteBound(Decimal(5000)))
    assert capped.entry_position_size(Decimal(2000)) == Decimal(2000)


def test_bounds_validated(ctx):
    with pytest.raises(ValidationError):
        AbsoluteBound(Decimal(-1))
    with pytest.raises(ValidationError):
        RelativeBound(Decimal("1.5"), ctx)


# ─── 전략 ────────────────────────────────────────────────────────────────────

def test_entry_tick_creates_order(ctx, settings):
    broker, cash = _accounts(ctx, "1000")
    strategy = create_strategy("weekly_buy", settings)

    order = strategy.entry_tick(broker, cash, _on(MONDAY))

    assert order.target_total_cost == Decimal(1000)
    assert order.creation_date == MONDAY
    assert order.insufficient_funds_action == InsufficientFundsAction.RESUBMIT
    assert strategy.entry_tick(broker, cash, _on(MONDAY, MONDAY + timedelta(days=1))) is None


def test_entry_tick_without_funds(ctx, settings):
    broker, cash = _accounts(ctx, "400")
    strategy = create_strategy("weekly_buy", settings)
    assert strategy.entry_tick(broker, cash, _on(MONDAY)) is None


def test_entry_tick_when_no_whole_unit_affordable(ctx, settings):
    broker, cash = _accounts(ctx, "1000")
    whole_units = StrategySettings(context=ctx, entry_size=settings.entry_size, equity_scale=0, start_date=MONDAY)
    strategy = create_strategy("weekly_buy", whole_units)
    expensive = [TradingDayPrice(MONDAY, Decimal(5000), Decimal(5000), Decimal(5000), Decimal(5000))]

    assert strategy.entry_tick(broker, cash, expensive) is None


def test_preset_registry(settings):
    names = list_strategies()
    for name in ("weekly_buy", "monthly_buy", "sma_uptrend", "ema_uptrend", "sma_and_ema_uptrend",
                 "rsi_oversold", "macd_crossover", "macd_confirmed_by_rsi", "custom"):
        assert name in names

    with pytest.raises(ValueError):
        create_strategy("no_such_strategy", settings)


def test_presets_build_entry_trees(settings):
    assert isinstance(create_strategy("sma_and_ema_uptrend", settings).entry, OperatorEntry)

    confirmed = create_strategy("macd_confirmed_by_rsi", settings)
    assert isinstance(confirmed.entry, ConfirmedByEntry)
    assert confirmed.entry.window == Confirmation(1, 5)
    assert confirmed.insufficient_funds_action == InsufficientFundsAction.DELETE

    monthly = create_strategy("monthly_buy", settings, {"first_date": "2021-02-01"})
    assert monthly.entry.first_date == date(2021, 2, 1)
    assert monthly.entry.interval == timedelta(days=30)


def test_custom_preset(settings):
    strategy = create_strategy("custom", settings, {
        "entry": {"type": "rsi", "lookback": 7, "oversold": 25},
        "resubmit": True,
    })

    assert strategy.entry.indicator_id == IndicatorId("RSI_7")
    assert strategy.insufficient_funds_action == InsufficientFundsAction.RESUBMIT

    with pytest.raises(ValidationError):
        create_strategy("custom", settings)


# ─── 설정 → 진입 트리 ────────────────────────────────────────────────────────

def test_indicator_ids():
    assert str(indicator_id(SmaConfig(lookback=50))) == "SMA_50"
    assert str(indicator_id(EmaConfig())) == "EMA_20"
    assert str(indicator_id(RsiConfig())) == "RSI_14"
    assert str(indicator_id(MacdConfig())) == "MACD_12_26_9"


def test_entry_config_from_nested_dict(ctx):
    config = entry_config_from_dict({
        "type": "confirmed_by",
        "anchor": {"type": "macd"},
        "confirmation": {"type": "rsi", "lookback": 14, "oversold": 30},
        "delay": 1,
        "range": 5,
    })

    assert config == ConfirmedByConfig(MacdConfig(), RsiConfig(oversold=Decimal(30)), delay=1, range=5)
    # MACD(12, 26, 9) 2일치 = 36, 확인 구간 6일
    assert build_entry(config, ctx).number_of_trading_days_required() == 36 + 6


def test_entry_config_from_dict_operator_and_periodic():
    config = entry_config_from_dict({
        "type": "operator",
        "operator": "OR",
        "left": {"type": "periodic", "first_date": "2021-01-04", "interval_days": 14},
        "right": {"type": "sma", "lookback": 10, "gradient": "negative"},
    })

    assert isinstance(config, OperatorConfig)
    assert config.operator == Operator.OR
    assert config.left == PeriodicConfig(MONDAY, 14)
    assert config.right.lookback == 10


def test_entry_config_from_dict_rejects_unknown():
    with pytest.raises(ValidationError):
        entry_config_from_dict({"type": "bollinger"})
    with pytest.raises(ValidationError):
        entry_config_from_dict({"lookback": 5})
    with pytest.raises(ValidationError):
        entry_config_from_dict({"type": "same_day", "indicators": [{"type": "periodic", "first_date": "2021-01-04"}]})
