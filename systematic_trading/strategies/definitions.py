"""
전략 설정 값 객체와 빌더.

[ 역할 ]
    지표/진입 트리를 선언적으로 기술하는 불변 설정 객체(IndicatorConfig, EntryConfig)와
    이를 실제 객체로 바꾸는 단일 빌더 함수(build_indicator, build_entry)를 정의.
    YAML에서 읽은 dict는 entry_config_from_dict()로 설정 객체가 된다.

[ 설정 종류 ]
    지표:   SmaConfig, EmaConfig, RsiConfig, MacdConfig
    진입:   PeriodicConfig, ConfirmedByConfig, OperatorConfig,
            SameDayFilterConfig, ConfirmationFilterConfig (+ 지표 설정)

[ dict 형식 예 ]
    {"type": "confirmed_by",
     "anchor": {"type": "macd", "fast": 12, "slow": 26, "signal": 9},
     "confirmation": {"type": "rsi", "lookback": 14, "oversold": 30},
     "delay": 1, "range": 5}

[ 호출하는 곳 ]
    - strategies/presets.py의 각 프리셋
    - backtest/bootstrap.py (config.yaml의 strategy.params.entry)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Context, Decimal
from typing import Any, Union

from systematic_trading.backtest.orders import InsufficientFundsAction
from systematic_trading.core.exceptions import ValidationError
from systematic_trading.core.trading_strategy import Entry
from systematic_trading.indicators.ema import ExponentialMovingAverage
from systematic_trading.indicators.macd import MovingAverageConvergenceDivergence
from systematic_trading.indicators.rsi import RelativeStrengthIndex
from systematic_trading.indicators.sma import SimpleMovingAverage
from systematic_trading.signals.filters import (
    Confirmation,
    ConfirmationSignalFilter,
    Operator,
    RollingTimePeriodSignalFilter,
    SameDaySignalFilter,
    SignalFilter,
)
from systematic_trading.signals.generators import (
    Gradient,
    MacdCrossoverSignals,
    MovingAverageGradientSignals,
    RsiThresholdSignals,
    TradingDaySignalRange,
)
from systematic_trading.signals.models import IndicatorId, SignalType
from systematic_trading.strategies.entry import (
    ConfirmedByEntry,
    FilteredSignalsEntry,
    IndicatorEntry,
    OperatorEntry,
    PeriodicEntry,
)
from systematic_trading.strategies.sizing import HoldForeverExit
from systematic_trading.strategies.trading_strategy import EntryExitStrategy, StrategySettings
from systematic_trading.utils.decimals import to_decimal


# ─── 지표 설정 ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SmaConfig:
    lookback: int = 20
    days_of_gradient: int = 2              # 기울기 판단에 쓰는 SMA 값 개수
    gradient: Gradient = Gradient.POSITIVE
    signal_range: int | None = None        # 최근 N 거래일 시그널만 (None이면 전체)


@dataclass(frozen=True)
class EmaConfig:
    lookback: int = 20
    days_of_gradient: int = 2
    gradient: Gradient = Gradient.POSITIVE
    signal_range: int | None = None


@dataclass(frozen=True)
class RsiConfig:
    lookback: int = 14
    oversold: Decimal = Decimal(30)
    overbought: Decimal = Decimal(70)
    signal_type: SignalType = SignalType.BULLISH
    days_of_values: int = 2
    signal_range: int | None = None


@dataclass(frozen=True)
class MacdConfig:
    fast: int = 12
    slow: int = 26
    signal: int = 9
    signal_type: SignalType = SignalType.BULLISH
    days_of_values: int = 2
    signal_range: int | None = None


IndicatorConfig = Union[SmaConfig, EmaConfig, RsiConfig, MacdConfig]


# ─── 진입 트리 설정 ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PeriodicConfig:
    first_date: date
    interval_days: int = 7


@dataclass(frozen=True)
class ConfirmedByConfig:
    anchor: "EntryConfig"
    confirmation: "EntryConfig"
    delay: int = 1
    range: int = 5


@dataclass(frozen=True)
class OperatorConfig:
    left: "EntryConfig"
    operator: Operator
    right: "EntryConfig"


@dataclass(frozen=True)
class SameDayFilterConfig:
    indicators: tuple[IndicatorConfig, ...]
    rolling_days: int | None = None


@dataclass(frozen=True)
class ConfirmationFilterConfig:
    anchor: IndicatorConfig
    confirmation: IndicatorConfig
    delay: int = 1
    range: int = 5
    rolling_days: int | None = None


EntryConfig = Union[
    IndicatorConfig,
    PeriodicConfig,
    ConfirmedByConfig,
    OperatorConfig,
    SameDayFilterConfig,
    ConfirmationFilterConfig,
]


# ─── 빌더 ────────────────────────────────────────────────────────────────────

def indicator_id(config: IndicatorConfig) -> IndicatorId:
    """설정에서 지표 식별자 생성 (예: SMA_20, MACD_12_26_9)."""
    if isinstance(config, SmaConfig):
        return IndicatorId(f"SMA_{config.lookback}")
    if isinstance(config, EmaConfig):
        return IndicatorId(f"EMA_{config.lookback}")
    if isinstance(config, RsiConfig):
        return IndicatorId(f"RSI_{config.lookback}")
    if isinstance(config, MacdConfig):
        return IndicatorId(f"MACD_{config.fast}_{config.slow}_{config.signal}")
    raise ValidationError(f"알 수 없는 지표 설정: {config!r}")


def build_indicator(config: IndicatorConfig, context: Context) -> IndicatorEntry:
    """지표 설정 → IndicatorEntry (계산기 + 시그널 생성기)."""
    if isinstance(config, SmaConfig):
        calculator = SimpleMovingAverage(config.lookback, context, config.days_of_gradient)
        generator = MovingAverageGradientSignals(config.gradient)
    elif isinstance(config, EmaConfig):
        calculator = ExponentialMovingAverage(config.lookback, context, config.days_of_gradient)
        generator = MovingAverageGradientSignals(config.gradient)
    elif isinstance(config, RsiConfig):
        calculator = RelativeStrengthIndex(config.lookback, context, config.days_of_values)
        generator = RsiThresholdSignals(config.signal_type, config.oversold, config.overbought)
    elif isinstance(config, MacdConfig):
        calculator = MovingAverageConvergenceDivergence(
            config.fast, config.slow, config.signal, context, config.days_of_values
        )
        generator = MacdCrossoverSignals(config.signal_type)
    else:
        raise ValidationError(f"알 수 없는 지표 설정: {config!r}")

    signal_range = TradingDaySignalRange(config.signal_range) if config.signal_range is not None else None
    return IndicatorEntry(indicator_id(config), calculator, generator, signal_range)


def build_entry(config: EntryConfig, context: Context) -> Entry:
    """진입 설정 트리 → Entry 트리."""
    if isinstance(config, (SmaConfig, EmaConfig, RsiConfig, MacdConfig)):
        return build_indicator(config, context)

    if isinstance(config, PeriodicConfig):
        return PeriodicEntry(config.first_date, timedelta(days=config.interval_days))

    if isinstance(config, ConfirmedByConfig):
        return ConfirmedByEntry(
            build_entry(config.anchor, context),
            build_entry(config.confirmation, context),
            Confirmation(config.delay, config.range),
        )

    if isinstance(config, OperatorConfig):
        return OperatorEntry(
            build_entry(config.left, context),
            config.operator,
            build_entry(config.right, context),
        )

    if isinstance(config, SameDayFilterConfig):
        indicators = [build_indicator(indicator, context) for indicator in config.indicators]
        signal_filter: SignalFilter = SameDaySignalFilter(*(entry.indicator_id for entry in indicators))
        return FilteredSignalsEntry(indicators, [_rolling(signal_filter, config.rolling_days)])

    if isinstance(config, ConfirmationFilterConfig):
        anchor = build_indicator(config.anchor, context)
        confirmation = build_indicator(config.confirmation, context)
        signal_filter = ConfirmationSignalFilter(
            anchor.indicator_id,
            confirmation.indicator_id,
            Confirmation(config.delay, config.range),
        )
        return FilteredSignalsEntry([anchor, confirmation], [_rolling(signal_filter, config.rolling_days)])

    raise ValidationError(f"알 수 없는 진입 설정: {config!r}")


def _rolling(signal_filter: SignalFilter, rolling_days: int | None) -> SignalFilter:
    if rolling_days is None:
        return signal_filter
    return RollingTimePeriodSignalFilter(signal_filter, rolling_days)


def build_strategy(
    name: str,
    config: EntryConfig,
    settings: StrategySettings,
    insufficient_funds_action: InsufficientFundsAction = InsufficientFundsAction.DELETE,
) -> EntryExitStrategy:
    return EntryExitStrategy(
        name=name,
        entry=build_entry(config, settings.context),
        exit_rule=HoldForeverExit(),
        settings=settings,
        insufficient_funds_action=insufficient_funds_action,
    )


# ─── dict(YAML) → 설정 ──────────────────────────────────────────────────────

def entry_config_from_dict(data: dict[str, Any]) -> EntryConfig:
    """{"type": ..., 파라미터...} 형식의 dict를 설정 객체로 변환."""
    if not isinstance(data, dict) or "type" not in data:
        raise ValidationError(f"진입 설정에는 type이 필요합니다: {data!r}")

    kind = str(data["type"]).lower()
    params = {k: v for k, v in data.items() if k != "type"}

    if kind in _INDICATOR_TYPES:
        return _indicator_from_dict(kind, params)
    if kind == "periodic":
        first_date = params.get("first_date")
        if first_date is None:
            raise ValidationError("periodic 설정에는 first_date가 필요합니다")
        return PeriodicConfig(
            first_date=_to_date(first_date),
            interval_days=int(params.get("interval_days", 7)),
        )
    if kind == "confirmed_by":
        return ConfirmedByConfig(
            anchor=entry_config_from_dict(params["anchor"]),
            confirmation=entry_config_from_dict(params["confirmation"]),
            delay=int(params.get("delay", 1)),
            range=int(params.get("range", 5)),
        )
    if kind == "operator":
        return OperatorConfig(
            left=entry_config_from_dict(params["left"]),
            operator=Operator(str(params.get("operator", "and")).lower()),
            right=entry_config_from_dict(params["right"]),
        )
    if kind == "same_day":
        return SameDayFilterConfig(
            indicators=tuple(_indicator_dict(item) for item in params.get("indicators", [])),
            rolling_days=params.get("rolling_days"),
        )
    if kind == "confirmation":
        return ConfirmationFilterConfig(
            anchor=_indicator_dict(params["anchor"]),
            confirmation=_indicator_dict(params["confirmation"]),
            delay=int(params.get("delay", 1)),
            range=int(params.get("range", 5)),
            rolling_days=params.get("rolling_days"),
        )
    raise ValidationError(f"알 수 없는 진입 설정 type: {kind}")


_INDICATOR_TYPES = {
    "sma": SmaConfig,
    "ema": EmaConfig,
    "rsi": RsiConfig,
    "macd": MacdConfig,
}


def _indicator_dict(data: dict[str, Any]) -> IndicatorConfig:
    config = entry_config_from_dict(data)
    if not isinstance(config, (SmaConfig, EmaConfig, RsiConfig, MacdConfig)):
        raise ValidationError(f"지표 설정이 필요합니다: {data!r}")
    return config


def _indicator_from_dict(kind: str, params: dict[str, Any]) -> IndicatorConfig:
    cls = _INDICATOR_TYPES[kind]
    fields = {k: v for k, v in params.items() if k in cls.__dataclass_fields__}
    if "gradient" in fields:
        fields["gradient"] = Gradient(str(fields["gradient"]).lower())
    if "signal_type" in fields:
        fields["signal_type"] = SignalType(str(fields["signal_type"]).lower())
    for key in ("oversold", "overbought"):
        if key in fields:
            fields[key] = to_decimal(fields[key])
    return cls(**fields)


def _to_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


# ─── 프리셋 ──────────────────────────────────────────────────────────────────

class StrategyPreset(ABC):
    """이름으로 등록되는 전략 프리셋. DEFAULT_PARAMS 위에 params를 덮어쓴다."""

    DEFAULT_PARAMS: dict[str, Any] = {}
    INSUFFICIENT_FUNDS_ACTION = InsufficientFundsAction.DELETE

    def __init__(self, name: str, params: dict[str, Any] | None = None):
        self.name = name
        self.params = {**self.DEFAULT_PARAMS, **(params or {})}

    @abstractmethod
    def entry_config(self, settings: StrategySettings) -> EntryConfig:
        ...

    def build(self, settings: StrategySettings) -> EntryExitStrategy:
        return build_strategy(
            self.name,
            self.entry_config(settings),
            settings,
            self.INSUFFICIENT_FUNDS_ACTION,
        )
