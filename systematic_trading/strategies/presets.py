"""
등록된 전략 프리셋.

[ 프리셋 ]
    weekly_buy              매주 정기 매수 (자금 부족 시 다음 날 재시도)
    monthly_buy             30일마다 정기 매수
    sma_uptrend             SMA 상승 기울기
    ema_uptrend             EMA 상승 기울기
    sma_and_ema_uptrend     SMA, EMA 모두 같은 날 상승
    rsi_oversold            RSI 과매도 상향 돌파
    macd_crossover          MACD 시그널선/0선 상향 돌파
    macd_confirmed_by_rsi   MACD 돌파 후 [delay, delay+range]일 안에 RSI 과매도 돌파
    custom                  params.entry에 dict로 기술한 진입 트리
"""

from datetime import date
from decimal import Decimal

from systematic_trading.backtest.orders import InsufficientFundsAction
from systematic_trading.core.exceptions import ValidationError
from systematic_trading.signals.filters import Operator
from systematic_trading.strategies import register
from systematic_trading.strategies.definitions import (
    ConfirmedByConfig,
    EmaConfig,
    MacdConfig,
    OperatorConfig,
    PeriodicConfig,
    RsiConfig,
    SmaConfig,
    StrategyPreset,
    entry_config_from_dict,
)
from systematic_trading.utils.decimals import to_decimal


def _first_date(params, settings) -> date:
    value = params.get("first_date") or settings.start_date
    if value is None:
        raise ValidationError("주기 매수에는 first_date 또는 시작일 설정이 필요합니다")
    return value if isinstance(value, date) else date.fromisoformat(str(value))


class PeriodicBuy(StrategyPreset):
    """정기 매수. 자금 부족이면 주문을 유지해 다음 거래일에 재시도."""

    INSUFFICIENT_FUNDS_ACTION = InsufficientFundsAction.RESUBMIT

    def entry_config(self, settings):
        return PeriodicConfig(_first_date(self.params, settings), int(self.params["interval_days"]))


@register("weekly_buy")
class WeeklyBuy(PeriodicBuy):
    DEFAULT_PARAMS = {"interval_days": 7, "first_date": None}

    def __init__(self, params=None):
        super().__init__(name="weekly_buy", params=params)


@register("monthly_buy")
class MonthlyBuy(PeriodicBuy):
    DEFAULT_PARAMS = {"interval_days": 30, "first_date": None}

    def __init__(self, params=None):
        super().__init__(name="monthly_buy", params=params)


@register("sma_uptrend")
class SmaUptrend(StrategyPreset):
    DEFAULT_PARAMS = {"lookback": 20, "days_of_gradient": 2}

    def __init__(self, params=None):
        super().__init__(name="sma_uptrend", params=params)

    def entry_config(self, settings):
        return SmaConfig(
            lookback=int(self.params["lookback"]),
            days_of_gradient=int(self.params["days_of_gradient"]),
        )


@register("ema_uptrend")
class EmaUptrend(StrategyPreset):
    DEFAULT_PARAMS = {"lookback": 20, "days_of_gradient": 2}

    def __init__(self, params=None):
        super().__init__(name="ema_uptrend", params=params)

    def entry_config(self, settings):
        return EmaConfig(
            lookback=int(self.params["lookback"]),
            days_of_gradient=int(self.params["days_of_gradient"]),
        )


@register("sma_and_ema_uptrend")
class SmaAndEmaUptrend(StrategyPreset):
    DEFAULT_PARAMS = {"sma_lookback": 50, "ema_lookback": 20}

    def __init__(self, params=None):
        super().__init__(name="sma_and_ema_uptrend", params=params)

    def entry_config(self, settings):
        return OperatorConfig(
            left=SmaConfig(lookback=int(self.params["sma_lookback"])),
            operator=Operator.AND,
            right=EmaConfig(lookback=int(self.params["ema_lookback"])),
        )


@register("rsi_oversold")
class RsiOversold(StrategyPreset):
    DEFAULT_PARAMS = {"lookback": 14, "oversold": 30, "overbought": 70}

    def __init__(self, params=None):
        super().__init__(name="rsi_oversold", params=params)

    def entry_config(self, settings):
        return RsiConfig(
            lookback=int(self.params["lookback"]),
            oversold=to_decimal(self.params["oversold"]),
            overbought=to_decimal(self.params["overbought"]),
        )


@register("macd_crossover")
class MacdCrossover(StrategyPreset):
    DEFAULT_PARAMS = {"fast": 12, "slow": 26, "signal": 9}

    def __init__(self, params=None):
        super().__init__(name="macd_crossover", params=params)

    def entry_config(self, settings):
        return MacdConfig(
            fast=int(self.params["fast"]),
            slow=int(self.params["slow"]),
            signal=int(self.params["signal"]),
        )


@register("macd_confirmed_by_rsi")
class MacdConfirmedByRsi(StrategyPreset):
    DEFAULT_PARAMS = {
        "fast": 12,
        "slow": 26,
        "signal": 9,
        "rsi_lookback": 5,
        "oversold": 30,
        "delay": 1,
        "range": 5,
    }

    def __init__(self, params=None):
        super().__init__(name="macd_confirmed_by_rsi", params=params)

    def entry_config(self, settings):
        return ConfirmedByConfig(
            anchor=MacdConfig(
                fast=int(self.params["fast"]),
                slow=int(self.params["slow"]),
                signal=int(self.params["signal"]),
            ),
            confirmation=RsiConfig(
                lookback=int(self.params["rsi_lookback"]),
                oversold=to_decimal(self.params["oversold"]),
                overbought=Decimal(100),
            ),
            delay=int(self.params["delay"]),
            range=int(self.params["range"]),
        )


@register("custom")
class CustomEntry(StrategyPreset):
    """params 예: {"entry": {"type": "sma", "lookback": 50}, "resubmit": false}"""

    DEFAULT_PARAMS = {"entry": None, "resubmit": False}

    def __init__(self, params=None):
        super().__init__(name="custom", params=params)
        if self.params.get("resubmit"):
            self.INSUFFICIENT_FUNDS_ACTION = InsufficientFundsAction.RESUBMIT

    def entry_config(self, settings):
        if not self.params.get("entry"):
            raise ValidationError("custom 전략에는 params.entry가 필요합니다")
        return entry_config_from_dict(self.params["entry"])
