"""
단일 종목 증권사 구현.

[ 역할 ]
    하나의 종목(자산 종류)만 거래하는 증권사. 보유 수량, 월별 거래 횟수,
    운용보수 차감일을 관리하며 매 거래마다 BrokerageEvent를 발행.

[ 수수료 ]
    - 거래 수수료: TransactionFeeStructure (이번 달 몇 번째 거래인지에 따라 구간 적용)
    - 운용보수: 마지막 보수일로부터 만 1년이 지날 때마다 ManagementFeeCalculator로 금액을 구해
      종가로 나눈 수량만큼 보유 수량에서 차감 (EquityEvent)

[ 의존성 ]
    - core/broker_api.py::Brokerage
    - brokers/fees.py, brokers/management_fees.py

[ 호출하는 곳 ]
    - backtest/orders.py (매수/매도), backtest/engine.py (update)
"""

import logging
from datetime import date
from decimal import ROUND_DOWN, Context, Decimal

from systematic_trading.core.broker_api import (
    Brokerage,
    EquityClass,
    ManagementFeeCalculator,
    TransactionFeeStructure,
)
from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.core.events import (
    BrokerageEvent,
    BrokerageEventType,
    EquityEvent,
    EquityEventType,
    ListenerRegistry,
)
from systematic_trading.core.exceptions import InsufficientEquities
from systematic_trading.utils.decimals import ZERO, scale_quantum

logger = logging.getLogger("systematic_trading.brokerage")


class MonthlyRollingCounter:
    """달력 월 단위 거래 횟수. 다른 달의 날짜가 들어오면 0부터 다시 센다."""

    def __init__(self):
        self._month: tuple[int, int] | None = None
        self._count = 0

    def add(self, trade_date: date) -> int:
        month = (trade_date.year, trade_date.month)
        if month != self._month:
            self._month = month
            self._count = 0
        self._count += 1
        return self._count

    def get(self, trade_date: date) -> int:
        if (trade_date.year, trade_date.month) != self._month:
            return 0
        return self._count


class SingleEquityClassBroker(Brokerage):
    """단일 종목 증권사."""

    def __init__(
        self,
        fees: TransactionFeeStructure,
        management_fee: ManagementFeeCalculator,
        equity_class: EquityClass,
        start_date: date,
        context: Context,
        equity_scale: int = 4,
        ticker: str = "",
    ):
        self.fees = fees
        self.management_fee = management_fee
        self._equity_class = equity_class
        self.context = context
        self.equity_scale = equity_scale
        self.ticker = ticker

        self._balance = ZERO
        self.last_management_fee_date = start_date
        self.trades = MonthlyRollingCounter()
        self._brokerage_listeners = ListenerRegistry()
        self._equity_listeners = ListenerRegistry()

    @property
    def equity_balance(self) -> Decimal:
        return self._balance

    @property
    def equity_class(self) -> EquityClass:
        return self._equity_class

    @property
    def brokerage_listeners(self) -> ListenerRegistry:
        return self._brokerage_listeners

    @property
    def equity_listeners(self) -> ListenerRegistry:
        return self._equity_listeners

    # ─── 거래 ────────────────────────────────────────────────────────────────

    def buy(self, price: Decimal, volume: Decimal, trade_date: date) -> Decimal:
        trade_value = self.context.multiply(price, volume)
        trade_number = self.trades.add(trade_date)
        fee = self.fees.calculate_fee(trade_value, self._equity_class, trade_number)

        before = self._balance
        self._balance = self.context.add(self._balance, volume)
        self._notify_trade(BrokerageEventType.BUY, trade_date, volume, before, trade_value, fee)
        logger.debug(f"[{trade_date}] 매수: {volume} @ {price} (수수료 {fee})")
        return fee

    def sell(self, price: Decimal, volume: Decimal, trade_date: date) -> Decimal:
        remaining = self.context.subtract(self._balance, volume)
        if remaining < ZERO:
            raise InsufficientEquities(
                f"[{trade_date}] 보유 수량 부족: 매도 {volume}, 보유 {self._balance}"
            )

        trade_value = self.context.multiply(price, volume)
        trade_number = self.trades.add(trade_date)
        fee = self.fees.calculate_fee(trade_value, self._equity_class, trade_number)

        before = self._balance
        self._balance = remaining
        self._notify_trade(BrokerageEventType.SELL, trade_date, volume, before, trade_value, fee)
        logger.debug(f"[{trade_date}] 매도: {volume} @ {price} (수수료 {fee})")
        return self.context.subtract(trade_value, fee)

    def transaction_fee(self, trade_value: Decimal, trade_date: date) -> Decimal:
        trade_number = self.trades.get(trade_date) + 1
        return self.fees.calculate_fee(trade_value, self._equity_class, trade_number)

    def cost(self, price: Decimal, volume: Decimal, trade_date: date) -> Decimal:
        trade_value = self.context.multiply(price, volume)
        return self.context.add(trade_value, self.transaction_fee(trade_value, trade_date))

    def net_worth(self, price: Decimal) -> Decimal:
        """보유 수량의 평가금액."""
        return self.context.multiply(self._balance, price)

    # ─── 운용보수 ────────────────────────────────────────────────────────────

    def update(self, trading_day: TradingDayPrice) -> None:
        years = _full_years_between(self.last_management_fee_date, trading_day.date)
        if years <= 0:
            return

        self.last_management_fee_date = _add_years(self.last_management_fee_date, years)
        fee_value = self.management_fee.calculate_fee(self._balance, trading_day.close, years)
        if fee_value <= ZERO or trading_day.close <= ZERO:
            return

        units = self.context.divide(fee_value, trading_day.close).quantize(
            scale_quantum(self.equity_scale), rounding=ROUND_DOWN, context=self.context
        )
        units = min(units, self._balance)
        if units <= ZERO:
            return

        before = self._balance
        self._balance = self.context.subtract(self._balance, units)
        self._equity_listeners.notify(EquityEvent(
            event_type=EquityEventType.MANAGEMENT_FEE,
            transaction_date=trading_day.date,
            units=units,
            equity_before=before,
            equity_after=self._balance,
            fee_value=self.context.multiply(units, trading_day.close),
        ))
        logger.debug(f"[{trading_day.date}] 운용보수 차감: {units}주")

    def _notify_trade(
        self,
        event_type: BrokerageEventType,
        trade_date: date,
        volume: Decimal,
        before: Decimal,
        trade_value: Decimal,
        fee: Decimal,
    ) -> None:
        self._brokerage_listeners.notify(BrokerageEvent(
            event_type=event_type,
            transaction_date=trade_date,
            volume=volume,
            equity_before=before,
            equity_after=self._balance,
            trade_value=trade_value,
            transaction_fee=fee,
        ))


def _full_years_between(start: date, end: date) -> int:
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return max(years, 0)


def _add_years(start: date, years: int) -> date:
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        # 2월 29일 → 평년 2월 28일
        return start.replace(year=start.year + years, day=28)
