"""
주문 모듈.

[ 역할 ]
    전략이 만든 주문을 표현. 엔진이 매일 유효기간/체결조건을 확인하고
    조건이 맞으면 execute()로 증권사/현금계좌에 반영한다.

[ 자금 부족 정책 ]
    RESUBMIT: 다음 거래일에 그대로 다시 평가 (정기 매수)
    DELETE:   폐기 (시그널 매수)

[ 주문 ]
    - BuyTotalCostTomorrowAtOpeningPriceOrder: 생성일 다음 거래일부터 시가로,
      수수료 포함 총액이 목표 금액 이내가 되도록 매수

[ 호출하는 곳 ]
    - strategies/trading_strategy.py에서 생성
    - backtest/engine.py::Simulation._process_orders()에서 평가/체결
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_DOWN, Context, Decimal
from enum import Enum

from systematic_trading.core.account_api import CashAccount
from systematic_trading.core.broker_api import Brokerage, EquityClass
from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.core.exceptions import InsufficientFunds
from systematic_trading.utils.decimals import ZERO, scale_quantum


class OrderDirection(Enum):
    ENTRY = "entry"
    EXIT = "exit"


class InsufficientFundsAction(Enum):
    RESUBMIT = "resubmit"
    DELETE = "delete"


@dataclass(frozen=True)
class PriceRange:
    """체결 가격 조건. 당일 [저가, 고가]가 [minimum, maximum]과 겹치면 체결 가능."""
    minimum: Decimal | None = None
    maximum: Decimal | None = None

    def matches(self, price: TradingDayPrice) -> bool:
        if self.minimum is not None and price.high < self.minimum:
            return False
        if self.maximum is not None and price.low > self.maximum:
            return False
        return True


class EquityOrder(ABC):
    """주문 추상 클래스."""

    def __init__(
        self,
        creation_date: date,
        insufficient_funds_action: InsufficientFundsAction,
        expiry: timedelta | None = None,
        price_range: PriceRange | None = None,
    ):
        self.creation_date = creation_date
        self.insufficient_funds_action = insufficient_funds_action
        self.expiry = expiry
        self.price_range = price_range or PriceRange()

    @property
    @abstractmethod
    def direction(self) -> OrderDirection:
        ...

    def is_valid(self, today: date) -> bool:
        """만료 여부. expiry가 없으면 만료되지 않는다."""
        if self.expiry is None:
            return True
        return today <= self.creation_date + self.expiry

    def are_execution_conditions_met(self, price: TradingDayPrice) -> bool:
        return price.date > self.creation_date and self.price_range.matches(price)

    @abstractmethod
    def execute(self, brokerage: Brokerage, cash_account: CashAccount, price: TradingDayPrice) -> None:
        """체결. 실패 시 OrderError (InsufficientFunds / InsufficientEquities)."""
        ...

    @abstractmethod
    def describe(self) -> str:
        ...


class BuyTotalCostTomorrowAtOpeningPriceOrder(EquityOrder):
    """목표 총액(수수료 포함)만큼 다음 거래일 시가에 매수."""

    def __init__(
        self,
        target_total_cost: Decimal,
        equity_class: EquityClass,
        equity_scale: int,
        creation_date: date,
        context: Context,
        insufficient_funds_action: InsufficientFundsAction = InsufficientFundsAction.DELETE,
        expiry: timedelta | None = None,
        price_range: PriceRange | None = None,
    ):
        super().__init__(creation_date, insufficient_funds_action, expiry, price_range)
        self.target_total_cost = target_total_cost
        self.equity_class = equity_class
        self.equity_scale = equity_scale
        self.context = context

    @property
    def direction(self) -> OrderDirection:
        return OrderDirection.ENTRY

    def volume(self, brokerage: Brokerage, price: Decimal, trade_date: date) -> Decimal:
        """(목표 총액 - 목표 총액 기준 수수료) / 가격, 소수 자리 내림."""
        ctx = self.context
        maximum_fee = brokerage.transaction_fee(self.target_total_cost, trade_date)
        spendable = ctx.subtract(self.target_total_cost, maximum_fee)
        if spendable <= ZERO or price <= ZERO:
            return ZERO
        return ctx.divide(spendable, price).quantize(
            scale_quantum(self.equity_scale), rounding=ROUND_DOWN, context=ctx
        )

    def execute(self, brokerage: Brokerage, cash_account: CashAccount, price: TradingDayPrice) -> None:
        volume = self.volume(brokerage, price.open, price.date)
        if volume <= ZERO:
            raise InsufficientFunds(
                f"[{price.date}] 목표 금액 {self.target_total_cost}으로 매수 가능한 수량이 없습니다"
            )

        cost = brokerage.cost(price.open, volume, price.date)
        cash_account.debit(cost, price.date)
        brokerage.buy(price.open, volume, price.date)

    def describe(self) -> str:
        return f"시가 매수 (목표 총액 {self.target_total_cost})"

    def __repr__(self) -> str:
        return (
            f"BuyTotalCostTomorrowAtOpeningPriceOrder({self.target_total_cost}, "
            f"created={self.creation_date}, {self.insufficient_funds_action.value})"
        )
