"""
현금계좌 구현 모듈.

[ 역할 ]
    - FlatInterestRate: 고정 연이율 (윤년은 366일 기준)
    - CalculatedDailyPaidMonthlyCashAccount: 이자를 매일 계산해 에스크로에 쌓고,
      달이 바뀔 때 한 번에 지급
    - RegularDepositCashAccount: 정해진 주기마다 입금하는 데코레이터

[ 이자 흐름 ]
    update(date):
        1. 마지막 계산일과 같은 달이 될 때까지: 그 달 남은 일수 이자 + 에스크로 지급,
           에스크로 0으로 초기화, 마지막 계산일 = 다음 달 1일
        2. 남은 일수 이자를 에스크로에 적립, 마지막 계산일 = date

[ 의존성 ]
    - core/account_api.py::CashAccount, InterestRate
    - core/events.py::CashEvent

[ 호출하는 곳 ]
    - backtest/bootstrap.py에서 생성, backtest/engine.py에서 사용
"""

import calendar
import logging
from datetime import date, timedelta
from decimal import Context, Decimal

from systematic_trading.core.account_api import CashAccount, InterestRate
from systematic_trading.core.events import CashEvent, CashEventType, ListenerRegistry
from systematic_trading.core.exceptions import InsufficientFunds, OutOfOrderUpdate
from systematic_trading.utils.decimals import ONE_HUNDRED, ZERO

logger = logging.getLogger("systematic_trading.cash")


class FlatInterestRate(InterestRate):
    """고정 연이율. annual_percentage=7.5 → 연 7.5%."""

    def __init__(self, annual_percentage: Decimal, context: Context):
        self.annual_percentage = annual_percentage
        self.context = context
        annual_fraction = context.divide(annual_percentage, ONE_HUNDRED)
        self._daily = context.divide(annual_fraction, Decimal(365))
        self._daily_leap_year = context.divide(annual_fraction, Decimal(366))

    def interest(self, funds: Decimal, days: int, leap_year: bool) -> Decimal:
        if days == 0:
            return ZERO
        daily = self._daily_leap_year if leap_year else self._daily
        return self.context.multiply(self.context.multiply(daily, funds), Decimal(days))


class CalculatedDailyPaidMonthlyCashAccount(CashAccount):
    """일할 이자 계산, 월 지급 현금계좌."""

    def __init__(
        self,
        opening_date: date,
        opening_funds: Decimal,
        rate: InterestRate,
        context: Context,
    ):
        self.rate = rate
        self.context = context
        self.funds = opening_funds
        self.escrow = ZERO                         # 적립되었으나 아직 지급되지 않은 이자
        self.last_interest_calculation = opening_date
        self._listeners = ListenerRegistry()

    @property
    def balance(self) -> Decimal:
        return self.funds

    @property
    def listeners(self) -> ListenerRegistry:
        return self._listeners

    def update(self, trading_date: date) -> None:
        if trading_date == self.last_interest_calculation:
            return
        if trading_date < self.last_interest_calculation:
            raise OutOfOrderUpdate(trading_date, self.last_interest_calculation)

        while _month_of(self.last_interest_calculation) != _month_of(trading_date):
            self._pay_month_interest()

        days = (trading_date - self.last_interest_calculation).days
        accrued = self.rate.interest(self.funds, days, calendar.isleap(trading_date.year))
        self.escrow = self.context.add(self.escrow, accrued)
        self.last_interest_calculation = trading_date

    def debit(self, amount: Decimal, trading_date: date) -> None:
        if amount > self.funds:
            raise InsufficientFunds(
                f"[{trading_date}] 잔고 부족: 필요 {amount}, 보유 {self.funds}"
            )
        self._apply(CashEventType.DEBIT, self.context.minus(amount), amount, trading_date)

    def credit(self, amount: Decimal, trading_date: date) -> None:
        self._apply(CashEventType.CREDIT, amount, amount, trading_date)

    def deposit(self, amount: Decimal, trading_date: date) -> None:
        self._apply(CashEventType.DEPOSIT, amount, amount, trading_date)

    def _pay_month_interest(self) -> None:
        """마지막 계산일부터 월말까지의 이자 + 에스크로 지급."""
        start = self.last_interest_calculation
        days_in_month = calendar.monthrange(start.year, start.month)[1]
        days = days_in_month - start.day + 1
        interest = self.context.add(
            self.rate.interest(self.funds, days, calendar.isleap(start.year)),
            self.escrow,
        )
        first_of_next_month = start.replace(day=1) + timedelta(days=days_in_month)

        self.escrow = ZERO
        self.last_interest_calculation = first_of_next_month
        self._apply(CashEventType.INTEREST, interest, interest, first_of_next_month)
        logger.debug(f"[{first_of_next_month}] 이자 지급: {interest}")

    def _apply(self, event_type: CashEventType, change: Decimal, amount: Decimal, trading_date: date) -> None:
        before = self.funds
        self.funds = self.context.add(self.funds, change)
        self._listeners.notify(CashEvent(
            event_type=event_type,
            transaction_date=trading_date,
            amount=amount,
            funds_before=before,
            funds_after=self.funds,
        ))


def _month_of(day: date) -> tuple[int, int]:
    return day.year, day.month


class RegularDepositCashAccount(CashAccount):
    """정기 적립 데코레이터. update() 시 밀린 입금을 모두 처리한 뒤 감싼 계좌를 업데이트."""

    def __init__(
        self,
        amount: Decimal,
        account: CashAccount,
        first_deposit: date,
        interval: timedelta,
    ):
        if interval.days <= 0:
            raise ValueError(f"입금 주기는 1일 이상이어야 합니다: {interval}")
        self.amount = amount
        self.account = account
        self.interval = interval
        # 첫 입금일이 곧바로 입금 시점이 되도록 한 주기 앞으로 설정
        self.last_deposit = first_deposit - interval

    @property
    def balance(self) -> Decimal:
        return self.account.balance

    @property
    def listeners(self) -> ListenerRegistry:
        return self.account.listeners

    def update(self, trading_date: date) -> None:
        if trading_date >= self.last_deposit + self.interval:
            elapsed = (trading_date - self.last_deposit).days
            deposits = elapsed // self.interval.days
            for _ in range(deposits):
                self.account.deposit(self.amount, trading_date)
            self.last_deposit += self.interval * deposits
            logger.debug(f"[{trading_date}] 정기 입금 {deposits}회 ({self.amount})")

        self.account.update(trading_date)

    def debit(self, amount: Decimal, trading_date: date) -> None:
        self.account.debit(amount, trading_date)

    def credit(self, amount: Decimal, trading_date: date) -> None:
        self.account.credit(amount, trading_date)

    def deposit(self, amount: Decimal, trading_date: date) -> None:
        self.account.deposit(amount, trading_date)
