from datetime import date, timedelta
from decimal import Decimal

import pytest

from systematic_trading.core.events import CashEventType
from systematic_trading.core.exceptions import InsufficientFunds, OutOfOrderUpdate
from systematic_trading.data.cash_account import (
    CalculatedDailyPaidMonthlyCashAccount,
    FlatInterestRate,
    RegularDepositCashAccount,
)

PRINCIPAL = Decimal(1000000)


@pytest.fixture
def rate(ctx):
    return FlatInterestRate(Decimal("7.5"), ctx)


def test_flat_interest_rate(rate):
    assert rate.interest(PRINCIPAL, 1, False) == Decimal("205.4794520547945")
    assert rate.interest(PRINCIPAL, 10, False) == Decimal("2054.794520547945")
    assert rate.interest(PRINCIPAL, 1, True) == Decimal("204.9180327868852")
    assert rate.interest(PRINCIPAL, 0, False) == 0


def test_interest_accrues_into_escrow(ctx, rate):
    account = CalculatedDailyPaidMonthlyCashAccount(date(2021, 1, 20), PRINCIPAL, rate, ctx)

    account.update(date(2021, 1, 25))

    assert account.balance == PRINCIPAL
    assert account.escrow == rate.interest(PRINCIPAL, 5, False)


def test_interest_paid_once_on_month_boundary(ctx, rate):
    account = CalculatedDailyPaidMonthlyCashAccount(date(2021, 1, 20), PRINCIPAL, rate, ctx)
    events = []
    account.listeners.add(events.append)

    account.update(date(2021, 1, 25))
    account.update(date(2021, 2, 3))

    paid = ctx.add(rate.interest(PRINCIPAL, 7, False), rate.interest(PRINCIPAL, 5, False))
    assert [event.event_type for event in events] == [CashEventType.INTEREST]
    assert events[0].amount == paid
    assert events[0].transaction_date == date(2021, 2, 1)
    assert account.balance == ctx.add(PRINCIPAL, paid)
    # 지급 직후 에스크로는 0에서 다시 적립
    assert account.escrow == rate.interest(account.balance, 2, False)


def test_interest_paid_for_each_skipped_month(ctx, rate):
    account = CalculatedDailyPaidMonthlyCashAccount(date(2021, 1, 31), PRINCIPAL, rate, ctx)
    events = []
    account.listeners.add(events.append)

    account.update(date(2021, 4, 1))

    assert [event.transaction_date for event in events] == [date(2021, 2, 1), date(2021, 3, 1), date(2021, 4, 1)]
    assert account.escrow == 0


def test_same_day_update_is_noop(ctx, rate):
    account = CalculatedDailyPaidMonthlyCashAccount(date(2021, 1, 20), PRINCIPAL, rate, ctx)
    account.update(date(2021, 1, 22))
    escrow = account.escrow

    account.update(date(2021, 1, 22))

    assert account.escrow == escrow


def test_out_of_order_update_rejected(ctx, rate):
    account = CalculatedDailyPaidMonthlyCashAccount(date(2021, 1, 20), PRINCIPAL, rate, ctx)
    account.update(date(2021, 1, 25))

    with pytest.raises(OutOfOrderUpdate) as excinfo:
        account.update(date(2021, 1, 24))
    assert excinfo.value.last_processed == date(2021, 1, 25)


def test_debit_credit_deposit(ctx, rate):
    account = CalculatedDailyPaidMonthlyCashAccount(date(2021, 1, 1), Decimal(1000), rate, ctx)
    events = []
    account.listeners.add(events.append)

    account.debit(Decimal(300), date(2021, 1, 1))
    account.credit(Decimal(50), date(2021, 1, 1))
    account.deposit(Decimal(100), date(2021, 1, 1))

    assert account.balance == Decimal(850)
    assert [event.event_type for event in events] == [
        CashEventType.DEBIT, CashEventType.CREDIT, CashEventType.DEPOSIT
    ]
    assert events[0].funds_before == Decimal(1000)
    assert events[0].funds_after == Decimal(700)


def test_debit_more_than_balance(ctx, rate):
    account = CalculatedDailyPaidMonthlyCashAccount(date(2021, 1, 1), Decimal(100), rate, ctx)

    with pytest.raises(InsufficientFunds):
        account.debit(Decimal("100.01"), date(2021, 1, 1))
    assert account.balance == Decimal(100)


def test_regular_deposits_with_catch_up(ctx):
    inner = CalculatedDailyPaidMonthlyCashAccount(date(2021, 1, 1), Decimal(0), FlatInterestRate(Decimal(0), ctx), ctx)
    account = RegularDepositCashAccount(Decimal(100), inner, date(2021, 1, 1), timedelta(days=7))
    deposits = []
    account.listeners.add(
        lambda event: deposits.append(event.transaction_date) if event.event_type == CashEventType.DEPOSIT else None
    )

    account.update(date(2021, 1, 1))
    account.update(date(2021, 1, 7))
    account.update(date(2021, 1, 8))
    account.update(date(2021, 1, 30))
    account.update(date(2021, 2, 5))

    assert deposits == [date(2021, 1, 1), date(2021, 1, 8)] + [date(2021, 1, 30)] * 3 + [date(2021, 2, 5)]
    assert account.balance == Decimal(600)


def test_daily_deposit_starts_with_single_deposit(ctx):
    inner = CalculatedDailyPaidMonthlyCashAccount(date(2021, 1, 4), Decimal(0), FlatInterestRate(Decimal(0), ctx), ctx)
    account = RegularDepositCashAccount(Decimal(100), inner, date(2021, 1, 4), timedelta(days=1))

    account.update(date(2021, 1, 4))
    assert account.balance == Decimal(100)

    account.update(date(2021, 1, 5))
    account.update(date(2021, 1, 8))
    assert account.balance == Decimal(500)


def test_regular_deposit_delegates(ctx, rate):
    inner = CalculatedDailyPaidMonthlyCashAccount(date(2021, 1, 1), Decimal(500), rate, ctx)
    account = RegularDepositCashAccount(Decimal(100), inner, date(2021, 1, 1), timedelta(days=7))

    account.debit(Decimal(200), date(2021, 1, 1))

    assert inner.balance == Decimal(300)
    assert account.listeners is inner.listeners
