"""
현금계좌 추상 클래스 정의.

[ 역할 ]
    시뮬레이션 중 현금 잔고, 이자, 입출금을 다루는 인터페이스.

[ 구현체 ]
    - data/cash_account.py::CalculatedDailyPaidMonthlyCashAccount (일할 계산, 월 지급 이자)
    - data/cash_account.py::RegularDepositCashAccount (정기 적립 데코레이터)
    - data/cash_account.py::FlatInterestRate (InterestRate 구현)

[ 호출하는 곳 ]
    - backtest/engine.py: 매일 update(), 주문 체결 시 debit()/credit()
    - strategies/trading_strategy.py: 포지션 크기 계산 시 balance 조회
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal

from systematic_trading.core.events import ListenerRegistry


class InterestRate(ABC):
    """기간 이자 계산."""

    @abstractmethod
    def interest(self, funds: Decimal, days: int, leap_year: bool) -> Decimal:
        """funds를 days일 동안 예치했을 때의 이자."""
        ...


class CashAccount(ABC):
    """현금계좌 추상 클래스."""

    @property
    @abstractmethod
    def balance(self) -> Decimal:
        """사용 가능 현금 (미지급 이자 제외)."""
        ...

    @property
    @abstractmethod
    def listeners(self) -> ListenerRegistry:
        """CashEvent를 받는 리스너."""
        ...

    @abstractmethod
    def update(self, trading_date: date) -> None:
        """trading_date까지 이자 계산. 과거 날짜면 OutOfOrderUpdate."""
        ...

    @abstractmethod
    def debit(self, amount: Decimal, trading_date: date) -> None:
        """출금. 잔고 부족이면 InsufficientFunds."""
        ...

    @abstractmethod
    def credit(self, amount: Decimal, trading_date: date) -> None:
        """입금 (매도 대금 등)."""
        ...

    @abstractmethod
    def deposit(self, amount: Decimal, trading_date: date) -> None:
        """외부 자금 예치."""
        ...
