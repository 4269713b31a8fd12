"""
증권사 추상 클래스 정의.

[ 역할 ]
    단일 종목 보유 수량, 매수/매도, 수수료 견적, 운용보수 차감을 추상화.
    수수료 구조(TransactionFeeStructure)와 운용보수(ManagementFeeCalculator)는
    생성자 주입으로 교체 가능.

[ 구현체 ]
    - brokers/single_equity_broker.py::SingleEquityClassBroker
    - brokers/fees.py::TieredTransactionFee (cmc_markets, bell_direct, vanguard_retail)
    - brokers/management_fees.py::FlatManagementFee, LadderedManagementFee, NoManagementFee

[ 호출하는 곳 ]
    - backtest/orders.py: 주문 체결 시 buy()/sell()/cost()
    - backtest/engine.py: 매일 update()로 운용보수 적용
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from enum import Enum

from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.core.events import ListenerRegistry


class EquityClass(Enum):
    """거래 자산 종류. 수수료 구조가 지원 여부를 판단한다."""
    STOCK = "stock"
    FUND = "fund"
    BOND = "bond"


class TransactionFeeStructure(ABC):
    """거래 수수료. trade_number는 이번 달 몇 번째 거래인지 (1부터)."""

    @abstractmethod
    def calculate_fee(self, trade_value: Decimal, equity_class: EquityClass, trade_number: int) -> Decimal:
        ...


class ManagementFeeCalculator(ABC):
    """연간 운용보수 금액 계산."""

    @abstractmethod
    def calculate_fee(self, number_of_equities: Decimal, equity_price: Decimal, years: int) -> Decimal:
        """보유 수량 × 가격에 years년치 보수를 적용한 금액."""
        ...


class Brokerage(ABC):
    """단일 종목 증권사 추상 클래스."""

    @property
    @abstractmethod
    def equity_balance(self) -> Decimal:
        """보유 수량."""
        ...

    @property
    @abstractmethod
    def equity_class(self) -> EquityClass:
        ...

    @property
    @abstractmethod
    def brokerage_listeners(self) -> ListenerRegistry:
        """BrokerageEvent 리스너."""
        ...

    @property
    @abstractmethod
    def equity_listeners(self) -> ListenerRegistry:
        """EquityEvent 리스너."""
        ...

    @abstractmethod
    def buy(self, price: Decimal, volume: Decimal, trade_date: date) -> Decimal:
        """매수. 수수료를 반환한다 (현금 차감은 호출자 책임)."""
        ...

    @abstractmethod
    def sell(self, price: Decimal, volume: Decimal, trade_date: date) -> Decimal:
        """매도. 수수료 차감 후 대금을 반환. 보유 부족이면 InsufficientEquities."""
        ...

    @abstractmethod
    def transaction_fee(self, trade_value: Decimal, trade_date: date) -> Decimal:
        """trade_date에 trade_value를 거래할 때의 수수료 견적 (상태 변경 없음)."""
        ...

    @abstractmethod
    def cost(self, price: Decimal, volume: Decimal, trade_date: date) -> Decimal:
        """거래 금액 + 수수료 견적 (상태 변경 없음)."""
        ...

    @abstractmethod
    def update(self, trading_day: TradingDayPrice) -> None:
        """운용보수 적용."""
        ...
