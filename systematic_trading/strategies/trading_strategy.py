"""
진입/청산 조합 전략.

[ 역할 ]
    진입 표현식 트리(Entry), 진입 금액(EntrySize), 청산(Exit)을 묶어
    엔진이 매일 호출하는 TradingStrategy를 구현.

[ 진입 흐름 ]
    1. entry.analyse(window) → 오늘 날짜 시그널이 있는지 확인
    2. entry_size로 가용 현금 대비 진입 금액 결정 (0이면 주문 없음)
    3. 오늘 종가 기준 매수 가능 수량이 0이면 주문 없음
    4. BuyTotalCostTomorrowAtOpeningPriceOrder 생성 (다음 거래일 시가 체결)

[ 호출하는 곳 ]
    - backtest/engine.py::Simulation
    - strategies/definitions.py::build_strategy()에서 생성
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Context
from typing import Sequence

from systematic_trading.backtest.orders import (
    BuyTotalCostTomorrowAtOpeningPriceOrder,
    EquityOrder,
    InsufficientFundsAction,
)
from systematic_trading.core.account_api import CashAccount
from systematic_trading.core.broker_api import Brokerage, EquityClass
from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.core.trading_strategy import Entry, EntrySize, Exit, TradingStrategy
from systematic_trading.signals.models import Signal
from systematic_trading.utils.decimals import ZERO

logger = logging.getLogger("systematic_trading.strategy")


@dataclass(frozen=True)
class StrategySettings:
    """전략 생성에 필요한 백테스트 공통 설정."""
    context: Context
    entry_size: EntrySize
    equity_class: EquityClass = EquityClass.STOCK
    equity_scale: int = 4
    order_expiry: timedelta | None = None
    start_date: date | None = None         # 주기 매수의 기본 첫 매수일


class EntryExitStrategy(TradingStrategy):
    """진입 트리 + 진입 금액 + 청산."""

    def __init__(
        self,
        name: str,
        entry: Entry,
        exit_rule: Exit,
        settings: StrategySettings,
        insufficient_funds_action: InsufficientFundsAction = InsufficientFundsAction.DELETE,
    ):
        super().__init__(name)
        self.entry = entry
        self.exit = exit_rule
        self.settings = settings
        self.insufficient_funds_action = insufficient_funds_action

    def number_of_trading_days_required(self) -> int:
        return self.entry.number_of_trading_days_required()

    def analyse(self, window: Sequence[TradingDayPrice]) -> Signal | None:
        """가장 최근 거래일의 매수 시그널 (없으면 None)."""
        if not window:
            return None
        today = window[-1].date
        for signal in self.entry.analyse(window):
            if signal.date == today:
                return signal
        return None

    def exit_tick(self, brokerage: Brokerage, price: TradingDayPrice) -> EquityOrder | None:
        return self.exit.exit_tick(brokerage, price)

    def entry_tick(
        self,
        brokerage: Brokerage,
        cash_account: CashAccount,
        window: Sequence[TradingDayPrice],
    ) -> EquityOrder | None:
        signal = self.analyse(window)
        if signal is None:
            return None

        today = window[-1]
        amount = self.settings.entry_size.entry_position_size(cash_account.balance)
        if amount <= ZERO:
            logger.debug(f"[{today.date}] 시그널({signal.indicator}) 발생, 진입 금액 부족으로 주문 없음")
            return None

        order = BuyTotalCostTomorrowAtOpeningPriceOrder(
            target_total_cost=amount,
            equity_class=self.settings.equity_class,
            equity_scale=self.settings.equity_scale,
            creation_date=today.date,
            context=self.settings.context,
            insufficient_funds_action=self.insufficient_funds_action,
            expiry=self.settings.order_expiry,
        )
        if order.volume(brokerage, today.close, today.date) <= ZERO:
            logger.debug(f"[{today.date}] 진입 금액 {amount}으로 살 수 있는 수량이 없음")
            return None
        return order

    def __repr__(self) -> str:
        return f"EntryExitStrategy({self.name}: {self.entry})"
