"""
거래 수수료 구조.

[ 역할 ]
    이번 달 거래 횟수 구간별로 (정액, 정률) 중 큰 금액을 수수료로 부과.

[ 제공 수수료표 ]
    cmc_markets()     1~10회: max($11, 0.1%)   11~30회: max($9.90, 0.08%)   31회~: max($9.90, 0.075%)
    bell_direct()     1~10회: max($15, 0.1%)   11~30회: max($13, 0.08%)     31회~: max($10, 0.08%)
    vanguard_retail() 항상 0.1% (펀드 전용)

[ 호출하는 곳 ]
    - brokers/single_equity_broker.py
    - backtest/bootstrap.py에서 설정값(brokerage)으로 선택
"""

from dataclasses import dataclass
from decimal import Context, Decimal
from typing import Iterable, Sequence

from systematic_trading.core.broker_api import EquityClass, TransactionFeeStructure
from systematic_trading.core.exceptions import UnsupportedEquityClass, ValidationError
from systematic_trading.utils.decimals import ZERO, to_decimal


@dataclass(frozen=True)
class FeeTier:
    """max_trades회까지 적용되는 수수료 (None이면 상한 없음)."""
    max_trades: int | None
    flat_fee: Decimal
    percentage: Decimal      # 0.001 = 0.1%


class TieredTransactionFee(TransactionFeeStructure):
    """거래 횟수 구간별 수수료표."""

    def __init__(
        self,
        tiers: Sequence[FeeTier],
        supported: Iterable[EquityClass],
        context: Context,
    ):
        if not tiers:
            raise ValidationError("수수료 구간이 하나 이상 필요합니다")
        if tiers[-1].max_trades is not None:
            raise ValidationError("마지막 수수료 구간은 상한이 없어야 합니다")
        bounds = [tier.max_trades for tier in tiers[:-1]]
        if any(bound is None for bound in bounds) or bounds != sorted(set(bounds)):
            raise ValidationError(f"수수료 구간 상한이 올바르지 않습니다: {bounds}")
        self.tiers = tuple(tiers)
        self.supported = frozenset(supported)
        self.context = context

    def calculate_fee(self, trade_value: Decimal, equity_class: EquityClass, trade_number: int) -> Decimal:
        if equity_class not in self.supported:
            raise UnsupportedEquityClass(f"지원하지 않는 자산 종류: {equity_class.value}")
        tier = self._tier(trade_number)
        return self._apply_largest(trade_value, tier.flat_fee, tier.percentage)

    def _tier(self, trade_number: int) -> FeeTier:
        for tier in self.tiers:
            if tier.max_trades is None or trade_number <= tier.max_trades:
                return tier
        return self.tiers[-1]

    def _apply_largest(self, trade_value: Decimal, flat_fee: Decimal, percentage: Decimal) -> Decimal:
        proportional = self.context.multiply(trade_value, percentage)
        return max(flat_fee, proportional)


def tiers_from_table(table: Sequence[dict]) -> list[FeeTier]:
    """설정 파일의 수수료표 [{max_trades, flat_fee, percentage}, ...] 변환."""
    return [
        FeeTier(
            max_trades=row.get("max_trades"),
            flat_fee=to_decimal(row.get("flat_fee", ZERO)),
            percentage=to_decimal(row.get("percentage", ZERO)),
        )
        for row in table
    ]


def cmc_markets(context: Context) -> TieredTransactionFee:
    return TieredTransactionFee(
        [
            FeeTier(10, Decimal("11"), Decimal("0.001")),
            FeeTier(30, Decimal("9.9"), Decimal("0.0008")),
            FeeTier(None, Decimal("9.9"), Decimal("0.00075")),
        ],
        supported=[EquityClass.STOCK, EquityClass.BOND],
        context=context,
    )


def bell_direct(context: Context) -> TieredTransactionFee:
    return TieredTransactionFee(
        [
            FeeTier(10, Decimal("15"), Decimal("0.001")),
            FeeTier(30, Decimal("13"), Decimal("0.0008")),
            FeeTier(None, Decimal("10"), Decimal("0.0008")),
        ],
        supported=[EquityClass.STOCK, EquityClass.BOND],
        context=context,
    )


def vanguard_retail(context: Context) -> TieredTransactionFee:
    return TieredTransactionFee(
        [FeeTier(None, ZERO, Decimal("0.001"))],
        supported=[EquityClass.STOCK, EquityClass.FUND],
        context=context,
    )


FEE_SCHEDULES = {
    "cmc_markets": cmc_markets,
    "bell_direct": bell_direct,
    "vanguard_retail": vanguard_retail,
}
