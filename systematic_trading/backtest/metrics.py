"""
백테스트 성과 지표 계산 모듈.

[ 역할 ]
    시뮬레이션의 일별 순자산 기록과 이벤트 누계를 받아 성과 지표를 계산.
    calculate_metrics() 함수가 핵심.

[ 계산하는 지표 ]
    - 총 수익률 (투입 원금 = 초기 자금 + 입금 대비)
    - 연복리 수익률 (일별 변화율을 복리로 누적한 지수 기준)
    - 샤프 비율 (위험 대비 수익)
    - MDD (최대 낙폭, 입금 효과를 제거한 지수 기준)
    - 수수료/이자/운용보수 합계, 매수/매도/삭제/재제출 횟수

[ 호출하는 곳 ]
    - backtest/bootstrap.py::run_configuration() 완료 시 호출

[ 입력 데이터 ]
    - DailyNetWorthRecorder: ReturnOnInvestmentEvent를 구독해 일별 순자산 기록
    - backtest/analysis.py::EventStatistics
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

import numpy as np
import pandas as pd

from systematic_trading.backtest.analysis import EventStatistics
from systematic_trading.core.events import ReturnOnInvestmentEvent


class DailyNetWorthRecorder:
    """ReturnOnInvestmentEvent 리스너. 일별 순자산과 변화율을 기록."""

    def __init__(self):
        self.dates: list[date] = []
        self.net_worths: list[Decimal] = []
        self.percentage_changes: list[Decimal] = []

    def __call__(self, event: ReturnOnInvestmentEvent) -> None:
        self.dates.append(event.inclusive_end_date)
        self.net_worths.append(event.net_worth)
        self.percentage_changes.append(event.percentage_change)

    def to_frame(self) -> pd.DataFrame:
        """columns: [date, net_worth, percentage_change]"""
        return pd.DataFrame({
            "date": self.dates,
            "net_worth": [float(value) for value in self.net_worths],
            "percentage_change": [float(value) for value in self.percentage_changes],
        })


@dataclass
class BacktestMetrics:
    """백테스트 성과 지표. summary()로 포맷된 리포트 출력 가능."""
    total_return: float = 0.0         # 총 수익률 (%), 투입 원금 대비
    annual_return: float = 0.0        # 연복리 수익률 (%)
    sharpe_ratio: float = 0.0         # 샤프 비율 (높을수록 좋음, 1 이상 양호)
    max_drawdown: float = 0.0         # 최대 낙폭 MDD (%)
    invested: float = 0.0             # 초기 자금 + 입금 합계
    final_net_worth: float = 0.0      # 최종 순자산
    brokerage_fees: float = 0.0       # 거래 수수료 합계
    interest_earned: float = 0.0      # 현금 이자 합계
    management_fees: float = 0.0      # 운용보수 (차감 시점 종가 환산)
    buy_count: int = 0
    sell_count: int = 0
    orders_deleted: int = 0           # 자금 부족으로 삭제된 주문
    orders_resubmitted: int = 0       # 자금 부족으로 재제출된 횟수
    trading_days: int = 0

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리 변환."""
        from dataclasses import asdict
        return asdict(self)

    def summary(self) -> str:
        """성과 요약 문자열."""
        lines = [
            "=" * 50,
            "백테스트 성과 리포트",
            "=" * 50,
            f"총 수익률:       {self.total_return:>10.2f}%",
            f"연복리 수익률:    {self.annual_return:>10.2f}%",
            f"샤프 비율:       {self.sharpe_ratio:>10.2f}",
            f"최대 낙폭(MDD):  {self.max_drawdown:>10.2f}%",
            "-" * 50,
            f"투입 원금:       {self.invested:>14,.2f}",
            f"최종 순자산:     {self.final_net_worth:>14,.2f}",
            f"거래 수수료:     {self.brokerage_fees:>14,.2f}",
            f"이자 수익:       {self.interest_earned:>14,.2f}",
            f"운용보수:        {self.management_fees:>14,.2f}",
            "-" * 50,
            f"매수 횟수:       {self.buy_count:>10d}",
            f"매도 횟수:       {self.sell_count:>10d}",
            f"삭제된 주문:     {self.orders_deleted:>10d}",
            f"재제출 주문:     {self.orders_resubmitted:>10d}",
            f"거래일 수:       {self.trading_days:>10d}",
            "=" * 50,
        ]
        return "\n".join(lines)


def calculate_metrics(
    recorder: DailyNetWorthRecorder,
    statistics: EventStatistics,
    opening_funds: Decimal,
    final_net_worth: Decimal,
    trading_days: int,
) -> BacktestMetrics:
    """성과 지표 계산. bootstrap.py에서 시뮬레이션 완료 후 호출됨.

    Args:
        recorder: 일별 순자산 기록 (첫 거래일 다음 날부터)
        statistics: 이벤트 누계
        opening_funds: 초기 자금
        final_net_worth: 마지막 거래일 순자산
        trading_days: 시뮬레이션 거래일 수
    """
    metrics = BacktestMetrics(
        invested=float(opening_funds) + float(statistics.deposits),
        final_net_worth=float(final_net_worth),
        brokerage_fees=float(statistics.brokerage_fees),
        interest_earned=float(statistics.interest_earned),
        management_fees=float(statistics.management_fee_value),
        buy_count=statistics.buy_events,
        sell_count=statistics.sell_events,
        orders_deleted=statistics.orders_deleted,
        orders_resubmitted=statistics.orders_resubmitted,
        trading_days=trading_days,
    )

    # ─── 수익률 계산 ─────────────────────────────────────────────────────
    if metrics.invested > 0:
        metrics.total_return = (metrics.final_net_worth - metrics.invested) / metrics.invested * 100

    if not recorder.percentage_changes:
        return metrics

    daily_returns = np.array([float(value) for value in recorder.percentage_changes]) / 100
    index = np.cumprod(1 + daily_returns)

    # 연복리: 지수^(1/년수) - 1
    elapsed_days = (recorder.dates[-1] - recorder.dates[0]).days + 1
    years = elapsed_days / 365.25
    if years > 0 and index[-1] > 0:
        metrics.annual_return = float((index[-1] ** (1 / years) - 1) * 100)

    # ─── 샤프 비율 ────────────────────────────────────────────────────────
    # 샤프 = (평균 초과수익 / 표준편차) * sqrt(252)
    risk_free_daily = 0.03 / 252
    excess_returns = daily_returns - risk_free_daily
    if np.std(excess_returns) > 0:
        metrics.sharpe_ratio = float(np.mean(excess_returns) / np.std(excess_returns) * np.sqrt(252))

    # ─── MDD (Maximum Drawdown) ────────────────────────────────────────────
    # 입금 효과를 제거한 지수의 고점 대비 최대 하락폭
    peaks = np.maximum.accumulate(np.concatenate(([1.0], index)))
    drawdowns = (peaks - np.concatenate(([1.0], index))) / peaks * 100
    metrics.max_drawdown = float(drawdowns.max())

    return metrics
