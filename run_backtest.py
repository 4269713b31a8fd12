"""
백테스트 실행 스크립트 (시스템 진입점).

[ 사용법 ]
    # 기본 실행 (config.yaml의 전략 사용)
    python run_backtest.py

    # 전략 지정
    python run_backtest.py --strategy weekly_buy
    python run_backtest.py --strategy macd_confirmed_by_rsi

    # 파라미터 오버라이드
    python run_backtest.py --strategy rsi_oversold -p lookback=7 -p oversold=25

    # CSV 가격 데이터 사용 (columns: date, open, high, low, close)
    python run_backtest.py --source csv --csv data/VGS.csv

    # 여러 전략 비교
    python run_backtest.py --compare weekly_buy monthly_buy sma_uptrend

    # 일별 순자산 저장
    python run_backtest.py --output results/daily.csv

    # 등록된 전략 목록 확인
    python run_backtest.py --list
"""

import argparse
from datetime import date
from pathlib import Path

import numpy as np
import pandas as pd

from systematic_trading.backtest.bootstrap import BacktestReport, run_configuration
from systematic_trading.backtest.metrics import BacktestMetrics
from systematic_trading.core.data_provider import TradingDayPrice
from systematic_trading.data.market_data import load_csv, prices_from_frame
from systematic_trading.strategies import list_strategies
from systematic_trading.utils.config import Config
from systematic_trading.utils.logger import setup_logger


def generate_sample_data(
    ticker: str,
    start_date: date,
    end_date: date,
    initial_price: float = 80.0,
    volatility: float = 0.01,
) -> pd.DataFrame:
    """백테스트용 샘플 가격 데이터 생성 (영업일 기준)."""
    np.random.seed(sum(ticker.encode()) % 2**32)

    dates = pd.bdate_range(start=start_date, end=end_date)
    n = len(dates)

    returns = np.random.normal(0.0003, volatility, n)
    closes = initial_price * np.cumprod(1 + returns)

    data = []
    for i, d in enumerate(dates):
        close = closes[i]
        open_price = close * (1 + np.random.normal(0, 0.003))
        high = max(open_price, close) * (1 + abs(np.random.normal(0, 0.004)))
        low = min(open_price, close) * (1 - abs(np.random.normal(0, 0.004)))

        data.append({
            "date": d.date(),
            "open": round(open_price, 2),
            "high": round(high, 2),
            "low": round(low, 2),
            "close": round(close, 2),
        })

    return pd.DataFrame(data)


def parse_param(param_str: str) -> tuple[str, object]:
    """'key=value' 문자열을 파싱하여 (key, value) 반환. 숫자면 자동 변환."""
    key, _, value = param_str.partition("=")
    key = key.strip()
    value = value.strip()

    try:
        if "." in value:
            return key, float(value)
        return key, int(value)
    except ValueError:
        if value.lower() in ("true", "yes"):
            return key, True
        if value.lower() in ("false", "no"):
            return key, False
        return key, value


def load_prices(config: Config, source: str, csv_path: str | None) -> list[TradingDayPrice]:
    """데이터 소스에서 가격 시계열 로드."""
    ticker = config.backtest.ticker

    if source == "sample":
        print("샘플 데이터 생성 중...")
        df = generate_sample_data(
            ticker=ticker,
            start_date=date.fromisoformat(config.backtest.start_date),
            end_date=date.fromisoformat(config.backtest.end_date),
        )
    elif source == "csv":
        path = Path(csv_path or f"data/{ticker}.csv")
        if not path.exists():
            print(f"오류: CSV 파일 없음: {path}")
            return []
        df = load_csv(path)
    else:
        print(f"오류: 알 수 없는 데이터 소스: {source}")
        return []

    prices = prices_from_frame(df)
    print(f"  {ticker}: {len(prices)}일 데이터")
    return prices


def print_single_result(report: BacktestReport):
    """단일 전략 결과 출력."""
    result = report.result
    print(f"\n[전략: {report.strategy_name}] {result.start_date} ~ {result.end_date}")
    print(report.metrics.summary())
    print(f"\n주문: 발행 {result.orders_placed}, 체결 {result.orders_executed}, "
          f"만료 {result.orders_expired}, 삭제 {result.orders_deleted}, 재제출 {result.orders_resubmitted}")
    print(f"최종 보유: {result.final_state.equity_balance}주, 현금 {result.final_state.cash_balance:,.2f}")


def print_comparison(results: dict[str, BacktestMetrics], config: Config):
    """여러 전략 비교 결과 출력."""
    period = f"{config.backtest.start_date} ~ {config.backtest.end_date}"

    names = list(results.keys())
    col_width = max(14, max(len(n) for n in names) + 2)

    print(f"\n{'=' * (20 + col_width * len(names))}")
    print(f"전략 비교 결과 ({config.backtest.ticker}, {period})")
    print(f"{'=' * (20 + col_width * len(names))}")

    header = f"{'':>20}" + "".join(f"{n:>{col_width}}" for n in names)
    print(header)
    print("-" * len(header))

    rows = [
        ("총 수익률", lambda m: f"{m.total_return:.2f}%"),
        ("연복리 수익률", lambda m: f"{m.annual_return:.2f}%"),
        ("샤프 비율", lambda m: f"{m.sharpe_ratio:.2f}"),
        ("최대 낙폭(MDD)", lambda m: f"{m.max_drawdown:.2f}%"),
        ("최종 순자산", lambda m: f"{m.final_net_worth:,.0f}"),
        ("거래 수수료", lambda m: f"{m.brokerage_fees:,.2f}"),
        ("이자 수익", lambda m: f"{m.interest_earned:,.2f}"),
        ("매수 횟수", lambda m: f"{m.buy_count}"),
        ("삭제된 주문", lambda m: f"{m.orders_deleted}"),
    ]

    for label, fmt in rows:
        row = f"{label:>20}" + "".join(f"{fmt(results[n]):>{col_width}}" for n in names)
        print(row)

    print(f"{'=' * (20 + col_width * len(names))}")


def main():
    parser = argparse.ArgumentParser(description="일별 백테스트 시뮬레이션 실행")
    parser.add_argument("--config", type=str, default="config.yaml", help="설정 파일 경로")
    parser.add_argument("--strategy", type=str, default=None, help="전략 이름 (config.yaml 대신 지정)")
    parser.add_argument("-p", "--param", action="append", default=[], help="파라미터 오버라이드 (예: -p lookback=7)")
    parser.add_argument("--source", type=str, default="sample", choices=["sample", "csv"], help="데이터 소스")
    parser.add_argument("--csv", type=str, default=None, help="CSV 파일 경로 (--source csv)")
    parser.add_argument("--compare", nargs="+", metavar="STRATEGY", help="여러 전략 비교 (예: --compare weekly_buy sma_uptrend)")
    parser.add_argument("--output", type=str, default=None, help="일별 순자산 CSV 저장 경로")
    parser.add_argument("--list", action="store_true", help="등록된 전략 목록 출력")
    args = parser.parse_args()

    if args.list:
        print("등록된 전략:")
        for name in list_strategies():
            print(f"  - {name}")
        return

    # 설정 로드
    config_path = Path(args.config)
    if config_path.exists():
        config = Config.from_yaml(config_path)
    else:
        print(f"설정 파일 없음: {config_path}, 기본값 사용")
        config = Config()

    setup_logger(level=config.log_level, log_dir=config.log_dir)

    # 데이터 로드 (한 번만)
    prices = load_prices(config, args.source, args.csv)
    if not prices:
        return

    # ─── 비교 모드 ───────────────────────────────────────────────────────
    if args.compare:
        print(f"\n{len(args.compare)}개 전략 비교 실행...")
        results = {}
        for name in args.compare:
            print(f"\n--- {name} 실행 중 ---")
            report = run_configuration(config, prices, strategy_name=name, strategy_params={})
            results[name] = report.metrics
        print_comparison(results, config)
        return

    # ─── 단일 실행 모드 ─────────────────────────────────────────────────
    strategy_name = args.strategy or config.strategy.name
    strategy_params = dict(config.strategy.params) if strategy_name == config.strategy.name else {}

    for p in args.param:
        key, value = parse_param(p)
        strategy_params[key] = value

    print(f"\n전략: {strategy_name}")
    if args.param:
        print(f"파라미터 오버라이드: {dict(parse_param(p) for p in args.param)}")

    report = run_configuration(config, prices, strategy_name=strategy_name, strategy_params=strategy_params)
    print_single_result(report)

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        report.daily.to_frame().to_csv(output, index=False)
        print(f"\n일별 순자산 저장: {output}")


if __name__ == "__main__":
    main()
