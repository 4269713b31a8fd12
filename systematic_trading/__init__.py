"""
=============================================================================
일별 백테스트 시뮬레이션 (Systematic Trading)
=============================================================================

[ 시스템 전체 구조 ]

    run_backtest.py (진입점)
         │
         ├── utils/config.py        ← config.yaml 설정 로드
         ├── utils/logger.py        ← 로깅
         ├── utils/decimals.py      ← 공유 decimal.Context
         │
         ├── data/market_data.py    ← CSV/DataFrame → TradingDayPrice
         │
         └── backtest/bootstrap.py  ← 설정으로 객체 조립 후 실행
               │
               ├── backtest/engine.py     ← 일별 시뮬레이션 루프
               ├── backtest/orders.py     ← 대기 주문 (다음 날 시가 매수)
               ├── backtest/analysis.py   ← 수익률 / 순자산 / 이벤트 통계
               └── backtest/metrics.py    ← 성과 지표 계산


[ 핵심 추상 클래스 (core/) - 모든 구현체의 부모 ]

    core/account_api.py      → data/cash_account.py (일할 이자, 월말 지급, 정기 입금)
    core/broker_api.py       → brokers/single_equity_broker.py (단일 종목 보유)
                             → brokers/fees.py, brokers/management_fees.py
    core/data_provider.py    → data/market_data.py::DataFramePriceProvider
    core/trading_strategy.py → strategies/trading_strategy.py::EntryExitStrategy


[ 전략 구성 ]

    indicators/  SMA, EMA, RSI, MACD (Decimal 시계열)
    signals/     지표 시계열 → 강세/약세 신호, 신호 필터 (동일일, 확인, 기간)
    strategies/  진입 트리 (주기, 지표, 확인, AND/OR) + 진입 금액 + 프리셋 등록


[ 하루 처리 순서 ]

    1. 현금계좌 update (정기 입금, 이자 적립/지급)
    2. 청산 판단 (exit_tick)
    3. 진입 판단 (entry_tick) → 신규 주문은 대기열로
    4. 대기 주문 처리: 만료 → 체결 조건 → 체결 / 자금 부족 정책
    5. 증권사 update (연 운용보수)
    6. 일별 리스너 통지 (수익률, 기록)
"""
