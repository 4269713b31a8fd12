"""
예외 계층 정의.

[ 분류 ]
    TradingSystemError
      ├── ValidationError        설정 오류, None/누락 데이터 (치명적, 실행 중단)
      │     ├── TooFewDataPoints     지표 최소 데이터 부족 (전략 틱에서는 주문 없음으로 처리)
      │     ├── DuplicateDate        가격 시계열 날짜 중복 (치명적)
      │     ├── OutOfOrderUpdate     날짜 역행 업데이트 (치명적)
      │     └── UnsupportedEquityClass
      ├── OrderError             주문 단위에서 복구 가능 (주문 정책으로 처리)
      │     ├── InsufficientFunds
      │     └── InsufficientEquities
      └── SimulationError        시뮬레이션 재실행 등 상태 오류

[ 호출하는 곳 ]
    - 전 모듈. backtest/engine.py가 OrderError를 잡아 주문 정책(RESUBMIT/DELETE)을 적용
"""

from datetime import date


class TradingSystemError(Exception):
    """시스템 공통 최상위 예외."""


class ValidationError(TradingSystemError, ValueError):
    """잘못된 입력/설정."""


class TooFewDataPoints(ValidationError):
    """지표 계산에 필요한 가격 수보다 적은 데이터."""

    def __init__(self, required: int, actual: int):
        super().__init__(f"최소 {required}개의 가격이 필요하지만 {actual}개만 있습니다")
        self.required = required
        self.actual = actual


class DuplicateDate(ValidationError):
    """같은 날짜의 가격이 두 번 이상 존재."""

    def __init__(self, duplicate: date):
        super().__init__(f"중복된 거래일: {duplicate}")
        self.date = duplicate


class OutOfOrderUpdate(ValidationError):
    """마지막 처리일보다 이전 날짜로 업데이트 시도."""

    def __init__(self, requested: date, last_processed: date):
        super().__init__(f"날짜 역행 업데이트: {requested} (마지막 처리일 {last_processed})")
        self.date = requested
        self.last_processed = last_processed


class UnsupportedEquityClass(ValidationError):
    """수수료 구조가 지원하지 않는 자산 종류."""


class OrderError(TradingSystemError):
    """주문 실행 실패. 주문의 자금부족 정책으로 재시도/폐기를 결정."""


class InsufficientFunds(OrderError):
    """현금 부족."""


class InsufficientEquities(OrderError):
    """보유 수량 부족."""


class SimulationError(TradingSystemError):
    """시뮬레이션 상태 오류 (완료된 시뮬레이션 재실행 등)."""
