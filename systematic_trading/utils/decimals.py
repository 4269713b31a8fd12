"""
십진수 연산 컨텍스트 모듈.

[ 역할 ]
    모든 금액/지표 계산이 같은 정밀도와 반올림 규칙을 쓰도록
    하나의 decimal.Context를 만들어 각 컴포넌트 생성자에 주입한다.
    컴포넌트 내부에서 컨텍스트를 새로 만들지 않는다.

[ 기본값 ]
    DECIMAL64: 유효숫자 16자리, ROUND_HALF_EVEN

[ 호출하는 곳 ]
    - backtest/bootstrap.py에서 config.decimal로 컨텍스트 생성
    - indicators/, brokers/, data/cash_account.py 등 모든 계산 경로
"""

import decimal
from decimal import Context, Decimal

DEFAULT_PRECISION = 16
DEFAULT_ROUNDING = decimal.ROUND_HALF_EVEN

ZERO = Decimal("0")
ONE = Decimal("1")
ONE_HUNDRED = Decimal("100")

DECIMAL64 = Context(prec=DEFAULT_PRECISION, rounding=DEFAULT_ROUNDING)


def create_context(precision: int = DEFAULT_PRECISION, rounding: str = "ROUND_HALF_EVEN") -> Context:
    """정밀도/반올림 이름으로 컨텍스트 생성. 설정 파일 값에서 만들 때 사용."""
    if precision <= 0:
        raise ValueError(f"정밀도는 양수여야 합니다: {precision}")
    name = rounding.upper()
    if not name.startswith("ROUND_") or not hasattr(decimal, name):
        raise ValueError(f"알 수 없는 반올림 방식: {rounding}")
    return Context(prec=precision, rounding=getattr(decimal, name))


def to_decimal(value) -> Decimal:
    """숫자/문자열을 Decimal로 변환. float은 str()을 거쳐 이진 오차를 피한다."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def scale_quantum(scale: int) -> Decimal:
    """소수점 scale 자리에 해당하는 quantize 단위 (scale=2 → 0.01)."""
    return Decimal(1).scaleb(-scale)
