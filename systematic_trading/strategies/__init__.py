"""
전략 모듈.

[ 전략 등록 방식 ]
    @register("전략이름") 데코레이터를 붙이면 STRATEGY_REGISTRY에 자동 등록.
    run_backtest.py / backtest/bootstrap.py에서 이름만으로 프리셋을 찾아 전략을 생성한다.

[ 새 전략 추가 방법 ]
    1. 이 디렉토리의 presets.py (또는 새 .py 파일)에
       definitions.py::StrategyPreset을 상속받는 클래스 작성
    2. entry_config()에서 진입 트리 설정(EntryConfig) 반환
    3. @register("이름") 데코레이터 추가
    4. config.yaml에서 strategy.name을 해당 이름으로 설정
    → 끝. run_backtest.py 수정 불필요.

[ 구성 ]
    entry.py            진입 트리 노드
    sizing.py           진입 금액 / 청산
    trading_strategy.py EntryExitStrategy, StrategySettings
    definitions.py      설정 값 객체 + 빌더 + StrategyPreset
    presets.py          등록된 프리셋
"""

from importlib import import_module
from pathlib import Path
from typing import Any

# 전략 이름 → 프리셋 클래스 매핑
STRATEGY_REGISTRY: dict[str, type] = {}


def register(name: str):
    """프리셋 클래스를 STRATEGY_REGISTRY에 등록하는 데코레이터."""
    def decorator(cls: type):
        STRATEGY_REGISTRY[name] = cls
        return cls
    return decorator


def create_strategy(name: str, settings, params: dict[str, Any] | None = None):
    """이름으로 전략 인스턴스를 생성.

    Args:
        name: 등록된 전략 이름 (예: "weekly_buy", "macd_confirmed_by_rsi")
        settings: trading_strategy.StrategySettings (수학 컨텍스트, 진입 금액 등)
        params: 프리셋 파라미터 (각 프리셋의 DEFAULT_PARAMS를 오버라이드)

    Raises:
        ValueError: 등록되지 않은 전략 이름
    """
    if name not in STRATEGY_REGISTRY:
        available = ", ".join(sorted(STRATEGY_REGISTRY.keys()))
        raise ValueError(f"알 수 없는 전략: '{name}'. 사용 가능: {available}")
    return STRATEGY_REGISTRY[name](params=params).build(settings)


def list_strategies() -> list[str]:
    """등록된 전략 이름 목록 반환."""
    return sorted(STRATEGY_REGISTRY.keys())


def _auto_discover():
    """이 디렉토리의 모든 모듈을 자동 임포트하여 @register가 실행되게 한다."""
    strategies_dir = Path(__file__).parent
    for py_file in strategies_dir.glob("*.py"):
        if py_file.name.startswith("_"):
            continue
        module_name = f"systematic_trading.strategies.{py_file.stem}"
        import_module(module_name)


# 모듈 로드 시 자동 탐색
_auto_discover()
