"""
설정 관리 모듈.

[ 역할 ]
    config.yaml (또는 .json) 파일을 파싱하여 Config 객체로 변환.
    전략 프리셋, 백테스트(계좌/수수료/포지션 크기), 십진수 연산, 로깅 설정을 통합 관리.

[ 설정 파일 구조 (config.yaml) ]
    strategy:         → StrategyConfig (프리셋 이름 + 파라미터)
    backtest:         → BacktestConfig (종목, 기간, 자금, 이자, 적립, 수수료, 포지션 크기)
    decimal:          → DecimalConfig (정밀도, 반올림)
    log_level:        → "INFO" / "DEBUG"
    log_dir:          → 로그 디렉토리 경로

[ 호출하는 곳 ]
    - run_backtest.py에서 Config.from_yaml()로 로드
    - backtest/bootstrap.py에서 코어 객체(계좌, 증권사, 전략) 생성에 사용
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class StrategyConfig:
    """전략 설정. config.yaml의 strategy 섹션에 대응.

    프리셋별 파라미터는 params dict에 자유롭게 넣는다.
    각 프리셋 클래스의 DEFAULT_PARAMS가 기본값 역할을 하므로,
    여기서는 오버라이드할 값만 지정하면 된다.
    """
    name: str = "weekly_buy"
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class BacktestConfig:
    """백테스트 설정. config.yaml의 backtest 섹션에 대응.

    금액/비율은 문자열로 적으면 이진 오차 없이 Decimal로 변환된다.
    """
    ticker: str = "VGS"
    start_date: str = "2020-01-01"
    end_date: str = "2023-12-31"
    opening_funds: str = "0"
    interest_rate: str = "1.5"                 # 현금 연이율 (%)
    deposit_amount: str = "100"                # 정기 입금액 (0이면 없음)
    deposit_interval_days: int = 7
    equity_class: str = "stock"                # stock / fund / bond
    equity_scale: int = 4                      # 보유 수량 소수 자리
    brokerage: str = "cmc_markets"             # cmc_markets / bell_direct / vanguard_retail / custom
    fee_tiers: list[dict[str, Any]] = field(default_factory=list)   # brokerage=custom일 때 수수료표
    management_fee: str = "0"                  # 연 운용보수 (0.001 = 0.1%)
    minimum_trade: str = "500"                 # 최소 진입 금액
    maximum_trade: str = "1"                   # 최대 진입 비율 (가용 현금 대비)
    order_expiry_days: int | None = None       # 주문 유효 기간 (None이면 무기한)


@dataclass
class DecimalConfig:
    """십진수 연산 설정."""
    precision: int = 16
    rounding: str = "ROUND_HALF_EVEN"


@dataclass
class Config:
    """전체 설정. from_yaml() 또는 from_json()으로 파일에서 로드."""
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    decimal: DecimalConfig = field(default_factory=DecimalConfig)
    log_level: str = "INFO"
    log_dir: str = "logs"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """YAML 파일에서 설정 로드."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls._from_dict(data or {})

    @classmethod
    def from_json(cls, path: str | Path) -> "Config":
        """JSON 파일에서 설정 로드."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """딕셔너리에서 Config 생성. 알 수 없는 키는 무시."""
        strategy_data = data.get("strategy", {}) or {}
        backtest_data = data.get("backtest", {}) or {}
        decimal_data = data.get("decimal", {}) or {}

        # strategy 섹션 파싱: name은 직접 필드, params가 없으면 나머지를 params로
        if "params" in strategy_data:
            strategy_params = strategy_data["params"] or {}
        else:
            strategy_params = {k: v for k, v in strategy_data.items() if k != "name"}
        strategy = StrategyConfig(
            name=strategy_data.get("name", "weekly_buy"),
            params=strategy_params,
        )

        backtest = BacktestConfig(**{
            k: _as_text(BacktestConfig, k, v) for k, v in backtest_data.items()
            if k in BacktestConfig.__dataclass_fields__
        })
        decimal = DecimalConfig(**{
            k: v for k, v in decimal_data.items()
            if k in DecimalConfig.__dataclass_fields__
        })

        return cls(
            strategy=strategy,
            backtest=backtest,
            decimal=decimal,
            log_level=data.get("log_level", "INFO"),
            log_dir=data.get("log_dir", "logs"),
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환."""
        from dataclasses import asdict
        return asdict(self)

    def save_yaml(self, path: str | Path) -> None:
        """YAML 파일로 저장."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, allow_unicode=True, default_flow_style=False)


def _as_text(config_cls: type, name: str, value: Any) -> Any:
    """문자열 필드에 숫자가 들어오면 문자열로 보관 (Decimal 변환 시 이진 오차 방지)."""
    if isinstance(value, (int, float)) and config_cls.__dataclass_fields__[name].type is str:
        return str(value)
    return value
