import json

import pytest

from systematic_trading.utils.config import Config
from systematic_trading.utils.decimals import to_decimal


def test_defaults():
    config = Config()
    assert config.strategy.name == "weekly_buy"
    assert config.backtest.brokerage == "cmc_markets"
    assert config.decimal.precision == 16
    assert config.decimal.rounding == "ROUND_HALF_EVEN"


def test_from_yaml_keeps_amounts_exact(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "strategy:\n"
        "  name: rsi_oversold\n"
        "  lookback: 7\n"
        "backtest:\n"
        "  opening_funds: 2500.10\n"
        "  interest_rate: 0.1\n"
        "  deposit_interval_days: 14\n"
        "  unknown_key: ignored\n"
        "decimal:\n"
        "  precision: 20\n"
        "log_level: DEBUG\n",
        encoding="utf-8",
    )

    config = Config.from_yaml(path)

    assert config.strategy.name == "rsi_oversold"
    assert config.strategy.params == {"lookback": 7}
    assert config.backtest.opening_funds == "2500.1"
    assert to_decimal(config.backtest.interest_rate) == to_decimal("0.1")
    assert config.backtest.deposit_interval_days == 14
    assert config.decimal.precision == 20
    assert config.log_level == "DEBUG"


def test_from_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"strategy": {"name": "custom", "params": {"resubmit": True}}}), encoding="utf-8")

    config = Config.from_json(path)

    assert config.strategy.params == {"resubmit": True}
    assert config.backtest.ticker == "VGS"


def test_save_and_reload(tmp_path):
    config = Config()
    config.backtest.management_fee = "0.002"
    config.strategy.params = {"interval_days": 14}
    path = tmp_path / "nested" / "config.yaml"

    config.save_yaml(path)

    assert Config.from_yaml(path) == config


@pytest.mark.parametrize("empty", ["", "strategy:\n"])
def test_empty_sections_use_defaults(tmp_path, empty):
    path = tmp_path / "config.yaml"
    path.write_text(empty, encoding="utf-8")
    assert Config.from_yaml(path) == Config()
