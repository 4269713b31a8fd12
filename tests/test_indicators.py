from decimal import Decimal

import pytest

from systematic_trading.core.exceptions import TooFewDataPoints, ValidationError
from systematic_trading.indicators.ema import ExponentialMovingAverage
from systematic_trading.indicators.macd import MacdLines, MovingAverageConvergenceDivergence
from systematic_trading.indicators.rsi import RelativeStrength, RelativeStrengthIndex
from systematic_trading.indicators.sma import SimpleMovingAverage


def test_sma_values(ctx, prices):
    series = prices([1, 2, 3, 4, 5, 6])
    line = SimpleMovingAverage(2, ctx).calculate(series)

    assert line.values_list() == [Decimal("1.5"), Decimal("2.5"), Decimal("3.5"), Decimal("4.5"), Decimal("5.5")]
    assert line.dates() == [price.date for price in series[1:]]


def test_ema_converges_on_linear_input(ctx, prices):
    series = prices(range(1, 11))
    line = ExponentialMovingAverage(3, ctx).calculate(series)

    assert line.values_list() == [Decimal(value) for value in range(2, 10)]
    assert line.dates()[0] == series[2].date


def test_ema_without_seed_drops_first_value(ctx, prices):
    series = prices(range(1, 11))
    with_seed = ExponentialMovingAverage(3, ctx).calculate(series)
    without_seed = ExponentialMovingAverage(3, ctx, include_seed=False).calculate(series)

    assert without_seed == with_seed.after(series[2].date)
    assert ExponentialMovingAverage(3, ctx, include_seed=False).minimum_number_of_prices() == 4


def test_relative_strength_wilder_smoothing(ctx, prices):
    series = prices([10, 12, 11, 13])
    line = RelativeStrength(2, ctx).calculate(series)

    # 초기 평균: 상승 1, 하락 0.5 → 2 / 다음 날: 상승 1.5, 하락 0.25 → 6
    assert line.values_list() == [Decimal(2), Decimal(6)]
    assert line.dates() == [series[2].date, series[3].date]


def test_relative_strength_without_losses_is_average_gain(ctx, prices):
    line = RelativeStrength(2, ctx).calculate(prices([10, 11, 12]))
    assert line.values_list() == [Decimal(1)]


def test_rsi_bounded(ctx, prices):
    series = prices([44, 44.3, 44.1, 43.6, 44.3, 44.8, 45.1, 45.4, 45.8, 46.1, 45.9, 46.2, 45.6, 46.2])
    line = RelativeStrengthIndex(5, ctx).calculate(series)

    assert len(line) == len(series) - 5
    assert all(Decimal(0) <= value <= Decimal(100) for value in line.values())


def test_macd_lines_align(ctx, prices):
    closes = [10 + (index % 7) - (index % 3) + index * 0.1 for index in range(40)]
    series = prices(closes)
    macd = MovingAverageConvergenceDivergence(3, 6, 4, ctx)

    lines = macd.signal_input(series)
    assert isinstance(lines, MacdLines)
    assert macd.calculate(series) == lines.macd
    # 느린 EMA는 seed 날짜를 빼므로 slow번째 가격부터
    assert lines.macd.dates()[0] == series[6].date
    assert set(lines.signal_line.dates()) <= set(lines.macd.dates())
    assert macd.minimum_number_of_prices() == 6 + 4


def test_macd_requires_slow_greater_than_fast(ctx):
    with pytest.raises(ValidationError):
        MovingAverageConvergenceDivergence(26, 12, 9, ctx)


def test_calculation_is_repeatable(ctx, prices):
    series = prices([5, 7, 6, 8, 9, 7, 10, 11, 9, 12])
    rsi = RelativeStrengthIndex(3, ctx)
    assert rsi.calculate(series) == rsi.calculate(series)


def test_too_few_data_points(ctx, prices):
    with pytest.raises(TooFewDataPoints) as excinfo:
        SimpleMovingAverage(5, ctx, days_of_values=2).calculate(prices([1, 2, 3, 4, 5]))
    assert excinfo.value.required == 6
    assert excinfo.value.actual == 5


def test_missing_prices_rejected(ctx, prices):
    series = prices([1, 2, 3])
    with pytest.raises(ValidationError):
        SimpleMovingAverage(2, ctx).calculate(None)
    with pytest.raises(ValidationError):
        SimpleMovingAverage(2, ctx).calculate([series[0], None, series[2]])


def test_lookback_must_be_positive(ctx):
    with pytest.raises(ValidationError):
        SimpleMovingAverage(0, ctx)
    with pytest.raises(ValidationError):
        RelativeStrength(-1, ctx)
