import pytest

from filetgrid.yarn import (
    GridType,
    calculate_yarn_required,
    consumption_rate,
    format_skeins,
    format_yarn_grams,
    skeins_for,
)


def test_consumption_rates():
    assert consumption_rate('tett') == 0.209
    assert consumption_rate(GridType.APENT) == 0.194


def test_dense_grid():
    yarn = calculate_yarn_required(30, 31.5, 'tett')
    assert yarn.grams == pytest.approx(197.505)
    assert yarn.skeins_needed == 4


def test_open_grid():
    yarn = calculate_yarn_required(20, 20, 'åpent')
    assert yarn.grams == pytest.approx(77.6)
    assert yarn.skeins_needed == 2


def test_skeins_round_up():
    assert skeins_for(50) == 1
    assert skeins_for(50.01) == 2
    assert skeins_for(0) == 0


def test_unknown_grid_type():
    with pytest.raises(ValueError):
        calculate_yarn_required(20, 20, 'loose')


def test_formatting():
    assert format_yarn_grams(218.549) == '218.55g'
    assert format_skeins(5) == '5 × 50g'
