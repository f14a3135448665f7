from __future__ import annotations

import numpy as np
import pytest

from county_election.models.grids import (
    build_grid,
    elastic_net_grid,
    lasso_grid,
    logistic_grid,
    mixture_grid,
    penalty_grid,
)


def test_default_penalty_grid():
    p = penalty_grid()
    assert len(p) == 1000
    assert p[0] == pytest.approx(1e5)
    assert p[-1] == pytest.approx(1e-2)
    assert np.all(np.diff(p) < 0)


def test_default_mixture_grid():
    m = mixture_grid()
    assert len(m) == 21
    assert m[0] == 0.0 and m[-1] == 1.0
    np.testing.assert_allclose(np.diff(m), 0.05)


def test_build_grid_is_cartesian_product_in_order():
    grid = build_grid([1.0, 0.1, 0.01], [0.0, 0.5, 1.0])
    assert len(grid) == 9
    assert list(grid["grid_id"]) == list(range(9))
    assert list(grid.columns) == ["grid_id", "penalty", "mixture"]
    assert list(grid["mixture"][:3]) == [0.0, 0.0, 0.0]
    assert list(grid["penalty"][:3]) == [1.0, 0.1, 0.01]
    assert not grid.duplicated(["penalty", "mixture"]).any()


def test_named_grids():
    assert set(lasso_grid([1.0, 0.1])["mixture"]) == {1.0}
    assert len(elastic_net_grid([1.0, 0.1], [0.0, 1.0])) == 4
    assert len(elastic_net_grid()) == 1000 * 21
    lg = logistic_grid()
    assert len(lg) == 1 and lg["penalty"].iloc[0] == 0.0


@pytest.mark.parametrize(
    "penalties, mixtures",
    [([], [1.0]), ([1.0], []), ([-1.0], [1.0]), ([1.0], [1.5])],
)
def test_invalid_grids(penalties, mixtures):
    with pytest.raises(ValueError):
        build_grid(penalties, mixtures)


def test_invalid_mixture_range():
    with pytest.raises(ValueError):
        mixture_grid(0.5, 0.2, 0.1)
    with pytest.raises(ValueError):
        mixture_grid(0.0, 1.0, 0.0)
