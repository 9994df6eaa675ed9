import numpy as np
import pytest

from eventrot.interpolation import GradientMap, bilinear_sample, bilinear_sample_many, clamped_axes


def _make_grid(height: int = 4, width: int = 5) -> np.ndarray:
    rng = np.random.default_rng(11)
    return rng.uniform(-2.0, 2.0, size=(height, width))


@pytest.mark.parametrize("boundary", ["clamp", "nan"])
@pytest.mark.parametrize("wrap_x", [False, True])
def test_exact_at_integer_coordinates(boundary, wrap_x):
    grid = _make_grid()
    rows, cols = np.mgrid[0:grid.shape[0], 0:grid.shape[1]]
    sampled = bilinear_sample(grid, cols.astype(float), rows.astype(float),
                              boundary=boundary, wrap_x=wrap_x)
    assert np.array_equal(sampled, grid)


def test_interior_midpoint_is_average():
    grid = np.array([[0.0, 1.0], [2.0, 3.0]])
    assert float(bilinear_sample(grid, 0.5, 0.5)) == pytest.approx(1.5)
    assert float(bilinear_sample(grid, 0.25, 0.0)) == pytest.approx(0.25)
    assert float(bilinear_sample(grid, 1.0, 0.5)) == pytest.approx(2.0)


def test_clamp_policy_is_edge_value_and_deterministic():
    grid = _make_grid()
    first = bilinear_sample(grid, np.array([-3.0, 10.0]), np.array([1.2, -4.0]))
    second = bilinear_sample(grid, np.array([-3.0, 10.0]), np.array([1.2, -4.0]))
    edge = bilinear_sample(grid, np.array([0.0, 4.0]), np.array([1.2, 0.0]))
    assert np.array_equal(first, second)
    assert np.allclose(first, edge)


def test_nan_policy_outside_grid():
    grid = _make_grid()
    sampled = bilinear_sample(grid, np.array([-0.1, 2.0, 4.5, 1.0]), np.array([1.0, 3.2, 1.0, 1.5]),
                              boundary="nan")
    assert np.isnan(sampled[0])
    assert np.isnan(sampled[1])
    assert np.isnan(sampled[2])
    assert np.isfinite(sampled[3])


def test_wrap_interpolates_across_seam():
    grid = np.tile(np.arange(4, dtype=float), (3, 1))
    assert float(bilinear_sample(grid, 3.5, 1.0, wrap_x=True)) == pytest.approx(1.5)
    assert float(bilinear_sample(grid, -0.5, 1.0, wrap_x=True)) == pytest.approx(1.5)
    assert float(bilinear_sample(grid, 4.0, 1.0, wrap_x=True)) == pytest.approx(0.0)
    assert float(bilinear_sample(grid, 6.25, 1.0, wrap_x=True)) == pytest.approx(2.25)


def test_nan_coordinate_gives_nan_under_clamp():
    grid = _make_grid()
    sampled = bilinear_sample(grid, np.array([np.nan, 1.0]), np.array([1.0, 1.0]))
    assert np.isnan(sampled[0])
    assert np.isfinite(sampled[1])


def test_many_matches_separate_calls():
    grid_a = _make_grid()
    grid_b = 3.0 * _make_grid() + 1.0
    px = np.array([0.3, 2.7, 3.99, -1.0])
    py = np.array([0.0, 2.5, 1.1, 9.0])
    a, b = bilinear_sample_many([grid_a, grid_b], px, py, wrap_x=True)
    assert np.array_equal(a, bilinear_sample(grid_a, px, py, wrap_x=True))
    assert np.array_equal(b, bilinear_sample(grid_b, px, py, wrap_x=True))


def test_unknown_policy_raises():
    with pytest.raises(ValueError):
        bilinear_sample(_make_grid(), 1.0, 1.0, boundary="mirror")


def test_shape_mismatch_raises():
    with pytest.raises(ValueError):
        bilinear_sample_many([np.zeros((3, 4)), np.zeros((4, 3))], 1.0, 1.0)


def test_gradient_map_of_linear_map_is_constant():
    rows, cols = np.mgrid[0:6, 0:8].astype(float)
    pano = 2.0 * cols - 3.0 * rows + 1.0
    grad = GradientMap.from_map(pano)
    assert grad.shape == (6, 8)
    assert np.allclose(grad.x, 2.0)
    assert np.allclose(grad.y, -3.0)


def test_gradient_map_rejects_mismatched_fields():
    with pytest.raises(ValueError):
        GradientMap(x=np.zeros((3, 4)), y=np.zeros((3, 5)))


def test_clamped_axes_flags_edge_moves_only():
    px = np.array([-0.2, 2.0, 4.3, np.nan, 4.0])
    py = np.array([1.0, -0.1, 3.5, 1.0, 3.0])

    clamped_x, clamped_y = clamped_axes(px, py, (4, 5))
    assert clamped_x.tolist() == [True, False, True, False, False]
    assert clamped_y.tolist() == [False, True, True, False, False]

    # periodic columns are never clamped
    clamped_x, _ = clamped_axes(px, py, (4, 5), wrap_x=True)
    assert not clamped_x.any()
