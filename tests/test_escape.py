import numpy as np
import pytest

from fractalpattern import escape_field, evaluate


@pytest.mark.parametrize('real, imag', [(3.0, 0.0), (0.0, -2.5), (2.0, 2.0), (-5.0, 5.0), (1.5, -1.5)])
def test_points_outside_radius_escape_immediately(real, imag):
    assert evaluate(real, imag, 100) == 1


@pytest.mark.parametrize('max_iterations', [1, 10, 1000])
def test_origin_never_escapes(max_iterations):
    assert evaluate(0.0, 0.0, max_iterations) == max_iterations


@pytest.mark.parametrize('real, imag', [(-1.0, 0.0), (0.25, 0.0), (0.0, 1.0), (-0.1, 0.1)])
def test_bounded_orbits_use_whole_budget(real, imag):
    assert evaluate(real, imag, 200) == 200


def test_magnitude_of_exactly_two_escapes():
    # c = -2: z goes 0 -> -2 and stops there.
    assert evaluate(-2.0, 0.0, 50) == 1


def test_escape_after_a_few_iterations():
    # c = 1: z goes 0 -> 1 -> 2.
    assert evaluate(1.0, 0.0, 100) == 2


def test_evaluate_is_deterministic():
    results = {evaluate(-0.743643887, 0.131825904, 500) for _ in range(5)}
    assert len(results) == 1


def test_escape_field_matches_evaluate():
    real, imag = np.meshgrid(np.linspace(-2.0, 1.0, 24), np.linspace(-1.5, 1.5, 20))
    field = escape_field(real, imag, 60)

    assert field.shape == (20, 24)
    assert field.dtype == np.int32
    expected = np.array(
        [[evaluate(float(r), float(i), 60) for r, i in zip(row_r, row_i)] for row_r, row_i in zip(real, imag)],
        dtype=np.int32,
    )
    np.testing.assert_array_equal(field, expected)


def test_escape_field_rejects_mismatched_shapes():
    with pytest.raises(ValueError):
        escape_field(np.zeros(3), np.zeros(4), 10)


def test_escape_field_of_empty_grid():
    field = escape_field(np.zeros((0, 5)), np.zeros((0, 5)), 10)
    assert field.shape == (0, 5)
