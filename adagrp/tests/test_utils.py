import numpy as np
import pytest

from adagrp import InvalidInputError
from adagrp.datasets import make_group_regression
from adagrp.utils import (
    check_adaptive_weights,
    check_groups,
    check_sample_weight,
    groups_to_blocks,
)
from sklearn.utils._testing import assert_array_almost_equal, assert_array_equal


def test_check_groups():
    X, y, groups_in = make_group_regression()

    _, n_features = X.shape

    groups_out = check_groups(groups=groups_in, X=X)
    assert isinstance(groups_out, tuple)  # nosec
    assert len(groups_out) == len(groups_in)  # nosec
    for grp_out, grp_in in zip(groups_out, groups_in):
        assert_array_equal(grp_out, grp_in)

    # Test the groups=None defaults
    groups_out = check_groups(groups=None, X=X, fit_intercept=False)
    assert_array_almost_equal(groups_out, [np.arange(n_features)])

    groups_out = check_groups(groups=None, X=X, fit_intercept=True)
    assert_array_almost_equal(groups_out, [np.arange(n_features - 1)])

    # Test Value error on missing features in groups
    with pytest.raises(ValueError):
        check_groups(groups=groups_in[1:], X=X)

    # Unless partial coverage is allowed
    groups_out = check_groups(groups=groups_in[1:], X=X, allow_partial=True)
    assert len(groups_out) == len(groups_in) - 1  # nosec

    # Test Value error on missing groups in features
    with pytest.raises(ValueError):
        check_groups(
            groups=groups_in + [np.arange(n_features + 1, n_features + 20)], X=X
        )

    # Test Value error on overlapping groups
    with pytest.raises(ValueError):
        check_groups(groups=groups_in + [np.arange(n_features)], X=X)


@pytest.mark.parametrize(
    "groups",
    [
        [np.array([0, 2]), np.array([1, 3])],
        [np.array([1, 0]), np.array([2, 3])],
        [np.array([], dtype=int), np.arange(4)],
        [np.arange(3), np.array([3, 4])],
        [np.array([-1, 0]), np.array([1, 2, 3])],
    ],
)
def test_check_groups_errors(groups):
    X = np.zeros((5, 4))
    with pytest.raises(InvalidInputError):
        check_groups(groups=groups, X=X)


def test_check_groups_error_message_names_kwarg():
    X = np.zeros((5, 4))
    with pytest.raises(InvalidInputError, match="X_test"):
        check_groups(groups=[np.arange(6)], X=X, kwarg_name="X_test")


def test_groups_to_blocks():
    groups = [np.arange(0, 3), np.arange(3, 4), np.arange(4, 9)]
    group_start, group_len = groups_to_blocks(groups)
    assert_array_equal(group_start, [0, 3, 4])
    assert_array_equal(group_len, [3, 1, 5])


def test_check_adaptive_weights():
    assert_array_equal(check_adaptive_weights(None, 3), np.ones(3))
    assert_array_equal(check_adaptive_weights([0.0, 2, 1], 3), [0.0, 2.0, 1.0])

    with pytest.raises(InvalidInputError):
        check_adaptive_weights([1.0, 1.0], 3)

    with pytest.raises(InvalidInputError):
        check_adaptive_weights([1.0, -1.0, 1.0], 3)

    with pytest.raises(ValueError):
        check_adaptive_weights([1.0, np.nan, 1.0], 3)


def test_check_sample_weight():
    assert_array_equal(check_sample_weight(None, 4), np.ones(4))
    assert_array_equal(check_sample_weight([0, 1, 2, 3], 4), [0.0, 1.0, 2.0, 3.0])

    with pytest.raises(InvalidInputError):
        check_sample_weight(np.ones(3), 4)

    with pytest.raises(InvalidInputError):
        check_sample_weight(np.ones((4, 1)), 4)

    with pytest.raises(InvalidInputError):
        check_sample_weight([1.0, -1.0, 1.0, 1.0], 4)

    with pytest.raises(InvalidInputError):
        check_sample_weight(np.zeros(4), 4)
