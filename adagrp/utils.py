"""Utility functions for validating group lasso inputs."""
import numpy as np

from sklearn.utils import check_array

from .exceptions import InvalidInputError

__all__ = [
    "check_groups",
    "groups_to_blocks",
    "check_adaptive_weights",
    "check_sample_weight",
]


def check_groups(groups, X, fit_intercept=False, allow_partial=False, kwarg_name="X"):
    """Validate group indices.

    Verify that every group is a non-empty run of consecutive feature
    indices, that all groups refer to features that actually exist in
    ``X``, that groups are disjoint and, if ``allow_partial=False``, that
    all features in ``X`` are accounted for.

    Parameters
    ----------
    groups : list of numpy.ndarray
        list of arrays of contiguous indices for each group. For example, if
        nine features are grouped into equal contiguous groups of three, then
        groups would be ``[array([0, 1, 2]), array([3, 4, 5]), array([6, 7,
        8])]``. If the feature matrix contains a bias or intercept feature, do
        not include it as a group. If None, all features will belong to one
        group.

    X : {array-like, sparse matrix}, shape (n_samples, n_features)
        The training input samples. If ``X`` includes a bias or intercept
        feature, it must be in the last column and ``fit_intercept`` should
        be ``True``.

    fit_intercept : bool, default=False
        If True, assume that the last column of the feature matrix
        corresponds to the bias or intercept.

    allow_partial : bool, default=False
        If True, allow features that belong to no group. Such features are
        never updated by the solver.

    kwarg_name : str, default="X"
        The keyword argument name used to customize error messages. Defaults to
        "X" as this function is most commonly used to check feature matrices
        during fit, transform, and predict functions.

    Returns
    -------
    groups : tuple of numpy.ndarray
        The validated groups.
    """
    n_features = X.shape[-1]

    if fit_intercept:
        n_features -= 1

    if groups is None:
        # If no groups provided, put all features in one group
        return (np.arange(n_features),)

    groups = [np.asarray(grp, dtype=int).ravel() for grp in groups]

    for idx, grp in enumerate(groups):
        if grp.size == 0:
            raise InvalidInputError("Group {0} is empty.".format(idx))
        if np.any(np.diff(grp) != 1):
            raise InvalidInputError(
                "Group {0} is not a contiguous ascending block of feature "
                "indices: {1}".format(idx, grp)
            )

    all_indices = np.concatenate(groups)

    if not set(all_indices) <= set(range(n_features)):
        raise InvalidInputError(
            "There are feature indices in groups that exceed the dimensions "
            "of {0}; {0} has {1} features but groups refers to indices {2}".format(
                kwarg_name, n_features, set(all_indices) - set(range(n_features))
            )
        )

    _, counts = np.unique(all_indices, return_counts=True)
    if set(counts) != {1}:
        raise InvalidInputError("Overlapping groups detected.")

    if not allow_partial and set(all_indices) < set(range(n_features)):
        raise InvalidInputError(
            "Some features are unaccounted for in groups; Columns "
            "{0} are absent from groups.".format(
                set(range(n_features)) - set(all_indices)
            )
        )

    return tuple(groups)


def groups_to_blocks(groups):
    """Convert contiguous index groups to ``(group_start, group_len)``.

    Parameters
    ----------
    groups : sequence of numpy.ndarray
        Validated contiguous groups, e.g. the output of :func:`check_groups`.

    Returns
    -------
    group_start : np.ndarray of int
    group_len : np.ndarray of int
    """
    group_start = np.array([grp[0] for grp in groups], dtype=int)
    group_len = np.array([grp.size for grp in groups], dtype=int)
    return group_start, group_len


def check_adaptive_weights(adaptive_weights, n_groups):
    """Validate the per-group adaptive penalty weights.

    Parameters
    ----------
    adaptive_weights : array-like of shape (n_groups,) or None
        Penalty multipliers. If None, every group gets a weight of one.

    n_groups : int
        Number of groups.

    Returns
    -------
    np.ndarray of shape (n_groups,)
    """
    if adaptive_weights is None:
        return np.ones(n_groups)

    adaptive_weights = check_array(
        adaptive_weights, ensure_2d=False, dtype=np.float64
    ).ravel()
    if adaptive_weights.size != n_groups:
        raise InvalidInputError(
            "adaptive_weights must have one entry per group; got {0} weights "
            "for {1} groups".format(adaptive_weights.size, n_groups)
        )
    if np.any(adaptive_weights < 0):
        raise InvalidInputError("adaptive_weights must be non-negative.")
    return adaptive_weights


def check_sample_weight(sample_weight, n_samples):
    """Validate observation weights.

    Parameters
    ----------
    sample_weight : array-like of shape (n_samples,) or None
        Observation weights. If None, every observation gets a weight of one.

    n_samples : int
        Number of observations.

    Returns
    -------
    np.ndarray of shape (n_samples,)
    """
    if sample_weight is None:
        return np.ones(n_samples)

    sample_weight = check_array(sample_weight, ensure_2d=False, dtype=np.float64)
    if sample_weight.ndim != 1 or sample_weight.size != n_samples:
        raise InvalidInputError(
            "sample_weight must have shape ({0},); got {1}".format(
                n_samples, sample_weight.shape
            )
        )
    if np.any(sample_weight < 0):
        raise InvalidInputError("sample_weight must be non-negative.")
    if not np.sum(sample_weight) > 0:
        raise InvalidInputError("sample_weight must have a positive sum.")
    return sample_weight
