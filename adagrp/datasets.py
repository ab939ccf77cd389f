"""Generate samples of synthetic data sets with contiguous feature groups."""
import numpy as np

from sklearn.datasets import make_classification, make_regression
from sklearn.utils import check_random_state
from sklearn.utils import shuffle as util_shuffle

__all__ = ["make_group_classification", "make_group_regression"]


def _contiguous_groups(n_groups, n_features_per_group):
    return [
        np.arange(i * n_features_per_group, (i + 1) * n_features_per_group)
        for i in range(n_groups)
    ]


def _spread_informative(n_informative_groups, n_features_per_group, n_informative):
    """Map consolidated feature indices so informative features are spread evenly.

    ``make_regression`` and ``make_classification`` put all informative
    features first. This returns a column permutation that places
    ``n_informative_per_group`` of them at the start of each of the first
    ``n_informative_groups`` groups.
    """
    n_info_grp_features = n_informative_groups * n_features_per_group
    n_per_group = n_informative // n_informative_groups

    informative = np.arange(n_informative).reshape(n_informative_groups, n_per_group)
    noise = np.arange(n_informative, n_info_grp_features).reshape(
        n_informative_groups, n_features_per_group - n_per_group
    )
    return np.concatenate([informative, noise], axis=1).ravel()


def make_group_regression(
    n_samples=100,
    n_groups=20,
    n_informative_groups=5,
    n_features_per_group=20,
    n_informative_per_group=5,
    effective_rank=None,
    noise=0.0,
    shuffle=False,
    coef=False,
    random_state=None,
):
    """Generate a sparse group regression problem.

    This method uses sklearn.datasets.make_regression to construct a
    giant unshuffled regression problem of size
    ``n_groups * n_features_per_group`` and then distributes the
    informative features evenly across the first ``n_informative_groups``
    groups. Groups are contiguous blocks of ``n_features_per_group``
    columns.

    Parameters
    ----------
    n_samples : int, optional (default=100)
        The number of samples.

    n_groups : int, optional (default=20)
        The number of feature groups.

    n_informative_groups : int, optional (default=5)
        The total number of informative groups. All other groups will be
        just noise.

    n_features_per_group : int, optional (default=20)
        The total number of features_per_group.

    n_informative_per_group : int, optional (default=5)
        The number of informative features_per_group that have a
        non-zero regression coefficient.

    effective_rank : int or None, optional (default=None)
        If not None, provides the number of singular vectors to explain the
        input data.

    noise : float, optional (default=0.0)
         The standard deviation of the gaussian noise applied to the output.

    shuffle : boolean, optional (default=False)
        Shuffle the samples. Features are never shuffled so that groups stay
        contiguous.

    coef : boolean, optional (default=False)
        If True, returns coefficient values used to generate samples via
        sklearn.datasets.make_regression.

    random_state : int, RandomState instance or None, optional (default=None)
        If int, random_state is the seed used by the random number generator;
        If RandomState instance, random_state is the random number generator;
        If None, the random number generator is the RandomState instance used
        by `np.random`.

    Returns
    -------
    X : array of shape [n_samples, n_features]
        The generated samples.

    y : array of shape [n_samples]
        The output values.

    groups : list of arrays
        Each element is an array of feature indices that belong to that group

    coef : array of shape [n_features]
        A numpy array containing true regression coefficient values. Returned only if `coef` is True.

    See Also
    --------
    sklearn.datasets.make_regression: non-group-sparse version
    """
    generator = check_random_state(random_state)

    total_features = n_groups * n_features_per_group
    total_informative = n_informative_groups * n_informative_per_group

    X, y, reg_coefs = make_regression(
        n_samples=n_samples,
        n_features=total_features,
        n_informative=total_informative,
        effective_rank=effective_rank,
        bias=0.0,
        noise=noise,
        shuffle=False,
        coef=True,
        random_state=generator,
    )

    idx_map = _spread_informative(
        n_informative_groups, n_features_per_group, total_informative
    )
    n_info_grp_features = idx_map.size

    X = np.concatenate([X[:, idx_map], X[:, n_info_grp_features:]], axis=1)
    reg_coefs = np.concatenate(
        [reg_coefs[idx_map], reg_coefs[n_info_grp_features:]]
    )

    if shuffle:
        X, y = util_shuffle(X, y, random_state=generator)

    X = np.ascontiguousarray(X)
    groups = _contiguous_groups(n_groups, n_features_per_group)
    if coef:
        return X, y, groups, reg_coefs
    else:
        return X, y, groups


def make_group_classification(
    n_samples=100,
    n_groups=20,
    n_informative_groups=2,
    n_features_per_group=20,
    n_informative_per_group=2,
    flip_y=0.01,
    class_sep=1.0,
    shuffle=True,
    random_state=None,
):
    """Generate a random binary sparse group classification problem.

    This method uses sklearn.datasets.make_classification to construct a
    giant unshuffled two-class problem of size
    ``n_groups * n_features_per_group`` and then distributes the
    informative features evenly across the first ``n_informative_groups``
    contiguous groups.

    Parameters
    ----------
    n_samples : int, optional (default=100)
        The number of samples.

    n_groups : int, optional (default=20)
        The number of feature groups.

    n_informative_groups : int, optional (default=2)
        The total number of informative groups. All other groups will be
        just noise.

    n_features_per_group : int, optional (default=20)
        The total number of features_per_group.

    n_informative_per_group : int, optional (default=2)
        The number of informative features_per_group.

    flip_y : float, optional (default=0.01)
        The fraction of samples whose class are randomly exchanged.

    class_sep : float, optional (default=1.0)
        The factor multiplying the hypercube size.  Larger values spread
        out the clusters/classes and make the classification task easier.

    shuffle : boolean, optional (default=True)
        Shuffle the samples.

    random_state : int, RandomState instance or None, optional (default=None)
        Determines random number generation for dataset creation.

    Returns
    -------
    X : array of shape [n_samples, n_features]
        The generated samples.

    y : array of shape [n_samples]
        The integer labels (0 or 1) for class membership of each sample.

    groups : list of arrays
        Each element is an array of feature indices that belong to that group
    """
    generator = check_random_state(random_state)

    total_features = n_groups * n_features_per_group
    total_informative = n_informative_groups * n_informative_per_group

    X, y = make_classification(
        n_samples=n_samples,
        n_features=total_features,
        n_informative=total_informative,
        n_redundant=0,
        n_repeated=0,
        n_classes=2,
        n_clusters_per_class=1,
        flip_y=flip_y,
        class_sep=class_sep,
        shuffle=False,
        random_state=generator,
    )

    idx_map = _spread_informative(
        n_informative_groups, n_features_per_group, total_informative
    )
    X = np.concatenate([X[:, idx_map], X[:, idx_map.size :]], axis=1)

    if shuffle:
        X, y = util_shuffle(X, y, random_state=generator)

    X = np.ascontiguousarray(X)
    return X, y, _contiguous_groups(n_groups, n_features_per_group)
