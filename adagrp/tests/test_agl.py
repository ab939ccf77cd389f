import numpy as np
import pytest

from adagrp import AGL, LogisticAGL, InvalidInputError, agl_path
from adagrp._base import AGLBaseEstimator
from adagrp.datasets import make_group_classification, make_group_regression
from sklearn.utils._testing import assert_array_almost_equal

TIGHT = dict(max_iter=1000, max_outer_iter=1000, tol=1e-10, outer_tol=1e-10)


def small_regression(random_state=0):
    return make_group_regression(
        n_samples=50,
        n_groups=5,
        n_informative_groups=2,
        n_features_per_group=4,
        n_informative_per_group=2,
        noise=0.5,
        random_state=random_state,
    )


def test_agl_input_validation():
    X = [[0], [0], [0]]
    y = [0, 0, 0]

    with pytest.raises(ValueError):
        AGL(alpha=0.1, warm_start="error").fit(X, y)

    with pytest.raises(ValueError):
        AGLBaseEstimator(alpha=0.1).fit(X, y, loss="error")

    with pytest.raises(ValueError):
        AGL(alpha=-1).fit(X, y)

    X = np.zeros((4, 5))
    y = np.arange(4.0)
    with pytest.raises(InvalidInputError):
        AGL(groups=[np.arange(3), np.arange(2, 5)]).fit(X, y)

    with pytest.raises(InvalidInputError):
        AGL(groups=[np.array([0, 2]), np.array([1, 3, 4])]).fit(X, y)

    with pytest.raises(InvalidInputError):
        AGL(groups=[np.arange(5)], adaptive_weights=[1.0, 1.0]).fit(X, y)

    with pytest.raises(InvalidInputError):
        AGL().fit(X, y, sample_weight=-np.ones(4))


@pytest.mark.parametrize("Estimator", [AGL, LogisticAGL])
def test_agl_masks(Estimator):
    groups = [np.arange(5), np.arange(5, 10)]
    model = Estimator(groups=groups)
    coefs_0 = np.concatenate([np.ones(5), np.zeros(5)])
    model.coef_ = coefs_0
    assert_array_almost_equal(model.chosen_features_, np.arange(5))
    assert_array_almost_equal(model.sparsity_mask_, coefs_0 != 0)
    assert_array_almost_equal(model.chosen_groups_, np.array([0]))

    model.groups = None
    assert_array_almost_equal(model.chosen_groups_, np.arange(5))

    coefs_1 = np.concatenate([np.ones(5), np.ones(5) * 1e-7])
    model.coef_ = coefs_1
    assert_array_almost_equal(model.like_nonzero_mask_(rtol=2.1e-7), coefs_0 != 0)
    assert all(model.like_nonzero_mask_(rtol=1e-8))  # nosec


@pytest.mark.parametrize("suppress_warnings", [True, False])
def test_agl_zero(suppress_warnings):
    # Check that AGL can handle zero data without crashing
    X = [[0], [0], [0]]
    y = [0, 0, 0]
    clf = AGL(alpha=0.1, suppress_solver_warnings=suppress_warnings).fit(X, y)
    pred = clf.predict([[1], [2], [3]])
    assert_array_almost_equal(clf.coef_, [0])
    assert_array_almost_equal(pred, [0, 0, 0])
    assert clf.converged_  # nosec


# With a single feature in a single group, AGL should behave like the
# lasso. This replicates the toy tests for sklearn.linear_model.Lasso
def test_agl_toy():
    X = [[-1], [0], [1]]
    y = [-1, 0, 1]  # just a straight line
    T = [[2], [3], [4]]  # test sample

    clf = AGL(alpha=1e-8, **TIGHT)
    clf.fit(X, y)
    pred = clf.predict(T)
    assert_array_almost_equal(clf.coef_, [1])
    assert_array_almost_equal(pred, [2, 3, 4])

    clf = AGL(alpha=0.1, **TIGHT)
    clf.fit(X, y)
    pred = clf.predict(T)
    assert_array_almost_equal(clf.coef_, [0.85])
    assert_array_almost_equal(pred, [1.7, 2.55, 3.4])

    clf = AGL(alpha=0.5, **TIGHT)
    clf.fit(X, y)
    pred = clf.predict(T)
    assert_array_almost_equal(clf.coef_, [0.25])
    assert_array_almost_equal(pred, [0.5, 0.75, 1.0])

    clf = AGL(alpha=1, **TIGHT)
    clf.fit(X, y)
    pred = clf.predict(T)
    assert_array_almost_equal(clf.coef_, [0.0])
    assert_array_almost_equal(pred, [0, 0, 0])


def test_agl_intercept():
    X = np.array([[-1.0], [0.0], [1.0]])
    y = np.array([2.0, 3.0, 4.0])

    clf = AGL(alpha=0.1, **TIGHT).fit(X, y)
    assert_array_almost_equal(clf.coef_, [0.85])
    assert_array_almost_equal(clf.intercept_, 3.0)

    clf = AGL(alpha=0.1, fit_intercept=False, **TIGHT).fit(X, y)
    assert clf.intercept_ == 0.0  # nosec


@pytest.mark.parametrize("fit_intercept", [True, False])
def test_warm_start(fit_intercept):
    X, y, groups = small_regression()
    params = dict(alpha=1.0, groups=groups, fit_intercept=fit_intercept, **TIGHT)

    cold = AGL(**params).fit(X, y)

    warm = AGL(warm_start=True, **params)
    warm.fit(X, y)
    n_iter_first = warm.n_iter_
    warm.fit(X, y)

    assert_array_almost_equal(warm.coef_, cold.coef_)
    assert_array_almost_equal(warm.intercept_, cold.intercept_)
    assert warm.n_iter_ <= n_iter_first  # nosec


def test_agl_group_sparsity():
    X, y, groups = small_regression()
    model = AGL(alpha=1.0, groups=groups, **TIGHT).fit(X, y)

    # Groups are kept or discarded as a whole
    for grp in groups:
        grp_coef = model.coef_[grp]
        assert np.all(grp_coef == 0) or np.all(grp_coef != 0)  # nosec

    assert set(model.chosen_groups_) >= {0, 1}  # nosec

    big = AGL(alpha=1e4, groups=groups).fit(X, y)
    assert big.chosen_features_.size == 0  # nosec
    assert_array_almost_equal(big.intercept_, np.mean(y))

    X_sel = model.transform(X)
    assert X_sel.shape == (X.shape[0], model.chosen_features_.size)  # nosec


def test_adaptive_weights_unpenalize_group():
    X, y, groups = small_regression()
    adaptive_weights = np.ones(len(groups))
    adaptive_weights[-1] = 0.0
    model = AGL(alpha=1e4, groups=groups, adaptive_weights=adaptive_weights).fit(X, y)

    assert np.all(model.coef_[groups[-1]] != 0)  # nosec
    for grp in groups[:-1]:
        assert np.all(model.coef_[grp] == 0)  # nosec


def test_sample_weight_matches_duplicated_rows():
    X, y, groups = small_regression()
    sample_weight = np.ones(X.shape[0])
    sample_weight[:10] = 3.0

    X_dup = np.concatenate([X, X[:10], X[:10]])
    y_dup = np.concatenate([y, y[:10], y[:10]])

    weighted = AGL(alpha=0.5, groups=groups, **TIGHT).fit(
        X, y, sample_weight=sample_weight
    )
    duplicated = AGL(alpha=0.5, groups=groups, **TIGHT).fit(X_dup, y_dup)
    assert_array_almost_equal(weighted.coef_, duplicated.coef_)
    assert_array_almost_equal(weighted.intercept_, duplicated.intercept_)


def test_logistic_agl():
    X, y, groups = make_group_classification(
        n_samples=200,
        n_groups=5,
        n_features_per_group=4,
        n_informative_groups=2,
        n_informative_per_group=2,
        class_sep=2.0,
        random_state=0,
    )
    clf = LogisticAGL(alpha=0.01, groups=groups, max_iter=500).fit(X, y)

    assert clf.score(X, y) > 0.8  # nosec
    assert_array_almost_equal(clf.classes_, [0, 1])

    proba = clf.predict_proba(X)
    assert proba.shape == (200, 2)  # nosec
    assert_array_almost_equal(proba.sum(axis=1), np.ones(200))
    assert_array_almost_equal(np.exp(clf.predict_log_proba(X)), proba)
    assert_array_almost_equal(
        clf.predict(X), clf.classes_[(clf.decision_function(X) > 0).astype(int)]
    )


def test_logistic_string_labels():
    X, y, groups = make_group_classification(
        n_samples=100,
        n_groups=3,
        n_features_per_group=2,
        n_informative_groups=1,
        n_informative_per_group=2,
        class_sep=2.0,
        random_state=1,
    )
    labels = np.array(["no", "yes"])[y]
    clf = LogisticAGL(alpha=0.01, groups=groups).fit(X, labels)
    assert set(clf.predict(X)) <= {"no", "yes"}  # nosec
    assert_array_almost_equal(clf.classes_ == "yes", [False, True])


def test_logistic_rejects_multiclass():
    X = np.random.default_rng(0).standard_normal((6, 2))
    y = [0, 1, 2, 0, 1, 2]
    with pytest.raises(ValueError):
        LogisticAGL().fit(X, y)


@pytest.mark.parametrize("fit_intercept", [True, False])
def test_agl_path(fit_intercept):
    X, y, groups = small_regression()
    alphas = [1e4, 10.0, 1.0, 0.1]
    path_params = dict(inner_iter=1000, outer_iter=1000, thresh=1e-10, outer_thresh=1e-10)

    coefs, alphas_out, n_iters = agl_path(
        X,
        y,
        alphas,
        groups=groups,
        fit_intercept=fit_intercept,
        return_n_iter=True,
        **path_params,
    )
    n_coefs = X.shape[1] + int(fit_intercept)
    assert coefs.shape == (n_coefs, 4)  # nosec
    assert_array_almost_equal(alphas_out, alphas)
    assert n_iters.shape == (4,)  # nosec

    # The largest alpha zeroes out every penalized coefficient
    assert np.all(coefs[: X.shape[1], 0] == 0)  # nosec

    model = AGL(alpha=0.1, groups=groups, fit_intercept=fit_intercept, **TIGHT)
    model.fit(X, y)
    assert_array_almost_equal(coefs[: X.shape[1], -1], model.coef_, decimal=4)
    if fit_intercept:
        assert_array_almost_equal(coefs[-1, -1], model.intercept_, decimal=4)

    coefs_only = agl_path(X, y, alphas, groups=groups, fit_intercept=fit_intercept)
    assert len(coefs_only) == 2  # nosec


def test_agl_path_binomial():
    X, y, groups = make_group_classification(
        n_samples=100,
        n_groups=4,
        n_features_per_group=3,
        n_informative_groups=1,
        n_informative_per_group=3,
        class_sep=2.0,
        random_state=0,
    )
    coefs, _ = agl_path(X, y, [10.0, 0.01], groups=groups, family="binomial")
    assert np.all(coefs[:-1, 0] == 0)  # nosec
    assert np.any(coefs[:3, 1] != 0)  # nosec

    with pytest.raises(InvalidInputError):
        agl_path(X, y, [0.1], groups=groups, family="poisson")


def test_agl_path_without_input_checks():
    X, y, _ = small_regression()
    X = np.asfortranarray(X, dtype=np.float64)

    coefs, alphas = agl_path(X, y, [1e4, 1.0], check_input=False)
    assert coefs.shape == (X.shape[1] + 1, 2)  # nosec
    assert np.all(coefs[:-1, 0] == 0)  # nosec

    checked, _ = agl_path(X, y, [1e4, 1.0])
    assert_array_almost_equal(coefs, checked)
