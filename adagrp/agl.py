"""Create regression estimators based on the adaptive group lasso."""
import contextlib
import logging
import numpy as np
import warnings

from sklearn.base import RegressorMixin
from sklearn.utils.validation import check_array

from ._base import AGLBaseEstimator
from ._family import get_family
from ._solver import solve
from .exceptions import ConvergenceWarning
from .utils import (
    check_adaptive_weights,
    check_groups,
    check_sample_weight,
    groups_to_blocks,
)

__all__ = ["AGL", "agl_path"]
logger = logging.getLogger(__name__)


class AGL(RegressorMixin, AGLBaseEstimator):
    """An sklearn compatible adaptive group lasso regressor.

    This solves the adaptive group lasso problem with squared error loss
    for a feature matrix partitioned into contiguous groups using
    accelerated block proximal gradient descent.

    Parameters
    ----------
    alpha : float, default=0.0
        Hyper-parameter : overall regularization strength.

    groups : list of numpy.ndarray
        list of arrays of contiguous, non-overlapping indices for each group.
        For example, if nine features are grouped into equal contiguous
        groups of three, then groups would be ``[array([0, 1, 2]), array([3,
        4, 5]), array([6, 7, 8])]``. If None, all features will belong to one
        group.

    adaptive_weights : array-like of shape (n_groups,), default=None
        Non-negative multiplier of each group's penalty. If None, every
        group has weight one.

    fit_intercept : bool, default=True
        Specifies if a constant (a.k.a. bias or intercept) should be
        added to the linear predictor (X @ coef + intercept).

    max_iter : int, default=100
        Maximum number of proximal gradient iterations per group visit.

    max_outer_iter : int, default=100
        Maximum number of refinement sweeps over the active set.

    tol : float, default=1e-4
        Inner stopping criterion on the L1 change of a group's coefficients.

    outer_tol : float, default=1e-4
        Outer stopping criterion on the L1 change of all coefficients.

    gamma : float, default=0.8
        Shrink factor of the backtracking line search.

    momentum : float, default=1.0
        Initial trial step size of the line search.

    reset : int, default=10
        Restart period of the momentum extrapolation.

    warm_start : bool, default=False
        If set to ``True``, reuse the solution of the previous call to ``fit``
        as initialization for ``coef_`` and ``intercept_``.

    verbose : int, default=0
        Verbosity flag for the solver.

    suppress_solver_warnings : bool, default=True
        If True, suppress convergence warnings from the solver.

    Attributes
    ----------
    coef_ : array of shape (n_features,)
        Estimated coefficients for the linear predictor (`X @ coef_ +
        intercept_`).

    intercept_ : float
        Intercept (a.k.a. bias) added to linear predictor.

    n_iter_ : int
        Number of refinement sweeps used by the solver.

    converged_ : bool
        Whether the solver met ``outer_tol`` before ``max_outer_iter``.
    """

    def fit(self, X, y, sample_weight=None):  # pylint: disable=arguments-differ
        """Fit a linear model using the adaptive group lasso.

        Parameters
        ----------
        X : array-like, shape (n_samples, n_features)
            The training input samples.

        y : array-like, shape (n_samples,)
            The target values.

        sample_weight : array-like, shape (n_samples,), default=None
            Non-negative observation weights.

        Returns
        -------
        self : object
            Returns self.
        """
        return super().fit(X=X, y=y, sample_weight=sample_weight, loss="squared_loss")

    def predict(self, X):
        """Predict targets for test vectors in ``X``.

        Parameters
        ----------
        X : array-like, shape (n_samples, n_features)
            The input samples.

        Returns
        -------
        y : ndarray, shape (n_samples,)
            Predicted values.
        """
        return self._linear_predictor(X)


def agl_path(
    X,
    y,
    alphas,
    groups=None,
    adaptive_weights=None,
    sample_weight=None,
    family="gaussian",
    fit_intercept=True,
    verbose=False,
    return_n_iter=False,
    check_input=True,
    **params,
):
    """
    Compute the adaptive group lasso path.

    We use the previous solution as the initial guess for subsequent alpha
    values. The path is solved in the order given, so ``alphas`` should
    normally be decreasing.

    Parameters
    ----------
    X : array-like of shape (n_samples, n_features)
        Training data.

    y : array-like of shape (n_samples,)
        Target values. For ``family="binomial"`` these must be 0 or 1.

    alphas : array-like of shape (n_alphas,)
        Non-negative penalty values where the models are computed.

    groups : list of numpy.ndarray
        list of arrays of contiguous, non-overlapping indices for each group.
        If None, all features will belong to one group.

    adaptive_weights : array-like of shape (n_groups,), default=None
        Non-negative multiplier of each group's penalty. If None, every
        group has weight one.

    sample_weight : array-like of shape (n_samples,), default=None
        Non-negative observation weights.

    family : ["gaussian", "binomial"], default="gaussian"
        Link and loss pair. ``"gaussian"`` is least squares and
        ``"binomial"`` is logistic regression.

    fit_intercept : bool, default=True
        Whether to fit an unpenalized intercept.

    verbose : bool or int, default=False
        Amount of verbosity.

    return_n_iter : bool, default=False
        Whether to return the number of refinement sweeps per alpha.

    check_input : bool, default=True
        Skip input validation checks, assuming there are handled by the
        caller when check_input=False.

    **params : kwargs
        Keyword arguments passed to :func:`adagrp.solve`, e.g. ``inner_iter``,
        ``outer_iter``, ``thresh``, ``outer_thresh``, ``gamma``,
        ``momentum``, ``reset`` and ``suppress_solver_warnings``.

    Returns
    -------
    coefs : ndarray of shape (n_features, n_alphas) or (n_features + 1, n_alphas)
        Coefficients along the path. If fit_intercept is set to True then
        the first dimension will be n_features + 1, where the last item
        represents the intercept.

    alphas : ndarray of shape (n_alphas,)
        The alphas along the path where models are computed.

    n_iters : array of shape (n_alphas,)
        Number of refinement sweeps for each alpha. Returned only if
        ``return_n_iter`` is True.

    See Also
    --------
    AGL
    LogisticAGL
    """
    if check_input:
        X = check_array(X, accept_sparse=False, dtype=np.float64, order="F")
        y = check_array(y, accept_sparse=False, dtype=np.float64, ensure_2d=False)

    groups = check_groups(groups, X, fit_intercept=False)
    n_samples, n_features = X.shape
    alphas = np.atleast_1d(np.asarray(alphas, dtype=np.float64))
    sample_weight = check_sample_weight(sample_weight, n_samples)
    group_start, group_len = groups_to_blocks(groups)
    adaptive_weights = check_adaptive_weights(adaptive_weights, len(groups))

    if fit_intercept:
        X = np.hstack([X, np.ones((n_samples, 1))])
        group_start = np.append(group_start, n_features)
        group_len = np.append(group_len, 1)
        adaptive_weights = np.append(adaptive_weights, 0.0)

    suppress_solver_warnings = params.pop("suppress_solver_warnings", True)
    if suppress_solver_warnings:
        ctx_mgr = warnings.catch_warnings()
    else:
        ctx_mgr = contextlib.suppress()

    link, loss = get_family(family)
    with ctx_mgr:
        if suppress_solver_warnings:
            warnings.filterwarnings("ignore", category=ConvergenceWarning)

        coefs, n_iters, converged = solve(
            X,
            y,
            sample_weight,
            adaptive_weights,
            link,
            loss,
            group_start,
            group_len,
            alphas,
            verbose=verbose,
            return_n_iter=True,
            **params,
        )

    if not np.all(converged):
        logger.warning(
            "The solver did not converge for %d of %d alphas.",
            np.sum(~converged),
            alphas.size,
        )

    if return_n_iter:
        return coefs.T, alphas, n_iters
    return coefs.T, alphas
