"""Create base classes based on the adaptive group lasso."""
import contextlib
import numpy as np
import warnings

from sklearn.base import BaseEstimator, TransformerMixin, is_classifier
from sklearn.utils.multiclass import check_classification_targets
from sklearn.utils.validation import (
    check_X_y,
    check_array,
    check_is_fitted,
)

from ._family import get_family
from ._solver import solve
from .exceptions import ConvergenceWarning
from .utils import (
    check_adaptive_weights,
    check_groups,
    check_sample_weight,
    groups_to_blocks,
)

_LOSS_FAMILIES = {"squared_loss": "gaussian", "log": "binomial"}


class AGLBaseEstimator(TransformerMixin, BaseEstimator):
    """
    An sklearn compatible adaptive group lasso estimator.

    This solves the adaptive group lasso problem for a feature matrix
    partitioned into contiguous groups using accelerated block proximal
    gradient descent with backtracking line search and active set
    screening.

    Parameters
    ----------
    alpha : float, default=0.0
        Hyper-parameter : overall regularization strength.

    groups : list of numpy.ndarray
        list of arrays of contiguous, non-overlapping indices for each group.
        For example, if nine features are grouped into equal contiguous
        groups of three, then groups would be ``[array([0, 1, 2]), array([3,
        4, 5]), array([6, 7, 8])]``. If None, all features will belong to one
        group. We set groups in ``__init__`` so that it can be reused in model
        selection routines.

    adaptive_weights : array-like of shape (n_groups,), default=None
        Non-negative multiplier of each group's penalty, typically derived
        from a previous fit. If None, every group has weight one.

    fit_intercept : bool, default=True
        Specifies if a constant (a.k.a. bias or intercept) should be
        added to the linear predictor (X @ coef + intercept). The intercept
        is not penalized.

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
        This is useful for hyperparameter tuning when some combinations
        of hyperparameters may not converge.

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

    def __init__(
        self,
        alpha=0.0,
        groups=None,
        adaptive_weights=None,
        fit_intercept=True,
        max_iter=100,
        max_outer_iter=100,
        tol=1e-4,
        outer_tol=1e-4,
        gamma=0.8,
        momentum=1.0,
        reset=10,
        warm_start=False,
        verbose=0,
        suppress_solver_warnings=True,
    ):
        self.alpha = alpha
        self.groups = groups
        self.adaptive_weights = adaptive_weights
        self.fit_intercept = fit_intercept
        self.max_iter = max_iter
        self.max_outer_iter = max_outer_iter
        self.tol = tol
        self.outer_tol = outer_tol
        self.gamma = gamma
        self.momentum = momentum
        self.reset = reset
        self.warm_start = warm_start
        self.verbose = verbose
        self.suppress_solver_warnings = suppress_solver_warnings

    def fit(self, X, y, sample_weight=None, loss="squared_loss"):
        """Fit a generalized linear model using the adaptive group lasso.

        Parameters
        ----------
        X : array-like, shape (n_samples, n_features)
            The training input samples.

        y : array-like, shape (n_samples,)
            The target values (class labels in classification, real numbers in
            regression).

        sample_weight : array-like, shape (n_samples,), default=None
            Non-negative observation weights. If None, all observations
            have weight one.

        loss : ["squared_loss", "log"]
            The type of loss function to use in the solver.

        Returns
        -------
        self : object
            Returns self.
        """
        if not isinstance(self.warm_start, bool):
            raise ValueError(
                "The argument warm_start must be bool;"
                " got {0}".format(self.warm_start)
            )

        if loss not in _LOSS_FAMILIES:
            raise ValueError(
                "The argument loss must be one of {0}; got {1}".format(
                    sorted(_LOSS_FAMILIES), loss
                )
            )

        if not self.alpha >= 0:
            raise ValueError(
                "The parameter alpha must be non-negative; got {0}".format(self.alpha)
            )

        if y is None:
            raise ValueError("requires y to be passed, but the target y is None")

        X, y = check_X_y(
            X,
            y,
            accept_sparse=False,
            dtype=np.float64,
            y_numeric=not is_classifier(self),
            multi_output=False,
        )

        _, self.n_features_in_ = X.shape

        if is_classifier(self):
            check_classification_targets(y)
            self.classes_ = np.unique(y)
            if self.classes_.size > 2:
                raise ValueError(
                    "Only binary classification is supported; got {0} "
                    "classes.".format(self.classes_.size)
                )
            y = np.logical_not(y == self.classes_[0]).astype(np.float64)

        n_samples, n_features = X.shape
        sample_weight = check_sample_weight(sample_weight, n_samples)

        groups = check_groups(self.groups, X, fit_intercept=False)
        group_start, group_len = groups_to_blocks(groups)
        adaptive_weights = check_adaptive_weights(self.adaptive_weights, len(groups))

        if self.fit_intercept:
            # The intercept is its own group with no penalty
            X = np.hstack([X, np.ones((n_samples, 1))])
            group_start = np.append(group_start, n_features)
            group_len = np.append(group_len, 1)
            adaptive_weights = np.append(adaptive_weights, 0.0)

        if self.warm_start and hasattr(self, "coef_"):
            # pylint: disable=access-member-before-definition
            if self.fit_intercept:
                coef = np.concatenate((self.coef_, np.array([self.intercept_])))
            else:
                coef = self.coef_
        else:
            coef = np.zeros(X.shape[1])

        link, loss_fn = get_family(_LOSS_FAMILIES[loss])

        if self.suppress_solver_warnings:
            ctx_mgr = warnings.catch_warnings()
        else:
            ctx_mgr = contextlib.suppress()

        with ctx_mgr:
            # For some metaparameters, the solver might not reach the desired
            # tolerance level. This might be okay during hyperparameter
            # optimization. So ignore the warning if the user specifies
            # suppress_solver_warnings=True
            if self.suppress_solver_warnings:
                warnings.filterwarnings("ignore", category=ConvergenceWarning)

            coefs, n_iters, converged = solve(
                X,
                y,
                sample_weight,
                adaptive_weights,
                link,
                loss_fn,
                group_start,
                group_len,
                [self.alpha],
                inner_iter=self.max_iter,
                outer_iter=self.max_outer_iter,
                thresh=self.tol,
                outer_thresh=self.outer_tol,
                gamma=self.gamma,
                momentum=self.momentum,
                reset=self.reset,
                beta_init=coef,
                verbose=self.verbose,
                return_n_iter=True,
            )

        if self.fit_intercept:
            self.intercept_ = coefs[0, -1]
            self.coef_ = coefs[0, :-1]
        else:
            # set intercept to zero as the other linear models do
            self.intercept_ = 0.0
            self.coef_ = coefs[0]

        self.n_iter_ = int(n_iters[0])
        self.converged_ = bool(converged[0])

        self.is_fitted_ = True
        return self

    def _linear_predictor(self, X):
        check_is_fitted(self, "is_fitted_")
        X = check_array(X, dtype=np.float64)

        if X.shape[1] != self.coef_.size:
            raise ValueError(
                "X has %d features per sample; expecting %d"
                % (X.shape[1], self.coef_.size)
            )

        return X @ self.coef_ + self.intercept_

    @property
    def chosen_features_(self):
        """Return an index array of chosen features."""
        return np.nonzero(self.coef_)[0]

    @property
    def sparsity_mask_(self):
        """Return boolean array indicating which features survived regularization."""
        return self.coef_ != 0

    def like_nonzero_mask_(self, rtol=1e-8):
        """Return boolean array indicating which features are zero or close to zero.

        Parameters
        ----------
        rtol : float
            Relative tolerance. Any features that are larger in magnitude
            than ``rtol`` times the mean coefficient value are considered
            nonzero-like.
        """
        mean_abs_coef = abs(self.coef_.mean())
        return np.abs(self.coef_) > rtol * mean_abs_coef

    @property
    def chosen_groups_(self):
        """Return set of the group IDs that survived regularization."""
        if self.groups is not None:
            group_mask = [
                bool(set(grp).intersection(set(self.chosen_features_)))
                for grp in self.groups
            ]
            return np.nonzero(group_mask)[0]
        else:
            return self.chosen_features_

    def transform(self, X):
        """Remove columns corresponding to zeroed-out coefficients."""
        # Check is fit had been called
        check_is_fitted(self, "is_fitted_")

        # Input validation
        X = check_array(X, accept_sparse=True)

        # Check that the input is of the same shape as the one passed
        # during fit.
        if X.shape[1] != self.coef_.size:
            raise ValueError("Shape of input is different from what was seen in `fit`")

        return X[:, self.sparsity_mask_]
