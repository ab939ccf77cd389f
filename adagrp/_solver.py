r"""Accelerated block proximal gradient solver for the adaptive group lasso.

The solver minimizes

.. math::
    L(\mu(X \beta); y, w) + \lambda \sum_g a_g \sqrt{p_g} ||\beta_g||_2

for each value of :math:`\lambda` along a user supplied path. Each path
step is warm-started from the previous solution. Within a step, groups are
screened with a KKT norm test and the survivors are updated one block at a
time with backtracking proximal gradient steps and restarted momentum.
"""
import logging
import numbers
import warnings

import numpy as np

from sklearn.utils import check_array, check_scalar
from tqdm.auto import tqdm

from ._family import _apply_link, _apply_loss, check_link, check_loss, working_residual
from ._prox import GroupL2, group_soft_threshold
from .exceptions import ConvergenceWarning, InvalidInputError
from .utils import check_adaptive_weights, check_sample_weight

__all__ = ["GroupSolver", "apply_group_delta", "solve"]
logger = logging.getLogger(__name__)


def apply_group_delta(eta, X_group, old_coef, new_coef):
    """Update the linear predictor in place after a group changes.

    This is the only operation that modifies ``eta`` inside the solver, so
    that ``eta == X @ beta`` holds between group updates.

    Parameters
    ----------
    eta : np.ndarray, shape (n_samples,)
        Linear predictor, modified in place.

    X_group : np.ndarray, shape (n_samples, group_len)
        Columns of the design matrix belonging to the group.

    old_coef, new_coef : np.ndarray, shape (group_len,)
        Group coefficients before and after the update. ``old_coef`` must be
        the coefficients that produced the current ``eta``.

    Returns
    -------
    eta : np.ndarray
    """
    delta = np.asarray(new_coef, dtype=float) - np.asarray(old_coef, dtype=float)
    if np.any(delta):
        eta += X_group @ delta
    return eta


def _proximal_step(beta_g, grad, t, threshold):
    """Take one proximal gradient step on a single group.

    Returns the proximal point ``u`` and the gradient mapping
    ``G = (beta_g - u) / t``.
    """
    u = group_soft_threshold(beta_g - t * grad, t * threshold)
    return u, (beta_g - u) / t


def _momentum_weight(count, reset, integer=False):
    """Return the extrapolation weight for inner iteration ``count``.

    The weight grows from zero toward one and restarts every ``reset``
    iterations. With ``integer=True`` the ratio is truncated, which always
    yields zero and disables extrapolation.
    """
    phase = count % reset
    if integer:
        return phase // (phase + 3)
    return phase / (phase + 3.0)


class _StepState(object):
    """Mutable state of one penalty path step.

    ``beta`` is a view of the step's row in the coefficient matrix, so
    updates made through it land in the returned path.
    """

    def __init__(self, X, beta, group_slices):
        self.beta = beta
        self.eta = X @ beta
        self.beta_is_zero = np.array([not np.any(beta[sl]) for sl in group_slices])
        self.is_active = np.zeros(len(group_slices), dtype=bool)
        self.group_change = False
        self.n_line_search_failures = 0


class GroupSolver(object):
    """Solve one penalty value by cycling through groups.

    Parameters
    ----------
    X : np.ndarray, shape (n_samples, n_features)
        Design matrix.

    y, w : np.ndarray, shape (n_samples,)
        Response and observation weights.

    adaptive_weights : np.ndarray, shape (n_groups,)
        Per-group penalty multipliers.

    link : Link
        Link plugin.

    loss : Loss
        Loss plugin.

    group_start, group_len : np.ndarray of int, shape (n_groups,)
        Column blocks of each group.

    inner_iter : int
        Maximum number of proximal gradient iterations per group visit.

    thresh : float
        Inner stopping tolerance on the L1 change of a group's coefficients.

    gamma : float
        Backtracking shrink factor in (0, 1).

    momentum : float
        Initial trial step size of the line search.

    reset : int
        Restart period of the momentum extrapolation.

    integer_momentum : bool
        If True, truncate the momentum weight to an integer.

    max_backtrack : int
        Maximum number of line search trials per iteration.
    """

    def __init__(
        self,
        X,
        y,
        w,
        adaptive_weights,
        link,
        loss,
        group_start,
        group_len,
        inner_iter=100,
        thresh=1e-4,
        gamma=0.8,
        momentum=1.0,
        reset=10,
        integer_momentum=False,
        max_backtrack=100,
    ):
        self.X = X
        self.y = y
        self.w = w
        self.adaptive_weights = adaptive_weights
        self.link = link
        self.loss = loss
        self.group_len = np.asarray(group_len, dtype=int)
        self.penalty = GroupL2(group_start, group_len, adaptive_weights, alpha=1.0)
        self._unit_thresholds = self.penalty.thresholds()
        self.group_slices = [
            slice(start, start + length) for start, length in zip(group_start, group_len)
        ]
        self.X_groups = [X[:, sl] for sl in self.group_slices]
        self.inner_iter = inner_iter
        self.thresh = thresh
        self.gamma = gamma
        self.momentum = momentum
        self.reset = reset
        self.integer_momentum = integer_momentum
        self.max_backtrack = max_backtrack

    def _group_gradient(self, X_group, eta, expect=None):
        ldot = working_residual(self.link, self.loss, eta, self.y, self.w, expect=expect)
        return X_group.T @ ldot

    def _loss_at(self, eta):
        return _apply_loss(self.loss, _apply_link(self.link, eta), self.y, self.w)

    def objective(self, state, lam):
        """Return the penalized objective at the current step state."""
        return self._loss_at(state.eta) + lam * self.penalty(state.beta)

    def _backtrack(self, X_group, eta, beta_g, grad, loss_old, t, threshold):
        """Shrink ``t`` until the quadratic majorization test passes.

        Returns the accepted proximal point and step size. If no trial
        passes within ``max_backtrack`` attempts, the returned point is
        None.
        """
        for _ in range(self.max_backtrack):
            u, G = _proximal_step(beta_g, grad, t, threshold)
            loss_new = self._loss_at(eta - t * (X_group @ G))
            diff = loss_old - loss_new - t * (grad @ G) + 0.5 * t * (G @ G)
            if diff >= 0:
                return u, t
            t *= self.gamma

        logger.debug(
            "Line search exhausted %d trials (step size %.3e); keeping the "
            "current coefficients",
            self.max_backtrack,
            t,
        )
        return None, t / self.gamma

    def _update_group(self, state, i, lam):
        """Screen group ``i`` and, if it survives, run the inner loop.

        Returns the number of inner iterations performed.
        """
        X_group = self.X_groups[i]
        beta_g = state.beta[self.group_slices[i]]
        threshold = lam * self._unit_thresholds[i]

        # Gradient at the predictor with this group's contribution removed
        eta_null = state.eta - X_group @ beta_g
        grad = self._group_gradient(X_group, eta_null)

        if grad @ grad <= threshold ** 2:
            if not state.beta_is_zero[i]:
                apply_group_delta(state.eta, X_group, beta_g, np.zeros_like(beta_g))
            state.beta_is_zero[i] = True
            beta_g[:] = 0.0
            return 0

        if not state.is_active[i]:
            state.group_change = True
        state.is_active[i] = True
        state.beta_is_zero[i] = False

        theta = beta_g.copy()
        t = self.momentum
        count = 0
        check = np.inf
        while count < self.inner_iter and check > self.thresh:
            count += 1

            expect = _apply_link(self.link, state.eta)
            grad = self._group_gradient(X_group, state.eta, expect=expect)
            loss_old = _apply_loss(self.loss, expect, self.y, self.w)

            u, t = self._backtrack(
                X_group, state.eta, beta_g, grad, loss_old, t, threshold
            )
            if u is None:
                state.n_line_search_failures += 1
                break

            check = np.sum(np.abs(theta - u))
            weight = _momentum_weight(count, self.reset, self.integer_momentum)
            new_beta = u + weight * (u - theta)

            apply_group_delta(state.eta, X_group, beta_g, new_beta)
            beta_g[:] = new_beta
            theta = u

        return count

    def sweep(self, state, lam, use_group):
        """Visit every group flagged in ``use_group`` once.

        Parameters
        ----------
        state : _StepState
            State of the current path step, modified in place.

        lam : float
            Penalty value.

        use_group : np.ndarray of bool, shape (n_groups,)
            Groups eligible for this sweep.

        Returns
        -------
        n_iter : int
            Total number of inner iterations.
        """
        n_iter = 0
        for i in np.flatnonzero(use_group):
            n_iter += self._update_group(state, i, lam)
        return n_iter


def _check_scalar(x, name, target_type, **kwargs):
    try:
        return check_scalar(x, name, target_type, **kwargs)
    except TypeError:
        raise
    except ValueError as e:
        raise InvalidInputError(str(e)) from e


def _check_solver_params(
    inner_iter, outer_iter, thresh, outer_thresh, gamma, momentum, reset, max_backtrack
):
    """Validate the solver configuration, raising InvalidInputError."""
    _check_scalar(inner_iter, "inner_iter", numbers.Integral, min_val=1)
    _check_scalar(outer_iter, "outer_iter", numbers.Integral, min_val=1)
    _check_scalar(thresh, "thresh", numbers.Real, min_val=0.0)
    _check_scalar(outer_thresh, "outer_thresh", numbers.Real, min_val=0.0)
    _check_scalar(
        gamma,
        "gamma",
        numbers.Real,
        min_val=0.0,
        max_val=1.0,
        include_boundaries="neither",
    )
    _check_scalar(
        momentum, "momentum", numbers.Real, min_val=0.0, include_boundaries="neither"
    )
    _check_scalar(reset, "reset", numbers.Integral, min_val=1)
    _check_scalar(max_backtrack, "max_backtrack", numbers.Integral, min_val=1)


def _check_solve_inputs(X, y, w, adaptive_weights, group_start, group_len, lambdas, beta_init):
    """Validate and convert the data passed to :func:`solve`."""
    try:
        X = check_array(X, dtype=np.float64, order="F")
        y = check_array(y, dtype=np.float64, ensure_2d=False)
    except ValueError as e:
        raise InvalidInputError(str(e)) from e

    n_samples, n_features = X.shape
    if y.ndim != 1 or y.size != n_samples:
        raise InvalidInputError(
            "y must have shape ({0},); got {1}".format(n_samples, y.shape)
        )

    w = check_sample_weight(w, n_samples)

    group_start = np.asarray(group_start).ravel()
    group_len = np.asarray(group_len).ravel()
    if group_start.size != group_len.size:
        raise InvalidInputError(
            "group_start and group_len must have the same length; got {0} and "
            "{1}".format(group_start.size, group_len.size)
        )
    if group_start.size == 0:
        raise InvalidInputError("At least one group is required.")
    if not (
        np.issubdtype(group_start.dtype, np.integer)
        and np.issubdtype(group_len.dtype, np.integer)
    ):
        raise InvalidInputError("group_start and group_len must be integer arrays.")
    if np.any(group_start < 0) or np.any(group_len < 1):
        raise InvalidInputError(
            "Groups must start at a non-negative column and contain at least "
            "one column."
        )
    if np.any(group_start + group_len > n_features):
        raise InvalidInputError(
            "Groups refer to columns beyond the {0} columns of X.".format(n_features)
        )
    order = np.argsort(group_start, kind="stable")
    ends = group_start[order] + group_len[order]
    if np.any(group_start[order][1:] < ends[:-1]):
        raise InvalidInputError("Overlapping groups detected.")

    adaptive_weights = check_adaptive_weights(adaptive_weights, group_start.size)

    lambdas = np.atleast_1d(np.asarray(lambdas, dtype=np.float64)).ravel()
    if lambdas.size == 0:
        raise InvalidInputError("The penalty path must contain at least one value.")
    if not np.all(np.isfinite(lambdas)) or np.any(lambdas < 0):
        raise InvalidInputError("Penalty values must be finite and non-negative.")

    if beta_init is None:
        beta_init = np.zeros(n_features)
    else:
        beta_init = np.asarray(beta_init, dtype=np.float64)
        if beta_init.shape != (n_features,) or not np.all(np.isfinite(beta_init)):
            raise InvalidInputError(
                "beta_init must be a finite array of shape ({0},)".format(n_features)
            )

    return (
        X,
        y,
        w,
        adaptive_weights,
        group_start.astype(int),
        group_len.astype(int),
        lambdas,
        beta_init,
    )


def solve(
    X,
    y,
    w,
    adaptive_weights,
    link,
    loss,
    group_start,
    group_len,
    lambdas,
    inner_iter=100,
    outer_iter=100,
    thresh=1e-4,
    outer_thresh=1e-4,
    gamma=0.8,
    momentum=1.0,
    reset=10,
    integer_momentum=False,
    max_backtrack=100,
    beta_init=None,
    verbose=False,
    return_n_iter=False,
    check_input=True,
):
    """Compute the adaptive group lasso path.

    Each penalty value is warm-started from the solution at the previous
    one. For every path step the solver alternates a full scan over all
    groups with refinement sweeps restricted to the active set, until a
    full scan no longer activates any new group.

    Parameters
    ----------
    X : array-like of shape (n_samples, n_features)
        Design matrix.

    y : array-like of shape (n_samples,)
        Response.

    w : array-like of shape (n_samples,) or None
        Non-negative observation weights with a positive sum. None means
        unit weights.

    adaptive_weights : array-like of shape (n_groups,) or None
        Non-negative per-group penalty multipliers. None means unit weights.

    link : Link or str
        Link plugin, or one of ``"identity"``, ``"logit"``.

    loss : Loss or str
        Loss plugin, or one of ``"gaussian"``, ``"binomial"``.

    group_start, group_len : array-like of int, shape (n_groups,)
        First column and number of columns of each group. Groups must be
        disjoint but need not cover every column. Columns outside all
        groups keep their ``beta_init`` value.

    lambdas : array-like of shape (n_lambdas,)
        Non-negative penalty values, usually in decreasing order.

    inner_iter : int, default=100
        Maximum number of proximal gradient iterations per group visit.

    outer_iter : int, default=100
        Maximum number of refinement sweeps over the active set per pass.

    thresh : float, default=1e-4
        Inner tolerance on the L1 change of a group's coefficients.

    outer_thresh : float, default=1e-4
        Outer tolerance on the L1 change of all coefficients between
        refinement sweeps.

    gamma : float, default=0.8
        Line search shrink factor in (0, 1). Smaller values shrink the step
        size faster.

    momentum : float, default=1.0
        Initial trial step size of the line search for each group.

    reset : int, default=10
        Restart period of the momentum extrapolation.

    integer_momentum : bool, default=False
        If True, compute the momentum weight with integer division, which
        turns extrapolation off.

    max_backtrack : int, default=100
        Maximum number of line search trials per iteration.

    beta_init : array-like of shape (n_features,), default=None
        Starting coefficients for the first path step. Defaults to zeros.

    verbose : bool or int, default=False
        Amount of verbosity. ``verbose=1`` shows a progress bar.

    return_n_iter : bool, default=False
        Whether to return the refinement counts and convergence flags.

    check_input : bool, default=True
        Skip input validation checks, assuming there are handled by the
        caller when check_input=False.

    Returns
    -------
    coefs : np.ndarray of shape (n_lambdas, n_features)
        Row ``k`` holds the solution at ``lambdas[k]``.

    n_iters : np.ndarray of shape (n_lambdas,)
        Number of refinement sweeps used at each step. Returned only if
        ``return_n_iter`` is True.

    converged : np.ndarray of bool, shape (n_lambdas,)
        False for steps that reached ``outer_iter`` before ``outer_thresh``
        or where the line search exhausted ``max_backtrack`` trials.
        Returned only if ``return_n_iter`` is True.
    """
    _check_solver_params(
        inner_iter, outer_iter, thresh, outer_thresh, gamma, momentum, reset, max_backtrack
    )
    link = check_link(link)
    loss = check_loss(loss)

    if check_input:
        (
            X,
            y,
            w,
            adaptive_weights,
            group_start,
            group_len,
            lambdas,
            beta_init,
        ) = _check_solve_inputs(
            X, y, w, adaptive_weights, group_start, group_len, lambdas, beta_init
        )

    if np.any(np.diff(lambdas) > 0):
        logger.info(
            "The penalty path is not in decreasing order; warm starts may be "
            "less effective."
        )

    _, n_features = X.shape
    n_lambdas = lambdas.size
    n_groups = len(group_start)
    if beta_init is None:
        beta_init = np.zeros(n_features)

    coefs = np.zeros((n_lambdas, n_features), dtype=np.float64)
    n_iters = np.zeros(n_lambdas, dtype=int)
    converged = np.ones(n_lambdas, dtype=bool)

    solver = GroupSolver(
        X,
        y,
        w,
        adaptive_weights,
        link,
        loss,
        group_start,
        group_len,
        inner_iter=inner_iter,
        thresh=thresh,
        gamma=gamma,
        momentum=momentum,
        reset=reset,
        integer_momentum=integer_momentum,
        max_backtrack=max_backtrack,
    )
    all_groups = np.ones(n_groups, dtype=bool)

    if verbose and verbose == 1:
        step_sequence = tqdm(range(n_lambdas), desc="Reg path", total=n_lambdas)
    else:
        step_sequence = range(n_lambdas)

    for step in step_sequence:
        lam = lambdas[step]
        coefs[step] = beta_init if step == 0 else coefs[step - 1]
        state = _StepState(X, coefs[step], solver.group_slices)

        n_scans = 0
        n_refine = 0
        outer_check = np.inf
        state.group_change = True
        while state.group_change:
            state.group_change = False
            n_scans += 1
            solver.sweep(state, lam, all_groups)

            outer_count = 0
            outer_check = np.inf
            while outer_count < outer_iter and outer_check > outer_thresh:
                outer_count += 1
                old_beta = state.beta.copy()
                solver.sweep(state, lam, state.is_active.copy())
                outer_check = np.sum(np.abs(old_beta - state.beta))
            n_refine += outer_count

        n_iters[step] = n_refine
        if outer_check > outer_thresh:
            converged[step] = False
            warnings.warn(
                "Refinement did not converge for lambda={0:.4g} after {1} "
                "iterations (change {2:.3e} > {3:.3e}). Consider increasing "
                "outer_iter.".format(lam, outer_iter, outer_check, outer_thresh),
                ConvergenceWarning,
            )
        if state.n_line_search_failures:
            converged[step] = False
            warnings.warn(
                "Line search failed {0} times for lambda={1:.4g}; the affected "
                "groups were left at their current coefficients. Consider "
                "decreasing momentum or increasing max_backtrack.".format(
                    state.n_line_search_failures, lam
                ),
                ConvergenceWarning,
            )

        logger.debug(
            "Path step %d: lambda=%.4g, objective=%.6g, %d full scans, %d refinement "
            "sweeps, %d non-zero groups",
            step,
            lam,
            solver.objective(state, lam),
            n_scans,
            n_refine,
            sum(bool(np.any(state.beta[sl])) for sl in solver.group_slices),
        )

        if verbose and verbose > 1:
            print("Path: %03i out of %03i" % (step, n_lambdas))

    if return_n_iter:
        return coefs, n_iters, converged
    return coefs
