"""Create logistic estimators based on the adaptive group lasso."""
import numpy as np

from scipy import special
from sklearn.base import ClassifierMixin

from ._base import AGLBaseEstimator

__all__ = ["LogisticAGL"]


class LogisticAGL(ClassifierMixin, AGLBaseEstimator):
    """
    An sklearn compatible adaptive group lasso classifier.

    This solves the adaptive group lasso problem with the logistic loss for
    a feature matrix partitioned into contiguous groups using accelerated
    block proximal gradient descent. Only binary targets are supported.

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
    classes_ : ndarray of shape (n_classes, )
        A list of class labels known to the classifier.

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
        """Fit a logistic model using the adaptive group lasso.

        Parameters
        ----------
        X : array-like, shape (n_samples, n_features)
            The training input samples.

        y : array-like, shape (n_samples,)
            The class labels. At most two distinct labels are allowed.

        sample_weight : array-like, shape (n_samples,), default=None
            Non-negative observation weights.

        Returns
        -------
        self : object
            Returns self.
        """
        return super().fit(X=X, y=y, sample_weight=sample_weight, loss="log")

    def decision_function(self, X):
        """Predict confidence scores for samples.

        The confidence score for a sample is the signed distance of that
        sample to the hyperplane.

        Parameters
        ----------
        X : array-like, shape (n_samples, n_features)
            Samples.

        Returns
        -------
        array, shape=(n_samples,)
            Confidence scores for ``self.classes_[1]``, where >0 means this
            class would be predicted.
        """
        return self._linear_predictor(X)

    def predict(self, X):
        """Predict class labels for samples in X.

        Parameters
        ----------
        X : array_like, shape (n_samples, n_features)
            Samples.

        Returns
        -------
        C : array, shape [n_samples]
            Predicted class label per sample.
        """
        scores = self.decision_function(X)
        indices = (scores > 0).astype(np.int32)
        return self.classes_[indices]

    def predict_proba(self, X):
        """Return classification probability estimates.

        The returned estimates for all classes are ordered by the label of
        classes.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Vector to be scored, where `n_samples` is the number of samples and
            `n_features` is the number of features.

        Returns
        -------
        T : array-like of shape (n_samples, 2)
            Returns the probability of the sample for each class in the model,
            where classes are ordered as they are in ``self.classes_``.
        """
        prob = special.expit(self.decision_function(X))
        return np.vstack([1.0 - prob, prob]).T

    def predict_log_proba(self, X):
        """Predict logarithm of probability estimates.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Vector to be scored, where `n_samples` is the number of samples and
            `n_features` is the number of features.

        Returns
        -------
        T : array-like of shape (n_samples, 2)
            Returns the log-probability of the sample for each class in the
            model, where classes are ordered as they are in ``self.classes_``.
        """
        return np.log(self.predict_proba(X))
