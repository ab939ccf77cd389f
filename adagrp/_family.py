"""Link and loss plugins for the group lasso solver.

The solver only ever talks to a generalized linear model through two
objects: a :class:`Link`, which maps the linear predictor ``eta`` to the
fitted mean, and a :class:`Loss`, which scores a fitted mean against the
response. The working residual used to build per-column gradients is
derived from both by :func:`working_residual`.
"""
from abc import ABCMeta, abstractmethod

import numpy as np
from scipy import special

from .exceptions import InvalidInputError, PluginContractError

__all__ = [
    "Link",
    "IdentityLink",
    "LogitLink",
    "Loss",
    "GaussianLoss",
    "BinomialLoss",
    "working_residual",
    "check_link",
    "check_loss",
    "get_family",
]


class Link(metaclass=ABCMeta):
    """Abstract base class for link functions.

    Subclasses map a linear predictor to a fitted mean. The map must be
    deterministic and free of side effects other than writing into ``out``
    when it is supplied.
    """

    @abstractmethod
    def transform(self, eta, out=None):
        """Compute the fitted mean from the linear predictor.

        Parameters
        ----------
        eta : np.ndarray, shape (n_samples,)
            Linear predictor.

        out : np.ndarray, shape (n_samples,), optional
            If given, the result is written into this array.

        Returns
        -------
        np.ndarray, shape (n_samples,)
            The fitted mean (``out`` if it was given).
        """

    @abstractmethod
    def inverse_derivative(self, eta):
        """Compute d(expect)/d(eta) element-wise.

        Parameters
        ----------
        eta : np.ndarray, shape (n_samples,)
            Linear predictor.
        """

    def __call__(self, eta, out=None):
        return self.transform(eta, out=out)

    def __eq__(self, other):  # noqa D
        return isinstance(other, self.__class__)

    def __hash__(self):  # noqa D
        return hash(self.__class__)


class IdentityLink(Link):
    """The identity link, ``expect = eta``."""

    def transform(self, eta, out=None):  # noqa D
        if out is None:
            return np.array(eta, dtype=float, copy=True)
        out[:] = eta
        return out

    def inverse_derivative(self, eta):  # noqa D
        return np.ones_like(eta, dtype=float)


class LogitLink(Link):
    """The logit link; the fitted mean is ``expit(eta)``."""

    def transform(self, eta, out=None):  # noqa D
        return special.expit(eta, out=out)

    def inverse_derivative(self, eta):  # noqa D
        expect = special.expit(eta)
        return expect * (1.0 - expect)


class Loss(metaclass=ABCMeta):
    """Abstract base class for weighted negative log-likelihoods.

    Losses are normalized by the sum of the observation weights so that
    penalty strengths are comparable across sample sizes.
    """

    @abstractmethod
    def evaluate(self, expect, y, w):
        """Return the scalar loss.

        Parameters
        ----------
        expect : np.ndarray, shape (n_samples,)
            Fitted mean.

        y : np.ndarray, shape (n_samples,)
            Response.

        w : np.ndarray, shape (n_samples,)
            Non-negative observation weights.
        """

    @abstractmethod
    def derivative(self, expect, y, w):
        """Return d(loss)/d(expect) for each observation."""

    def __call__(self, expect, y, w):
        return self.evaluate(expect, y, w)

    def __eq__(self, other):  # noqa D
        return isinstance(other, self.__class__)

    def __hash__(self):  # noqa D
        return hash(self.__class__)


class GaussianLoss(Loss):
    r"""Weighted squared error.

    .. math::
        L(\mu) = \frac{1}{2} \frac{\sum_k w_k (\mu_k - y_k)^2}{\sum_k w_k}
    """

    def evaluate(self, expect, y, w):  # noqa D
        return 0.5 * np.sum(w * (expect - y) ** 2) / np.sum(w)

    def derivative(self, expect, y, w):  # noqa D
        return w * (expect - y) / np.sum(w)


class BinomialLoss(Loss):
    r"""Weighted Bernoulli negative log-likelihood for targets in {0, 1}.

    .. math::
        L(\mu) = -\frac{\sum_k w_k (y_k \log \mu_k + (1 - y_k) \log(1 - \mu_k))}
        {\sum_k w_k}

    The fitted mean is clipped to ``[eps, 1 - eps]`` before taking logs.
    """

    def __init__(self, eps=1e-15):
        self.eps = eps

    def _clip(self, expect):
        return np.clip(expect, self.eps, 1.0 - self.eps)

    def evaluate(self, expect, y, w):  # noqa D
        mu = self._clip(expect)
        loglik = special.xlogy(y, mu) + special.xlogy(1.0 - y, 1.0 - mu)
        return -np.sum(w * loglik) / np.sum(w)

    def derivative(self, expect, y, w):  # noqa D
        mu = self._clip(expect)
        return w * (mu - y) / (mu * (1.0 - mu)) / np.sum(w)


def _apply_link(link, eta, out=None):
    """Run ``link`` on ``eta`` and enforce the link contract."""
    expect = link.transform(eta, out=out)
    expect = np.asarray(expect, dtype=float)
    if expect.shape != np.shape(eta):
        raise PluginContractError(
            "{0} returned an array of shape {1}; expected {2}".format(
                type(link).__name__, expect.shape, np.shape(eta)
            )
        )
    if not np.all(np.isfinite(expect)):
        raise PluginContractError(
            "{0} returned non-finite values".format(type(link).__name__)
        )
    return expect


def _apply_loss(loss, expect, y, w):
    """Run ``loss`` and enforce that it returns a finite scalar."""
    value = loss.evaluate(expect, y, w)
    if np.ndim(value) != 0:
        raise PluginContractError(
            "{0} must return a scalar; got an array of shape {1}".format(
                type(loss).__name__, np.shape(value)
            )
        )
    value = float(value)
    if not np.isfinite(value):
        raise PluginContractError(
            "{0} returned a non-finite value: {1}".format(type(loss).__name__, value)
        )
    return value


def working_residual(link, loss, eta, y, w, expect=None):
    """Compute the working residual ``ldot = dLoss/deta``.

    Contracting ``ldot`` with a column of the design matrix gives the
    gradient of the loss with respect to that column's coefficient.

    Parameters
    ----------
    link : Link
        Link plugin.

    loss : Loss
        Loss plugin.

    eta : np.ndarray, shape (n_samples,)
        Linear predictor at which to evaluate the residual.

    y, w : np.ndarray, shape (n_samples,)
        Response and observation weights.

    expect : np.ndarray, shape (n_samples,), optional
        ``link(eta)`` if the caller has already computed it.

    Returns
    -------
    np.ndarray, shape (n_samples,)
    """
    if expect is None:
        expect = _apply_link(link, eta)

    # Canonical pairs reduce to w * (expect - y) / sum(w)
    if isinstance(link, IdentityLink) and isinstance(loss, GaussianLoss):
        return w * (expect - y) / np.sum(w)
    if isinstance(link, LogitLink) and isinstance(loss, BinomialLoss):
        return w * (expect - y) / np.sum(w)

    ldot = np.asarray(loss.derivative(expect, y, w), dtype=float)
    ldot = ldot * link.inverse_derivative(eta)
    if ldot.shape != np.shape(eta) or not np.all(np.isfinite(ldot)):
        raise PluginContractError(
            "The derivatives of {0} and {1} must be finite arrays of shape "
            "{2}".format(type(link).__name__, type(loss).__name__, np.shape(eta))
        )
    return ldot


_LINKS = {"identity": IdentityLink, "logit": LogitLink}
_LOSSES = {
    "gaussian": GaussianLoss,
    "squared_loss": GaussianLoss,
    "binomial": BinomialLoss,
    "log": BinomialLoss,
}
_FAMILIES = {"gaussian": ("identity", "gaussian"), "binomial": ("logit", "binomial")}


def check_link(link):
    """Return a :class:`Link` instance from an instance or a name."""
    if isinstance(link, Link):
        return link
    if isinstance(link, str) and link.lower() in _LINKS:
        return _LINKS[link.lower()]()
    raise InvalidInputError(
        "link must be a Link instance or one of {0}; got {1}".format(
            sorted(_LINKS), link
        )
    )


def check_loss(loss):
    """Return a :class:`Loss` instance from an instance or a name."""
    if isinstance(loss, Loss):
        return loss
    if isinstance(loss, str) and loss.lower() in _LOSSES:
        return _LOSSES[loss.lower()]()
    raise InvalidInputError(
        "loss must be a Loss instance or one of {0}; got {1}".format(
            sorted(_LOSSES), loss
        )
    )


def get_family(name):
    """Return the canonical ``(link, loss)`` pair for a family name.

    Parameters
    ----------
    name : ["gaussian", "binomial"]
        ``"gaussian"`` gives the identity link with squared error and
        ``"binomial"`` gives the logit link with the Bernoulli likelihood.
    """
    try:
        link_name, loss_name = _FAMILIES[name.lower()]
    except (KeyError, AttributeError):
        raise InvalidInputError(
            "family must be one of {0}; got {1}".format(sorted(_FAMILIES), name)
        ) from None
    return check_link(link_name), check_loss(loss_name)
