"""Define the adaptive group lasso penalty and its proximal operator."""
import numpy as np

__all__ = ["GroupL2", "group_soft_threshold"]


def group_soft_threshold(z, threshold):
    r"""Apply the group soft thresholding operator.

    The group soft-thresholding operator shrinks the whole vector toward
    the origin:

    .. math::
        S(z, T) = \max\left(0, 1 - \frac{T}{||z||_2}\right) z

    and returns the zero vector when :math:`||z||_2 = 0`.

    Parameters
    ----------
    z : array-like
        Input array

    threshold : float
        threshold value

    Returns
    -------
    np.ndarray
        Group soft-thresholded array
    """  # noqa: W605
    z = np.asarray(z, dtype=float)
    norm = np.linalg.norm(z)
    if norm == 0:
        return np.zeros_like(z)

    scale = 1.0 - threshold / norm
    if scale <= 0:
        return np.zeros_like(z)
    return scale * z


class GroupL2(object):
    r"""Adaptive group lasso penalty.

    Implements the penalty

    .. math::
        \alpha \displaystyle \sum_{g \in G} a_g \sqrt{p_g} || \beta_g ||_2

    where :math:`G` is a collection of disjoint contiguous blocks of
    features, :math:`p_g` is the size of block :math:`g` and :math:`a_g`
    is its adaptive weight.

    Parameters
    ----------
    group_start : array-like of int
        First column of each group.

    group_len : array-like of int
        Number of columns in each group.

    adaptive_weights : array-like of float
        Non-negative penalty multiplier for each group. A weight of zero
        leaves the group unpenalized.

    alpha : float
        Regularization parameter, overall strength of regularization.
    """  # noqa: W605

    def __init__(self, group_start, group_len, adaptive_weights, alpha):
        self.group_start = np.asarray(group_start, dtype=int)
        self.group_len = np.asarray(group_len, dtype=int)
        self.adaptive_weights = np.asarray(adaptive_weights, dtype=float)
        self.alpha = alpha

    def _slices(self):
        for start, length in zip(self.group_start, self.group_len):
            yield slice(start, start + length)

    def thresholds(self):
        """Return the per-group threshold ``alpha * a_g * sqrt(p_g)``."""
        return self.alpha * self.adaptive_weights * np.sqrt(self.group_len)

    def __call__(self, x):
        """Return the group penalty."""
        x = np.asarray(x, dtype=float)
        return float(
            np.sum(
                [
                    thresh * np.linalg.norm(x[sl])
                    for thresh, sl in zip(self.thresholds(), self._slices())
                ]
            )
        )

    def prox(self, x, step_size):
        r"""Return the proximal operator of the adaptive group lasso penalty.

        The penalty is separable over groups, so the proximal operator
        applies :func:`group_soft_threshold` to each block with threshold
        :math:`\sigma \alpha a_g \sqrt{p_g}`, where :math:`\sigma` is the
        step size. Columns that belong to no group are returned unchanged.

        Parameters
        ----------
        x : np.ndarray
            Argument for proximal operator.

        step_size : float
            Step size for proximal operator

        Returns
        -------
        np.ndarray
            proximal operator of the group lasso penalty evaluated on
            input `x` with step size `step_size`
        """  # noqa: W605
        out = np.array(x, dtype=float, copy=True)
        for thresh, sl in zip(self.thresholds(), self._slices()):
            out[sl] = group_soft_threshold(out[sl], step_size * thresh)
        return out
