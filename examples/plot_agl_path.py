"""
=======================================
Visualizing the AGL regularization path
=======================================

Computes the adaptive group lasso path using the function ``agl_path`` along a
decreasing grid of penalty values on a synthetic dataset. Each color
represents a different feature group in the coefficient vector, and this is
displayed as a function of the penalty.

When alpha is very large, the penalty dominates and every group is zero. As
alpha decreases, groups enter the model one at a time (indicated by the dotted
vertical lines) and the solution tends towards ordinary least squares.
"""
import adagrp as agr
import matplotlib.pyplot as plt
import numpy as np


X, y, groups, coef = agr.datasets.make_group_regression(
    n_samples=400,
    n_groups=10,
    n_informative_groups=3,
    n_features_per_group=10,
    n_informative_per_group=3,
    noise=200,
    coef=True,
    random_state=10,
    shuffle=True,
)

alphas = np.logspace(3, -1, 100)
path_coefs, path_alphas, path_iters = agr.agl_path(
    X,
    y,
    alphas,
    groups=groups,
    return_n_iter=True,
    inner_iter=1000,
    thresh=1e-3,
)

group_norms = np.array([np.linalg.norm(path_coefs[grp], axis=0) for grp in groups])

fig, ax = plt.subplots(2, 1, figsize=(8, 10), sharex=True)

cmap = plt.get_cmap("tab10")

for grp, color, norms in zip(groups, cmap.colors, group_norms):
    _ = ax[0].semilogx(path_alphas, np.abs(path_coefs[grp].transpose()), color=color)

    zero_idx = np.where(norms == 0)[0]
    if zero_idx.size and zero_idx.size < norms.size:
        _ = ax[0].axvline(path_alphas[zero_idx.max()], ls=":", color=color)
        _ = ax[1].axvline(path_alphas[zero_idx.max()], ls=":", color=color)

_ = ax[1].semilogx(path_alphas, group_norms.transpose())

_ = ax[1].set_xlabel(r"$\log(\alpha)$", fontsize=16)
_ = ax[0].set_ylabel(r"$\left| \hat{\beta} \right|$", fontsize=16)
_ = ax[1].set_ylabel(
    r"$\left| \left| \hat{\beta}^{(\ell)} \right| \right|_2$", fontsize=16
)

_ = ax[0].set_title("Adaptive group lasso regularization path", fontsize=16)

plt.show()
