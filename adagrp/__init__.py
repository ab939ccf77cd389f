"""adagrp: Adaptive group lasso paths in Python.

adagrp fits generalized linear models under an adaptive group lasso penalty
along a user supplied path of penalty strengths, using accelerated block
proximal gradient descent with active set screening. It provides a
low-level path solver with pluggable link and loss functions as well as
scikit-learn compatible estimators.
"""
from . import datasets  # noqa
from . import utils  # noqa
from ._family import *  # noqa
from ._prox import GroupL2, group_soft_threshold  # noqa
from ._solver import GroupSolver, apply_group_delta, solve  # noqa
from .agl import *  # noqa
from .logistic import *  # noqa
from .exceptions import ConvergenceWarning, InvalidInputError, PluginContractError  # noqa
from ._version import version as __version__  # noqa

# Set default logging handler to avoid "No handler found" warnings.
import logging
from logging import NullHandler

logging.getLogger(__name__).addHandler(NullHandler())
