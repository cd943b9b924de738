#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Convergence criteria for nested sampling ensembles.

Two criteria are available:

``'standard'``
    Evidence convergence (Skilling 2006). The largest evidence the live
    points could still contribute is compared to a fraction of the
    evidence accumulated so far.

``'compression'``
    Likelihood range compression. The spread between the best live model and
    the contour is compared to a ln-ratio. Useful after the evidence has
    converged, to sharpen the MAP estimate.

For likelihoods estimated by Monte Carlo, a non-zero `mc_noise` adds an
alternative criterion: once the spread of live likelihoods is within the
noise of the estimator the ensemble cannot be resolved further and is
considered converged.

Skilling, John. "Nested Sampling for Bayesian Computations." In Proc.
Valencia, 2006.

"""

import enum
import math
import numpy as np
from .utils import lps

__all__ = [
    "ConvergenceCriterion", "ConfigurationError", "evidence_converge",
    "compress_converge", "noise_check", "get_convfunc"
]


class ConfigurationError(ValueError):
    """Invalid run configuration (e.g. unknown convergence criterion)."""


class ConvergenceCriterion(enum.Enum):
    STANDARD = 'standard'
    COMPRESSION = 'compression'


def noise_check(ensemble, mc_noise):
    """
    Check whether the live likelihoods are spread by no more than the
    Monte Carlo noise of their evaluation.

    Parameters
    ----------
    ensemble : `~gmcns.Ensemble`
        The ensemble.
    mc_noise : float
        Expected standard deviation of the ln(likelihood) estimates.

    Returns
    -------
    bool
        True if the sample standard deviation of the live ln(likelihood)s
        is `<= mc_noise`.

    """
    logls = ensemble.live_logl()
    if len(logls) < 2 or np.all(logls == logls[0]):
        spread = 0.
    else:
        spread = np.std(logls, ddof=1)
    return bool(spread <= mc_noise)


def evidence_converge(ensemble,
                      evidence_fraction,
                      mc_noise=0.,
                      return_values=False):
    """
    Evidence convergence.

    Converged when
    `lps(max(log_Li), log_Xi[-1]) < lps(log(evidence_fraction), log_Zi[-1])`.

    Parameters
    ----------
    ensemble : `~gmcns.Ensemble`
        The ensemble.
    evidence_fraction : float
        Convergence fraction.
    mc_noise : float, optional
        If positive, the noise criterion is tried first.
    return_values : bool, optional
        If True return the `(value, threshold)` pair instead of the
        decision. The noise criterion is not consulted in that case.

    """
    if not return_values and mc_noise > 0. and noise_check(ensemble, mc_noise):
        return True

    val = lps(np.max(ensemble.live_logl()), ensemble.log_Xi[-1])
    thresh = lps(math.log(evidence_fraction), ensemble.log_Zi[-1])

    if return_values:
        return val, thresh
    return bool(val < thresh)


def compress_converge(ensemble,
                      compression_ratio,
                      mc_noise=0.,
                      return_values=False):
    """
    Likelihood range compression.

    Converged when `max(log_Li) - contour < compression_ratio`. Arguments
    are as for :func:`evidence_converge`.

    """
    if not return_values and mc_noise > 0. and noise_check(ensemble, mc_noise):
        return True

    maxlogl = np.max(ensemble.live_logl())
    if maxlogl == -np.inf:
        # -inf - -inf would be nan
        val = np.nextafter(-np.inf, 0.)
    else:
        val = maxlogl - ensemble.contour
    thresh = compression_ratio

    if return_values:
        return val, thresh
    return bool(val < thresh)


_CONVFUNCS = {
    ConvergenceCriterion.STANDARD: evidence_converge,
    ConvergenceCriterion.COMPRESSION: compress_converge
}


def get_convfunc(criterion):
    """
    Return the convergence function for a criterion given by name
    or as a `ConvergenceCriterion`.
    """
    try:
        criterion = ConvergenceCriterion(criterion)
    except ValueError:
        raise ConfigurationError(
            'Convergence criterion {!r} not supported! Try "standard" or '
            '"compression".'.format(criterion)) from None
    return _CONVFUNCS[criterion]
