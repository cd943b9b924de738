import math
import numpy as np
import os
from gmcns import Ensemble
'''
Helpers shared by the tests: seeding, a gaussian likelihood on a flat
prior box, and a rejection sampling step that stands in for a real sampler
'''

NLIVE = 50
NDIM = 2
HALF_WIDTH = 5.

# analytic ln(evidence) of a unit gaussian under a flat prior on the box
LOGZ_TRUTH = NDIM * (0.5 * math.log(2 * math.pi) - math.log(2 * HALF_WIDTH))

MAX_TRIES = 10**6


def get_seed():
    kw = 'GMCNS_TEST_RANDOMSEED'
    if kw in os.environ:
        return int(os.environ[kw])
    return 56432


def get_rstate(seed=None):
    if seed is None:
        seed = get_seed()
    return np.random.default_rng(seed)


def get_printing():
    kw = 'GMCNS_TEST_PRINTING'
    if kw in os.environ:
        return int(os.environ[kw])
    else:
        return False


def loglike(x):
    return -0.5 * np.sum(x**2)


def prior_transform(u):
    return (2 * u - 1) * HALF_WIDTH


def make_ensemble(path, nlive=NLIVE, rstate=None, sample_posterior=False):
    """ Ensemble drawn from the prior, keeping its random state in the
    tuner so that resumed runs continue the same random sequence """
    if rstate is None:
        rstate = get_rstate()
    params = [prior_transform(rstate.uniform(size=NDIM)) for _ in range(nlive)]
    return Ensemble(str(path),
                    params, [loglike(p) for p in params],
                    sample_posterior=sample_posterior,
                    tuner_params={
                        'rstate': rstate,
                        'nreject': 0
                    })


def rejection_step(ensemble, tuner, reflect_cache):
    """ Replace the worst model by a prior draw above the contour """
    rstate = tuner['rstate']
    worst = ensemble.worst()
    loglstar = ensemble.models[worst].log_Li
    for _ in range(MAX_TRIES):
        x = prior_transform(rstate.uniform(size=NDIM))
        logl = loglike(x)
        if logl > loglstar:
            ensemble.replace(worst, ensemble.new_model(x, logl))
            return 0, reflect_cache
        tuner['nreject'] += 1
    return 1, reflect_cache


class CountingStep:
    """ Wraps a step to count calls; fails once `fail_at` calls were made """

    def __init__(self, step=rejection_step, fail_at=None):
        self.step = step
        self.fail_at = fail_at
        self.ncalls = 0
        self.caches = []

    def __call__(self, ensemble, tuner, reflect_cache):
        self.caches.append(reflect_cache)
        self.ncalls += 1
        if self.fail_at is not None and self.ncalls > self.fail_at:
            return 1, reflect_cache
        warn, _ = self.step(ensemble, tuner, reflect_cache)
        return warn, self.ncalls


class FakeEnsemble:
    """ The minimum the convergence criteria look at """

    def __init__(self, logls, log_Xi=0., log_Zi=-np.inf, contour=-np.inf):
        self.logls = np.asarray(logls, dtype=float)
        self.log_Xi = [log_Xi]
        self.log_Zi = [log_Zi]
        self.contour = contour

    def live_logl(self):
        return self.logls
