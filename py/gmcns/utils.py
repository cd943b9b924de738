#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
A collection of useful functions.

"""

import os
import math
import time
import pickle
import shutil
from collections import namedtuple
import numpy as np
from scipy.special import logsumexp

__all__ = [
    "lps", "save", "save_all", "load", "DelayTimer", "Evidence",
    "measure_evidence"
]

Evidence = namedtuple('Evidence', ['logz', 'logzerr'])


def lps(*logvals):
    """
    Compute ln(exp(a) + exp(b) + ...) for a set of ln-values.

    Two arguments go through `np.logaddexp`, longer lists through
    `scipy.special.logsumexp`. `lps(-inf, -inf)` is `-inf`.

    Parameters
    ----------
    *logvals : float
        The ln-values to be summed.

    Returns
    -------
    float
        ln of the summed exponentials.

    """
    if len(logvals) == 0:
        raise ValueError('lps() needs at least one value')
    if len(logvals) == 1:
        return float(logvals[0])
    if len(logvals) == 2:
        return float(np.logaddexp(logvals[0], logvals[1]))
    vals = np.asarray(logvals, dtype=float)
    if np.all(vals == -np.inf):
        return -np.inf
    return float(logsumexp(vals))


def save(path, obj):
    """
    Pickle an object to a file.

    The object is written to a temporary file that is then moved over
    `path`, so that `path` either holds the previous content or the new
    one. If writing fails the temporary file is removed and the error is
    re-raised.

    Parameters
    ----------
    path: string
        Destination filename.
    obj: object
        Anything picklable.

    """
    save_all([(path, obj)])


def save_all(items):
    """
    Pickle several objects to their files as one snapshot.

    Every object is first written to a temporary file; only once all of them
    are written are the temporary files moved over their destinations. If
    any write fails, all temporary files are removed, every destination
    keeps its previous content and the error is re-raised.

    Parameters
    ----------
    items: list of (string, object)
        Destination filenames and the objects to write there.

    """
    tmp_paths = []
    try:
        for path, obj in items:
            tmp_path = path + '.tmp'
            tmp_paths.append(tmp_path)
            with open(tmp_path, 'wb') as fp:
                pickle.dump(obj, fp)
    except BaseException:
        for tmp_path in tmp_paths:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
        raise
    for (path, _), tmp_path in zip(items, tmp_paths):
        try:
            os.rename(tmp_path, path)
        except FileExistsError:
            # some filesystems don't allow overwrite on rename
            shutil.move(tmp_path, path)


def load(path):
    """
    Unpickle an object saved with :func:`save`. Returns None if the file
    does not exist.
    """
    try:
        with open(path, 'rb') as fp:
            return pickle.load(fp)
    except FileNotFoundError:
        return None


class DelayTimer:
    """ Utility class that allows us to detect a certain
    time has passed"""

    def __init__(self, delay):
        """ Initialise the timer with a delay of `delay` seconds

        Parameters
        ----------

        delay: float
            The number of seconds in the timer
        """
        self.delay = delay
        self.last_time = time.time()

    def is_time(self):
        """
        Returns true if more than self.delay seconds have passed
        since the initialization or last call of successful is_time()

        Returns
        -------
        ret: bool
             True if self.delay seconds have passed since the
             initialization or last successful is_time() call
        """
        curt = time.time()
        if curt - self.last_time > self.delay:
            self.last_time = curt
            return True
        return False


def measure_evidence(ensemble):
    """
    Final estimate of the evidence of an ensemble.

    The live points are treated as sharing the last prior volume equally,
    and their contribution is added to the accumulated evidence.
    The uncertainty is the usual sqrt(H/N) estimate of Skilling (2006).

    Parameters
    ----------
    ensemble : `~gmcns.Ensemble`
        The ensemble.

    Returns
    -------
    evidence : `Evidence`
        Named tuple of (logz, logzerr).

    """
    nlive = len(ensemble.models)
    live_logl = np.array([m.log_Li for m in ensemble.models], dtype=float)
    if np.all(live_logl == -np.inf):
        live_logz = -np.inf
    else:
        live_logz = logsumexp(live_logl) + ensemble.log_Xi[-1] - math.log(
            nlive)
    logz = lps(ensemble.log_Zi[-1], live_logz)
    logzerr = math.sqrt(max(ensemble.Hi[-1], 0.) / nlive)
    return Evidence(logz=logz, logzerr=logzerr)
