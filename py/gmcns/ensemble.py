#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
The ensemble of live models evolved by nested sampling, together with the
per-iterate bookkeeping of prior volume, evidence and information.

"""

import os
import math
import numpy as np
from .utils import lps, save, load

__all__ = ["ModelRecord", "Ensemble", "ens_file", "tuner_file",
           "restore_ensemble"]


class ModelRecord:
    """
    A single model (live point) of the ensemble.

    Parameters
    ----------
    id : int
        Unique identifier of the model within the ensemble.
    log_Li : float
        ln(likelihood) of the model.
    params : object
        Parameter state of the model, interpreted only by the sampler.
    path : string
        Filename of the on-disk copy of the model.

    """

    def __init__(self, id, log_Li, params, path):
        self.id = id
        self.log_Li = float(log_Li)
        self.params = params
        self.path = path
        # iterate at which the model was discarded; None while live
        self.discard_it = None

    def __repr__(self):
        return 'ModelRecord(id={}, log_Li={:.6g})'.format(self.id, self.log_Li)


class Ensemble:
    """
    A fixed-size ensemble of models, the record of its past iterates
    and the location of its durable storage.

    Every iterate sequence starts with one entry describing the state
    before any model was discarded: `log_Li=[-inf]`, `log_Xi=[0]` (the whole
    prior), `log_Zi=[-inf]` (no evidence), `Hi=[0]` and `log_Liwi=[-inf]`.
    The current iterate is therefore `len(log_Li)`, which is 1 for a fresh
    ensemble.

    Parameters
    ----------
    path : string
        Directory holding the snapshots and model files of the run.
        Created if needed.
    params : list
        Parameter states of the initial models.
    log_likelihoods : list of float
        ln(likelihood) of each of the initial models.
    sample_posterior : bool, optional
        If True, files of discarded models are kept as posterior samples
        and never cleaned. Default is False.
    tuner_params : dict, optional
        Initial values of the adaptive parameters used by the sampling step.

    """

    def __init__(self,
                 path,
                 params,
                 log_likelihoods,
                 sample_posterior=False,
                 tuner_params=None):
        if len(params) != len(log_likelihoods):
            raise ValueError('params and log_likelihoods must have the '
                             'same length')
        if len(params) == 0:
            raise ValueError('An ensemble needs at least one model')
        self.path = path
        os.makedirs(self.model_dir, exist_ok=True)
        self.sample_posterior = sample_posterior
        self.tuner_params = dict(tuner_params or {})
        self.model_counter = 0
        self.models = [
            self.new_model(p, logl) for p, logl in zip(params, log_likelihoods)
        ]

        self.log_Li = [-np.inf]
        self.log_Xi = [0.]
        self.log_Zi = [-np.inf]
        self.Hi = [0.]
        self.log_Liwi = [-np.inf]
        self.contour = -np.inf
        self.posterior_samples = []

    @property
    def model_dir(self):
        return os.path.join(self.path, 'models')

    @property
    def nlive(self):
        return len(self.models)

    @property
    def iterate(self):
        """The current iterate, i.e. the length of the iterate record."""
        return len(self.log_Li)

    def live_logl(self):
        return np.array([m.log_Li for m in self.models], dtype=float)

    def worst(self):
        """Index of the live model with the lowest likelihood."""
        return int(np.argmin(self.live_logl()))

    def map_model(self):
        """The live model with the highest likelihood."""
        return self.models[int(np.argmax(self.live_logl()))]

    def new_model(self, params, log_Li):
        """
        Create a new model record with the next free identifier and
        write its on-disk copy.
        """
        self.model_counter += 1
        mid = self.model_counter
        path = os.path.join(self.model_dir, str(mid))
        record = ModelRecord(mid, log_Li, params, path)
        save(path, record)
        return record

    def replace(self, index, record):
        """
        Discard the model at `index` and put `record` in its place,
        advancing the iterate record by one.

        The prior volume shrinks by its expected factor exp(-1/N). The
        discarded likelihood becomes the new contour, and the replacement
        must lie above it.

        Parameters
        ----------
        index : int
            Position of the model being discarded (normally `worst()`).
        record : `ModelRecord`
            Replacement model.

        """
        discarded = self.models[index]
        loglstar = discarded.log_Li
        if not record.log_Li > loglstar:
            raise ValueError(
                'Replacement model ln(likelihood) {} is not above the '
                'contour {}'.format(record.log_Li, loglstar))

        nlive = len(self.models)
        logvol = self.log_Xi[-1]
        logvol_new = logvol - 1. / nlive
        # ln(X_prev - X_new)
        logdvol = logvol + math.log(-math.expm1(-1. / nlive))
        logwt = loglstar + logdvol
        logz = self.log_Zi[-1]
        logz_new = lps(logz, logwt)
        self.Hi.append(_update_information(self.Hi[-1], logz, logz_new, logwt,
                                           loglstar))

        self.log_Li.append(loglstar)
        self.log_Xi.append(logvol_new)
        self.log_Liwi.append(logwt)
        self.log_Zi.append(logz_new)
        self.contour = loglstar

        discarded.discard_it = self.iterate
        self.posterior_samples.append(discarded)
        self.models[index] = record

    def __repr__(self):
        return ('Ensemble(path={!r}, nlive={}, iterate={}, '
                'logz={:.4g})'.format(self.path, self.nlive, self.iterate,
                                     self.log_Zi[-1]))


def _update_information(h, logz, logz_new, logwt, loglstar):
    """
    Skilling's recurrence for the information
    H_new = exp(logwt - logZ_new) * logL
            + exp(logZ - logZ_new) * (H + logZ) - logZ_new
    """
    if logz_new == -np.inf:
        return h
    h_new = -logz_new
    if logwt > -np.inf:
        h_new += math.exp(logwt - logz_new) * loglstar
    if logz > -np.inf:
        h_new += math.exp(logz - logz_new) * (h + logz)
    return h_new


def ens_file(ensemble):
    """Location of the ensemble snapshot."""
    return os.path.join(ensemble.path, 'ens')


def tuner_file(ensemble):
    """Location of the tuner snapshot."""
    return os.path.join(ensemble.path, 'tuner')


def restore_ensemble(path):
    """
    Restore an ensemble from the snapshot stored in the directory `path`.
    Returns None if no snapshot is found.
    """
    return load(os.path.join(path, 'ens'))
