#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
The loop that drives an ensemble to convergence, with periodic backups
of the ensemble and tuner and periodic removal of stale model files.

"""

import os
import sys
import math
import pickle
import logging
import warnings
from .convergence import get_convfunc, ConfigurationError
from .ensemble import ens_file, tuner_file
from .progress import ProgressReporter
from .tuner import init_tuner, restore_tuner
from .utils import save, save_all, measure_evidence

__all__ = ["converge_ensemble", "e_backup", "clean_ensemble_dir"]

logger = logging.getLogger(__name__)

BACKUP_ERROR_POLICIES = ('raise', 'warn')


def e_backup(ensemble, tuner):
    """
    Save the ensemble and the tuner to the ensemble directory as one
    snapshot: either both files are replaced or neither is.
    """
    save_all([(ens_file(ensemble), ensemble), (tuner_file(ensemble), tuner)])


def clean_ensemble_dir(ensemble, model_pad):
    """
    Remove the files of discarded models.

    Only models discarded at least `model_pad` iterates ago are removed, so
    `model_pad=0` removes all of them. Live models are never touched.
    Removed models are also dropped from `ensemble.posterior_samples`.
    Nothing is done if the ensemble samples the posterior.

    Parameters
    ----------
    ensemble : `~gmcns.Ensemble`
        The ensemble.
    model_pad : int
        Number of most recent iterates whose discarded models are kept.

    Returns
    -------
    nremoved : int
        Number of files removed.

    """
    if ensemble.sample_posterior:
        return 0
    horizon = ensemble.iterate - model_pad
    live = set(m.path for m in ensemble.models)
    nremoved = 0
    kept = []
    for record in ensemble.posterior_samples:
        if record.discard_it > horizon or record.path in live:
            kept.append(record)
            continue
        try:
            os.remove(record.path)
        except FileNotFoundError:
            # already removed before the snapshot this run resumed from
            continue
        nremoved += 1
    ensemble.posterior_samples = kept
    return nremoved


def _check_interval(name, value):
    if value is None:
        return 0
    if value < 0 or int(value) != value:
        raise ConfigurationError(
            '{} must be a non-negative integer, got {!r}'.format(name, value))
    return int(value)


def converge_ensemble(ensemble,
                      step,
                      max_iterates=None,
                      backup_every=0,
                      clean_every=0,
                      clean_pad=0,
                      converge_criterion='standard',
                      converge_factor=1e-3,
                      mc_noise=0.,
                      reporter=None,
                      print_progress=True,
                      backup_errors='raise',
                      **progargs):
    """
    **Drive an ensemble to convergence.**
    Repeatedly call the sampling `step` on the ensemble until the
    convergence criterion is met or `max_iterates` is reached.

    Parameters
    ----------
    ensemble : `~gmcns.Ensemble`
        The ensemble. It is modified in place.

    step : function
        The sampling step, called as
        `step(ensemble, tuner, reflect_cache)` and returning
        `(warn, reflect_cache)`. It must replace one model of the ensemble
        (normally through `ensemble.replace`). `warn` is 0 on success and 1
        if no new model could be found, which aborts the run.
        `reflect_cache` is passed through untouched between calls and starts
        as None.

    max_iterates : int, optional
        The run stops once the iterate exceeds this value. Default is
        `sys.maxsize` (no limit).

    backup_every : int, optional
        Save the ensemble and tuner every `backup_every` iterates.
        0 (default) disables periodic backups. A final backup is always
        made.

    clean_every : int, optional
        Remove files of discarded models every `clean_every` iterates.
        0 (default) disables cleaning. Ignored if the ensemble samples the
        posterior.

    clean_pad : int, optional
        Files of models discarded during the last `clean_pad` iterates are
        kept by periodic cleans. The final clean removes all of them.

    converge_criterion : str or `~gmcns.ConvergenceCriterion`, optional
        `'standard'` for evidence convergence (default) or `'compression'`
        for likelihood range compression.

    converge_factor : float, optional
        Evidence fraction for `'standard'`, ln-ratio for `'compression'`.
        Default is `1e-3`.

    mc_noise : float, optional
        Expected standard deviation of Monte Carlo likelihood estimates
        near the MAP. If positive, an ensemble whose likelihood spread is
        within this value is considered converged. Default is 0.

    reporter : `~gmcns.ProgressReporter`, optional
        Progress reporter to update every iterate. If not given, one is
        created from `print_progress` and `progargs`. The tuner of the run
        is attached to it.

    print_progress : bool, optional
        Whether the default reporter prints anything. Default is True.

    backup_errors : {'raise', 'warn'}, optional
        What to do if a periodic backup fails to be written or pickled.
        `'raise'` (default) stops the run with the error, `'warn'` issues a
        warning and continues. Other errors always propagate.
        A failing final backup always raises.

    **progargs
        Passed to `ProgressReporter` (`update_interval`, `upper_displays`,
        `lower_displays`, `disp_rot_its`, `output`).

    Returns
    -------
    result : `~gmcns.utils.Evidence`, float or `~gmcns.Ensemble`
        `Evidence(logz, logzerr)` if the run converged, the last cumulative
        ln(evidence) if `max_iterates` was reached first, or the ensemble
        itself if the sampling step failed.

    """
    if len(ensemble.models) == 0:
        raise ValueError('The ensemble has no models')
    converge_check = get_convfunc(converge_criterion)
    if not (math.isfinite(converge_factor) and converge_factor > 0):
        raise ConfigurationError(
            'converge_factor must be finite and positive, got {!r}'.format(
                converge_factor))
    if mc_noise < 0:
        raise ConfigurationError('mc_noise must be non-negative')
    if backup_errors not in BACKUP_ERROR_POLICIES:
        raise ConfigurationError(
            'backup_errors must be one of {}'.format(BACKUP_ERROR_POLICIES))
    backup_every = _check_interval('backup_every', backup_every)
    clean_every = _check_interval('clean_every', clean_every)
    clean_pad = _check_interval('clean_pad', clean_pad)
    if max_iterates is None:
        max_iterates = sys.maxsize

    curr_it = ensemble.iterate
    tuner = None
    if curr_it > 1:
        # restore tuner from saved if any
        tuner = restore_tuner(ensemble)
        if tuner is None:
            warnings.warn('No saved tuner found for a resumed ensemble at '
                          'iterate {}; starting from a fresh tuner'.format(
                              curr_it))
    if tuner is None:
        save(ens_file(ensemble), ensemble)
        tuner = init_tuner(ensemble)

    if reporter is None:
        progargs.setdefault('update_interval', 0.1)
        reporter = ProgressReporter(ensemble,
                                    start_it=curr_it,
                                    print_progress=print_progress,
                                    tuner=tuner,
                                    **progargs)
    else:
        reporter.tuner = tuner

    # ignore clean arguments if posterior samples are to be collected
    cln_switch = clean_every > 0 and not ensemble.sample_posterior

    # models precalculated by the sampling step, opaque to the driver
    reflect_cache = None

    try:
        while (not converge_check(ensemble, converge_factor, mc_noise)
               and curr_it <= max_iterates):
            warn, reflect_cache = step(ensemble, tuner, reflect_cache)
            if warn == 1:
                logger.error(
                    'Failed to find new models, aborting at iterate %d '
                    '(logZ %.6g). The ensemble at %s can be resumed.',
                    curr_it, ensemble.log_Zi[-1], ensemble.path)
                return ensemble
            elif warn != 0:
                raise RuntimeError(
                    'Unknown warning code {!r} from the sampling step'.format(
                        warn))
            curr_it += 1

            if backup_every and curr_it % backup_every == 0:
                _periodic_backup(ensemble, tuner, backup_errors)
            if cln_switch and curr_it % clean_every == 0:
                clean_ensemble_dir(ensemble, clean_pad)

            reporter.update(*converge_check(
                ensemble, converge_factor, return_values=True))
    finally:
        reporter.close()

    if converge_check(ensemble, converge_factor, mc_noise):
        final_logz = measure_evidence(ensemble)
        logger.info(
            'Job done, sampled to convergence at iterate %d. '
            'Final logZ %.6g +/- %.6g', curr_it, final_logz.logz,
            final_logz.logzerr)
        _finalize(ensemble, tuner, cln_switch)
        return final_logz
    else:
        logger.info(
            'Job done, sampled to maximum iterate %d. Convergence criterion '
            'not obtained; logZ %.6g', max_iterates, ensemble.log_Zi[-1])
        warnings.warn('Convergence criterion {!r} not obtained after {} '
                      'iterates'.format(converge_criterion, max_iterates))
        _finalize(ensemble, tuner, cln_switch)
        return ensemble.log_Zi[-1]


def _periodic_backup(ensemble, tuner, backup_errors):
    try:
        e_backup(ensemble, tuner)
    except (OSError, pickle.PicklingError) as e:
        if backup_errors == 'raise':
            raise
        warnings.warn('Backup of ensemble at {} failed at iterate {}: '
                      '{}'.format(ensemble.path, ensemble.iterate, e))


def _finalize(ensemble, tuner, cln_switch):
    # clean first so the final snapshot lists no removed models
    if cln_switch:
        clean_ensemble_dir(ensemble, 0)
    e_backup(ensemble, tuner)
