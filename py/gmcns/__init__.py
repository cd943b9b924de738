#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
gmcns drives nested sampling ensembles to convergence.
The main functionality is performed by
gmcns.converge_ensemble, which repeatedly calls a user supplied
sampling step until one of the convergence criteria is met.
"""
from importlib.metadata import version, PackageNotFoundError

from .driver import converge_ensemble, e_backup, clean_ensemble_dir
from .ensemble import Ensemble, ModelRecord, restore_ensemble
from .convergence import (ConvergenceCriterion, ConfigurationError,
                          get_convfunc)
from .progress import ProgressReporter
from .utils import Evidence, measure_evidence
from . import utils

__version__ = "0.3.1"

try:
    __version__ = version("gmcns")
except PackageNotFoundError:
    # package is not installed
    pass
