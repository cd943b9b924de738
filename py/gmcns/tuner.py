#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Creation and restoration of the tuner, the dictionary of adaptive
parameters that the sampling step reads and updates every iterate.

"""

import copy
from .ensemble import tuner_file
from .utils import load

__all__ = ["init_tuner", "restore_tuner"]


def init_tuner(ensemble):
    """Return a fresh tuner built from the ensemble's initial
    tuning parameters."""
    return copy.deepcopy(ensemble.tuner_params)


def restore_tuner(ensemble):
    """Load the tuner saved alongside the ensemble. Returns None if there
    is no saved tuner."""
    return load(tuner_file(ensemble))
