import pytest
import numpy as np
from utils import get_seed, make_ensemble
'''
Tests draw their random numbers from generators built by
utils.get_rstate(); the global numpy state is seeded too in case
anything falls back to it. Set GMCNS_TEST_RANDOMSEED to loop the
tests over seeds and catch rare behaviour.
'''


@pytest.fixture(autouse=True)
def set_seed():
    np.random.seed(get_seed())


@pytest.fixture
def ensemble(tmp_path):
    """A fresh ensemble drawn from the prior in a temporary directory"""
    return make_ensemble(tmp_path)
