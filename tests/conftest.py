"""
Copyright (c) 2020, the Decred developers
See LICENSE for details
"""

import random

import pytest

from chainvrf.crypto.secp256k1.curve import curve
from chainvrf.util import helpers


# Generative tests check this many random samples.
SAMPLES = 10


@pytest.fixture
def rnd():
    """
    An explicitly seeded generator, so that failures can be reproduced.
    """
    return random.Random(1)


@pytest.fixture
def randUint256(rnd):
    def _randUint256():
        return rnd.getrandbits(256)

    return _randUint256


@pytest.fixture
def randScalar(rnd):
    def _randScalar():
        return rnd.randrange(1, curve.N)

    return _randScalar


@pytest.fixture
def randPoint(randScalar):
    def _randPoint():
        return curve.scalarBaseMult(randScalar())

    return _randPoint


@pytest.fixture
def samples():
    return range(SAMPLES)


@pytest.fixture(scope="module")
def prepareLogger(request):
    helpers.prepareLogging()
