"""
Copyright (c) 2019, Brian Stafford
Copyright (c) 2019-20, The Decred developers
See LICENSE for details

Secret randomness for keys, proof nonces and request seeds, drawn from the
operating system's CSPRNG.
"""

import os

from chainvrf import VRFError
from chainvrf.util.encode import WORD_LEN, intFromBytes

from .secp256k1.curve import curve


# Anything secret gets at least 128 bits.
MIN_ENTROPY_BYTES = 16

# Extra bytes drawn for a scalar, so that the bias from reducing modulo N-1 is
# below 2^-64.
EXTRA_SCALAR_BYTES = 8


def randomBytes(length):
    """
    randomBytes returns length cryptographically strong random bytes.

    Args:
        length (int): The number of bytes. At least MIN_ENTROPY_BYTES.

    Returns:
        bytes: The random bytes.

    Raises:
        VRFError: length is too short to be secret.
    """
    if length < MIN_ENTROPY_BYTES:
        raise VRFError(f"{length} random bytes is too few")
    return os.urandom(length)


def randomScalar():
    """
    randomScalar returns a uniformly random scalar in [1, N), using the
    procedure given in [NSA] A.2.1: reduce 64 extra bits of randomness modulo
    N-1 and add one.

    Returns:
        int: The scalar.
    """
    k = intFromBytes(randomBytes(WORD_LEN + EXTRA_SCALAR_BYTES))
    return k % (curve.N - 1) + 1


def randomSeed():
    """
    randomSeed returns a random uint256, for use as a requester's seed.
    """
    return intFromBytes(randomBytes(WORD_LEN))
