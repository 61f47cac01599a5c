"""
Copyright (c) 2019, Brian Stafford
Copyright (c) 2019-2020, The Decred developers
See LICENSE for details

Hashing and key functions, matching the Ethereum primitives the verifier
contract is built on.
"""

from Crypto.Hash import keccak

from chainvrf.errors import InvalidKey
from chainvrf.util.encode import ADDRESS_LEN, ByteArray

from . import rando
from .secp256k1.curve import AffinePoint, curve as Curve, longMarshal


def keccak256(b):
    """
    The legacy Keccak-256 hash used by the EVM. This is not NIST SHA3-256,
    which pads differently.

    Args:
        b (byte-like): The bytes to hash.

    Returns:
        bytes: A 32-byte hash.
    """
    h = keccak.new(digest_bits=256)
    h.update(bytes(b))
    return h.digest()


def mustHash(b):
    """
    mustHash is keccak256 as a ByteArray.
    """
    return ByteArray(keccak256(b))


def ethereumAddress(p):
    """
    The Ethereum address of the point p, the last 20 bytes of the keccak256 of
    its long marshaling. The verifier compares addresses where it would
    otherwise need to compare points.

    Args:
        p (AffinePoint): The point.

    Returns:
        ByteArray: The 20-byte address.
    """
    return ByteArray(keccak256(longMarshal(p))[-ADDRESS_LEN:])


def keyHash(pk):
    """
    keyHash is how the coordinator identifies a proving key: the keccak256 of
    the long-marshaled public key.

    Args:
        pk (AffinePoint): The public key.

    Returns:
        ByteArray: The 32-byte key hash.
    """
    return mustHash(longMarshal(pk))


class SecretKey:
    """
    SecretKey is a VRF proving key, a scalar in [1, N). The corresponding public
    key is computed once on creation.
    """

    def __init__(self, k):
        """
        Args:
            k (int or bytes-like or ByteArray or str): The scalar, as an int or
                as big-endian bytes. Strings are read as hex.
        """
        if not isinstance(k, int):
            k = ByteArray(k).int()
        if not (0 < k < Curve.N):
            raise InvalidKey("secret key must be in [1, group order)")
        self.key = k
        self.pub = Curve.scalarBaseMult(k)

    @staticmethod
    def generate():
        """
        Generate a new random SecretKey.
        """
        return SecretKey(rando.randomScalar())

    def keyHash(self):
        """
        The coordinator key hash of this key's public key.
        """
        return keyHash(self.pub)

    def serialize(self):
        """
        The 32-byte big-endian scalar.
        """
        return ByteArray(self.key, length=32)

    def __repr__(self):
        # Never print the scalar itself.
        return "SecretKey(pub=%r)" % (self.pub,)


def validPublicKey(p):
    """
    validPublicKey is true iff p is an AffinePoint on the curve.
    """
    return isinstance(p, AffinePoint) and Curve.isOnCurve(p)
