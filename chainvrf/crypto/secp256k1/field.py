"""
Copyright (c) 2019, Brian Stafford
Copyright (c) 2019-2020, The Decred developers
See LICENSE for details

Arithmetic in GF(P), the field underlying secp256k1, on Python integers.

The functions here reproduce the arithmetic performed by the on-chain verifier,
whose uint256 values are always reduced modulo the field prime before they are
observed. Inputs may be any non-negative integer; outputs are always reduced.

None of this is constant time. Modular exponentiation in particular takes time
that depends on its operands, so a secret scalar should only be handled inside
a trusted process.
"""

from chainvrf import VRFError


def fromHex(hx):
    return int(hx, 16)


# P is the secp256k1 base field prime, fieldSize in the verifier contract.
P = fromHex("FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F")

# B is the constant term of the curve equation y² = x³ + B.
B = 7

# P ≡ 3 (mod 4), so a^((P+1)/4) is a square root of a whenever a is a square.
SQRT_POWER = (P + 1) >> 2

# Euler's criterion exponent.
EULER_POWER = (P - 1) >> 1


def mod(a, m=P):
    """
    mod reduces a into [0, m).
    """
    return a % m


def add(a, b):
    """
    add returns a+b mod P.
    """
    return (a + b) % P


def sub(a, b):
    """
    sub returns a-b mod P. The result is never negative.
    """
    return (a - b) % P


def mul(a, b):
    """
    mul returns a*b mod P.
    """
    return (a * b) % P


def neg(a):
    """
    neg returns -a mod P.
    """
    return (-a) % P


def exp(base, exponent, modulus=P):
    """
    exp returns base**exponent mod modulus, the verifier's bigModExp.

    Args:
        base (int): The base. Need not be reduced.
        exponent (int): A non-negative exponent.
        modulus (int): The modulus. Defaults to the field prime.

    Returns:
        int: The reduced power.
    """
    if exponent < 0:
        raise VRFError("negative exponent %d" % exponent)
    return pow(base, exponent, modulus)


def inverse(a):
    """
    inverse returns the multiplicative inverse of a mod P, by Fermat's little
    theorem.

    Raises:
        VRFError: a is zero mod P and has no inverse.
    """
    if a % P == 0:
        raise VRFError("zero has no inverse")
    return exp(a, P - 2)


def squareRoot(a):
    """
    squareRoot returns a^((P+1)/4) mod P. This is a square root of a only when
    a is a square; callers must check that separately with isSquare. Either
    root may be returned.
    """
    return exp(a, SQRT_POWER)


def isSquare(a):
    """
    isSquare is true iff a is a non-zero quadratic residue mod P, by Euler's
    criterion. Since -1 is not a square mod P, for any non-zero a exactly one
    of a and P-a is a square.
    """
    return exp(a, EULER_POWER) == 1


def ySquared(x):
    """
    ySquared returns x³+B mod P, the square of the y ordinate of any curve
    point with x ordinate x.
    """
    xCubed = mul(x, mul(x, x))
    return add(xCubed, B)


def isCurveXOrdinate(x):
    """
    isCurveXOrdinate is true iff there is a curve point with x ordinate x.
    """
    return isSquare(ySquared(x))
