"""
Copyright (c) 2019, Brian Stafford
Copyright (c) 2019-2020, The Decred developers
See LICENSE for details

Pure Python secp256k1 curve implementation, on immutable points.

References:
  [SECG]: Recommended Elliptic Curve Domain Parameters
    https://www.secg.org/sec2-v2.pdf

  [GECC]: Guide to Elliptic Curve Cryptography (Hankerson, Menezes, Vanstone)

Scalar multiplication is performed using Jacobian coordinates.  For a given
(x, y) position on the curve, the Jacobian coordinates are (x1, y1, z1)
where x = x1/z1^2 and y = y1/z1^3.

Separately, projectiveECAdd and affineECAdd reproduce the on-chain verifier's
point addition. It works in homogeneous projective coordinates, where
(x, y, z) represents (x/z, y/z), and defers its single inversion to a caller
supplied inverse of z.
"""

from chainvrf import VRFError
from chainvrf.errors import InvalidInverse
from chainvrf.util.encode import WORD_LEN, intFromBytes, uint256

from . import field
from .field import P, fromHex


COORDINATE_LEN = WORD_LEN
LONG_MARSHAL_LEN = 2 * COORDINATE_LEN


class AffinePoint:
    """
    AffinePoint is an (x, y) pair. Since this accepts arbitrary coordinates,
    it allows creation of points that are not on the secp256k1 curve; use
    Curve.isOnCurve to check. (0, 0) stands for the point at infinity, which
    is not on the curve.
    """

    def __init__(self, x, y):
        self.x = x
        self.y = y

    def __eq__(self, other):
        """
        Two AffinePoints are equivalent if they have the same X and Y
        coordinate.
        """
        if not isinstance(other, AffinePoint):
            return NotImplemented
        return (self.x == other.x) and (self.y == other.y)

    def __hash__(self):
        return hash((self.x, self.y))

    def __iter__(self):
        return iter((self.x, self.y))

    def __repr__(self):
        return "AffinePoint(0x%064x, 0x%064x)" % (self.x, self.y)

    def isInfinity(self):
        return self.x == 0 and self.y == 0


INFINITY = AffinePoint(0, 0)


class ProjectivePoint:
    """
    ProjectivePoint is a triple (x, y, z) representing the affine point
    (x/z, y/z) when z is non-zero. Equality is equality of the represented
    point, so differently scaled triples compare equal.
    """

    def __init__(self, x, y, z):
        self.x = x
        self.y = y
        self.z = z

    def __eq__(self, other):
        if not isinstance(other, ProjectivePoint):
            return NotImplemented
        z1, z2 = self.z % P, other.z % P
        if z1 == 0 or z2 == 0:
            return tuple(v % P for v in self) == tuple(v % P for v in other)
        return (
            field.mul(self.x, z2) == field.mul(other.x, z1)
            and field.mul(self.y, z2) == field.mul(other.y, z1)
        )

    def __hash__(self):
        if self.z % P == 0:
            return hash((self.x % P, self.y % P, 0))
        return hash(tuple(self.toAffine()))

    def __iter__(self):
        return iter((self.x, self.y, self.z))

    def __repr__(self):
        return "ProjectivePoint(0x%064x, 0x%064x, 0x%064x)" % (self.x, self.y, self.z)

    def toAffine(self, zInv=None):
        """
        toAffine divides through by z.

        Args:
            zInv (int): optional. A precomputed inverse of z. It is used as is,
                so it must be checked by the caller.

        Returns:
            AffinePoint: The affine representation.
        """
        if zInv is None:
            if self.z % P == 0:
                raise VRFError("projective point with z=0 has no affine form")
            zInv = field.inverse(self.z)
        return AffinePoint(field.mul(self.x, zInv), field.mul(self.y, zInv))


def projectiveSub(x1, z1, x2, z2):
    """
    projectiveSub returns x1/z1 - x2/z2 as a (numerator, denominator) pair.
    """
    num1 = field.mul(z2, x1)
    num2 = field.mul(P - x2, z1)
    return field.add(num1, num2), field.mul(z1, z2)


def projectiveMul(x1, z1, x2, z2):
    """
    projectiveMul returns (x1/z1)*(x2/z2) as a (numerator, denominator) pair.
    """
    return field.mul(x1, x2), field.mul(z1, z2)


def longMarshal(p):
    """
    longMarshal serializes a point as the 64-byte concatenation of its big
    endian x and y ordinates, which is how the verifier encodes a uint256[2].
    """
    return uint256(p.x) + uint256(p.y)


def longUnmarshal(b):
    """
    longUnmarshal is the inverse of longMarshal. The point is not checked for
    curve membership.
    """
    if len(b) != LONG_MARSHAL_LEN:
        raise VRFError(
            "marshaled point must be %d bytes, got %d" % (LONG_MARSHAL_LEN, len(b))
        )
    return AffinePoint(intFromBytes(b[:COORDINATE_LEN]), intFromBytes(b[COORDINATE_LEN:]))


_JACOBIAN_INFINITY = (0, 0, 0)


def _doubleJacobian(pt):
    """
    _doubleJacobian doubles the Jacobian point (x1, y1, z1).
    """
    # Point doubling formula for Jacobian coordinates for the secp256k1 curve,
    # from http://hyperelliptic.org/EFD/g1p/auto-shortw-jacobian-0.html#doubling-dbl-2009-l
    # A = X1^2, B = Y1^2, C = B^2, D = 2*((X1+B)^2-A-C)
    # E = 3*A, F = E^2, X3 = F-2*D, Y3 = E*(D-X3)-8*C
    # Z3 = 2*Y1*Z1
    x1, y1, z1 = pt
    # Doubling a point at infinity is still infinity.
    if y1 == 0 or z1 == 0:
        return _JACOBIAN_INFINITY
    a = x1 * x1 % P
    b = y1 * y1 % P
    c = b * b % P
    d = 2 * ((x1 + b) ** 2 - a - c) % P
    e = 3 * a % P
    f = e * e % P
    x3 = (f - 2 * d) % P
    y3 = (e * (d - x3) - 8 * c) % P
    z3 = 2 * y1 * z1 % P
    return x3, y3, z3


def _addJacobian(p1, p2):
    """
    _addJacobian adds the Jacobian points (x1, y1, z1) and (x2, y2, z2).
    """
    x1, y1, z1 = p1
    x2, y2, z2 = p2
    # A point at infinity is the identity according to the group law for
    # elliptic curve cryptography.  Thus, ∞ + P = P and P + ∞ = P.
    if z1 == 0:
        return p2
    if z2 == 0:
        return p1
    # http://hyperelliptic.org/EFD/g1p/auto-shortw-jacobian-0.html#addition-add-2007-bl
    # Z1Z1 = Z1^2, Z2Z2 = Z2^2, U1 = X1*Z2Z2, U2 = X2*Z1Z1, S1 = Y1*Z2*Z2Z2
    # S2 = Y2*Z1*Z1Z1, H = U2-U1, I = (2*H)^2, J = H*I, r = 2*(S2-S1)
    # V = U1*I
    # X3 = r^2-J-2*V, Y3 = r*(V-X3)-2*S1*J, Z3 = ((Z1+Z2)^2-Z1Z1-Z2Z2)*H
    z1z1 = z1 * z1 % P
    z2z2 = z2 * z2 % P
    u1 = x1 * z2z2 % P
    u2 = x2 * z1z1 % P
    s1 = y1 * z2 * z2z2 % P
    s2 = y2 * z1 * z1z1 % P
    if u1 == u2:
        if s1 == s2:
            # Since x1 == x2 and y1 == y2, point doubling must be done,
            # otherwise the addition would end up dividing by zero.
            return _doubleJacobian(p1)
        # Since x1 == x2 and y1 == -y2, the sum is the point at infinity.
        return _JACOBIAN_INFINITY
    h = (u2 - u1) % P
    i = 4 * h * h % P
    j = h * i % P
    r = 2 * (s2 - s1) % P
    v = u1 * i % P
    x3 = (r * r - j - 2 * v) % P
    y3 = (r * (v - x3) - 2 * s1 * j) % P
    z3 = ((z1 + z2) ** 2 - z1z1 - z2z2) * h % P
    return x3, y3, z3


def _jacobianToAffine(pt):
    x, y, z = pt
    if z == 0:
        return INFINITY
    zInv = field.inverse(z)
    zInv2 = zInv * zInv % P
    return AffinePoint(x * zInv2 % P, y * zInv2 * zInv % P)


class Curve:
    def __init__(self):
        self.BitSize = 256
        self.P = P
        self.N = fromHex(
            "FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141"
        )
        self.B = field.B
        self.Gx = fromHex(
            "79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798"
        )
        self.Gy = fromHex(
            "483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8"
        )
        self.G = AffinePoint(self.Gx, self.Gy)
        self.H = 1

    def isOnCurve(self, p):
        """
        isOnCurve returns boolean if the point p is on the secp256k1 curve.
        Coordinates must be reduced: a y ordinate of y+P is not accepted.
        """
        if not (0 <= p.x < P and 0 <= p.y < P):
            return False
        # y² = x³ + b
        return field.ySquared(p.x) == field.mul(p.y, p.y)

    def representsScalar(self, k):
        """
        representsScalar is true iff k is an integer in [0, N).
        """
        return isinstance(k, int) and 0 <= k < self.N

    def neg(self, p):
        """
        neg returns -p.
        """
        if p.isInfinity():
            return p
        return AffinePoint(p.x, field.neg(p.y))

    def scalarMult(self, k, p):
        """
        scalarMult returns k*p. k is reduced modulo the group order first, so
        any non-negative integer is accepted.

        Args:
            k (int): The scalar.
            p (AffinePoint): The multiplicand.

        Returns:
            AffinePoint: The product. INFINITY if k ≡ 0 or p is INFINITY.
        """
        k = k % self.N
        if k == 0 or p.isInfinity():
            return INFINITY
        base = (p.x, p.y, 1)
        acc = _JACOBIAN_INFINITY
        # Left-to-right double and add.
        for bit in bin(k)[2:]:
            acc = _doubleJacobian(acc)
            if bit == "1":
                acc = _addJacobian(acc, base)
        return _jacobianToAffine(acc)

    def scalarBaseMult(self, k):
        """
        scalarBaseMult returns k*G where G is the base point of the group.
        """
        return self.scalarMult(k, self.G)

    def add(self, p1, p2):
        """
        add returns the sum of p1 and p2, handling doubling and the point at
        infinity.
        """
        if p1.isInfinity():
            return p2
        if p2.isInfinity():
            return p1
        return _jacobianToAffine(_addJacobian((p1.x, p1.y, 1), (p2.x, p2.y, 1)))

    def linearCombination(self, c, p1, s, p2):
        """
        linearCombination returns c*p1 + s*p2.
        """
        return self.add(self.scalarMult(c, p1), self.scalarMult(s, p2))

    def projectiveECAdd(self, p, q):
        """
        projectiveECAdd returns p+q in projective coordinates, computed exactly
        as the verifier contract computes it, with no inversion.

        It takes the "point addition" equations for (sx, sy) from section
        3.1.2 of [GECC] and homogenizes them. The doubling equations are not
        implemented: for p == q the result is the degenerate triple (0, 0, 0),
        which has no affine form.

        Args:
            p (AffinePoint): The first summand.
            q (AffinePoint): The second summand.

        Returns:
            ProjectivePoint: The sum.
        """
        px, py = p.x, p.y
        qx, qy = q.x, q.y
        z1, z2 = 1, 1

        # (lx, lz) = (qy-py)/(qx-px), i.e., gradient of secant line.
        lx = field.add(qy, P - py % P)
        lz = field.add(qx, P - px % P)

        # sx = ((qy-py)/(qx-px))^2-px-qx, over denominator dx.
        sx, dx = projectiveMul(lx, lz, lx, lz)
        sx, dx = projectiveSub(sx, dx, px, z1)
        sx, dx = projectiveSub(sx, dx, qx, z2)

        # sy = ((qy-py)/(qx-px))(px-sx)-py, over denominator dy.
        sy, dy = projectiveSub(px, z1, sx, dx)
        sy, dy = projectiveMul(sy, dy, lx, lz)
        sy, dy = projectiveSub(sy, dy, py, z1)

        if dx != dy:
            # Cross-multiply to put everything over a common denominator.
            sx = field.mul(sx, dy)
            sy = field.mul(sy, dx)
            sz = field.mul(dx, dy)
        else:
            sz = dx
        return ProjectivePoint(sx, sy, sz)

    def affineECAdd(self, p1, p2, zInv):
        """
        affineECAdd returns p1+p2 in affine coordinates, using the supplied
        inverse of the z ordinate of projectiveECAdd(p1, p2). zInv is untrusted.

        Raises:
            InvalidInverse: zInv is not the inverse of z.
        """
        sum_ = self.projectiveECAdd(p1, p2)
        if field.mul(sum_.z, zInv) != 1:
            raise InvalidInverse("invZ must be inverse of z")
        return sum_.toAffine(zInv)


# curve is a global instance of the Curve that implements the curve parameters.
curve = Curve()

Generator = curve.G
