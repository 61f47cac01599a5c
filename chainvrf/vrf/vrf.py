"""
Copyright (c) 2020, the Decred developers
See LICENSE for details

Verifiable Random Function over secp256k1, compatible with the on-chain
VRF.sol verifier.

Given a secret key sk with public key pk = sk*G, and a seed, the VRF output is
keccak256(gamma), where gamma = sk*hashToCurve(pk, seed). A proof that gamma
was computed correctly is a Schnorr-style proof of equality of the discrete
logarithms of pk and gamma, with respect to G and hashToCurve(pk, seed). This
follows the IETF draft-irtf-cfrg-vrf-05 construction, with a few changes made
to keep on-chain verification cheap:

  - Points are hashed with keccak256, and their "addresses" (the last 20 bytes
    of keccak256 of the point) stand in for full points where the verifier
    only needs equality, since ecrecover can check a linear combination with
    the generator against an address.
  - hashToCurve uses try-and-increment, rehashing the candidate x ordinate
    until it lies on the curve.
  - The verifier is handed the products c*gamma and s*hash and an inverse of z
    for their sum, which it checks rather than computes.

The functions here mirror the verifier's functions, down to the order in which
it rejects a bad proof.
"""

from chainvrf import VRFError
from chainvrf.crypto.crypto import ethereumAddress, keccak256, validPublicKey
from chainvrf.crypto import rando
from chainvrf.crypto.secp256k1 import field
from chainvrf.crypto.secp256k1.curve import AffinePoint, curve, longMarshal
from chainvrf.errors import (
    AddressMismatch,
    ChallengeMismatch,
    DegenerateNonce,
    HashToCurveExhausted,
    InvalidKey,
    InvalidSeed,
    MultiplicationCheckFailed,
    NotOnCurve,
    VerificationError,
)
from chainvrf.util import helpers
from chainvrf.util.encode import ADDRESS_LEN, UINT256_MAX, ByteArray, intFromBytes, uint256


log = helpers.getLogger("VRF")

Generator = curve.G

# Domain separators, so that no hash computed for one purpose is ever reused
# for another.
HASH_TO_CURVE_HASH_PREFIX = uint256(1)
SCALAR_FROM_CURVE_POINTS_HASH_PREFIX = uint256(2)

# The verifier rehashes until it finds a curve point, without limit. Each
# candidate succeeds with probability ~1/2, so 256 failures in a row do not
# happen for honest input.
DEFAULT_MAX_HASH_ATTEMPTS = 256

# Attempts at a fresh nonce before generateProof gives up.
MAX_NONCE_ATTEMPTS = 8


def fieldHash(msg):
    """
    fieldHash hashes msg to a uniformly distributed element of GF(P), by
    rehashing keccak256 until the result is less than P. Since P is just under
    2^256, a second hash is practically never needed.

    Args:
        msg (bytes-like): The message.

    Returns:
        int: The field element.
    """
    rv = intFromBytes(keccak256(msg))
    while rv >= field.P:
        rv = intFromBytes(keccak256(uint256(rv)))
    return rv


def checkSeed(seed):
    if not isinstance(seed, int) or seed < 0 or seed > UINT256_MAX:
        raise InvalidSeed("seed must be a uint256")


def hashToCurve(pk, input, maxAttempts=DEFAULT_MAX_HASH_ATTEMPTS, ordinates=None):
    """
    hashToCurve is a one-way hash function onto the curve, identical to the
    verifier's hashToCurve.

    The first candidate x ordinate is fieldHash(1 ‖ pk ‖ input); while x³+7 is
    not a square, x is replaced by fieldHash(x). The returned point is the one
    over x with even y.

    Args:
        pk (AffinePoint): The public key. Must be on the curve.
        input (int): The seed, a uint256.
        maxAttempts (int): How many rehashes to allow before giving up.
        ordinates (func(int)): optional. Called with each candidate x.

    Returns:
        AffinePoint: The curve point.

    Raises:
        InvalidKey: pk is not on the curve.
        InvalidSeed: input is not a uint256.
        HashToCurveExhausted: maxAttempts rehashes did not find a point.
    """
    if not validPublicKey(pk):
        raise InvalidKey("bad public key input to hashToCurve")
    checkSeed(input)
    x = fieldHash(HASH_TO_CURVE_HASH_PREFIX + longMarshal(pk) + uint256(input))
    attempts = 0
    if ordinates:
        ordinates(x)
    while not field.isCurveXOrdinate(x):
        attempts += 1
        if attempts > maxAttempts:
            raise HashToCurveExhausted(maxAttempts)
        x = fieldHash(uint256(x))
        if ordinates:
            ordinates(x)
    y = field.squareRoot(field.ySquared(x))
    if not isEven(y):
        y = field.neg(y)
    return AffinePoint(x, y)


def isEven(i):
    return i % 2 == 0


def scalarFromCurvePoints(hash, pk, gamma, uWitness, v):
    """
    scalarFromCurvePoints computes the Fiat-Shamir challenge,

        keccak256(2 ‖ hash ‖ pk ‖ gamma ‖ v ‖ uWitness)

    with points long-marshaled and uWitness as its 20 raw bytes. This is the
    verifier's abi.encodePacked layout; the digest is not reduced modulo the
    group order, as the verifier does not reduce it.

    Args:
        hash (AffinePoint): hashToCurve(pk, seed).
        pk (AffinePoint): The public key.
        gamma (AffinePoint): The VRF point.
        uWitness (ByteArray): The address of the commitment u.
        v (AffinePoint): The commitment v.

    Returns:
        int: The challenge.
    """
    uWitness = ByteArray(uWitness)
    if len(uWitness) != ADDRESS_LEN:
        raise VRFError("uWitness must be %d bytes" % ADDRESS_LEN)
    msg = SCALAR_FROM_CURVE_POINTS_HASH_PREFIX
    for p in (hash, pk, gamma, v):
        msg += longMarshal(p)
    msg += uWitness.bytes()
    return intFromBytes(keccak256(msg))


def ecmulVerify(multiplicand, scalar, product):
    """
    ecmulVerify is true iff scalar*multiplicand = product, compared by address
    as the verifier does with ecrecover. The verifier reverts on a zero scalar;
    here it just fails the check. ecrecover also returns the zero address when
    multiplicand.x is not below N, or when scalar*multiplicand.x ≡ 0 (mod N),
    so those fail too.
    """
    if scalar % curve.N == 0:
        return False
    if multiplicand.x >= curve.N or (scalar * multiplicand.x) % curve.N == 0:
        return False
    actual = ethereumAddress(curve.scalarMult(scalar, multiplicand))
    return actual == ethereumAddress(product)


def verifyLinearCombinationWithGenerator(c, p, s, lcWitness):
    """
    verifyLinearCombinationWithGenerator is true iff lcWitness is the address
    of c*p + s*G.

    The verifier gets this from ecrecover(-s*p.x, v, p.x, c*p.x), where v is
    p.y's parity. That returns the zero address when p.x is not below N, or when
    c*p.x ≡ 0 (mod N), so those cases fail here too.

    Raises:
        AddressMismatch: lcWitness is the zero address.
    """
    lcWitness = ByteArray(lcWitness)
    if lcWitness.iszero():
        raise AddressMismatch("bad witness")
    if p.x >= curve.N or (c * p.x) % curve.N == 0:
        return False
    return ethereumAddress(curve.linearCombination(c, p, s, Generator)) == lcWitness


def linearCombination(c, p1, cp1Witness, s, p2, sp2Witness, zInv):
    """
    linearCombination returns c*p1 + s*p2, given the claimed products and an
    inverse of the z ordinate of their projective sum, all of which it checks.

    Raises:
        MultiplicationCheckFailed: the summands share an x ordinate, or a
            claimed product is wrong.
        InvalidInverse: zInv is not the inverse of the sum's z ordinate.
    """
    if (cp1Witness.x - sp2Witness.x) % field.P == 0:
        raise MultiplicationCheckFailed("points in sum must be distinct")
    if not ecmulVerify(p1, c, cp1Witness):
        raise MultiplicationCheckFailed("First multiplication check failed")
    if not ecmulVerify(p2, s, sp2Witness):
        raise MultiplicationCheckFailed("Second multiplication check failed")
    return curve.affineECAdd(cp1Witness, sp2Witness, zInv)


def verifyVRFProof(
    pk,
    gamma,
    c,
    s,
    seed,
    uWitness,
    cGammaWitness,
    sHashWitness,
    zInv,
    maxAttempts=DEFAULT_MAX_HASH_ATTEMPTS,
):
    """
    verifyVRFProof checks a proof in the verifier's order of operations,
    raising at the first failed check with the verifier's revert reason.

    Raises:
        NotOnCurve, AddressMismatch, MultiplicationCheckFailed, InvalidInverse,
        ChallengeMismatch, HashToCurveExhausted.
    """
    if not curve.isOnCurve(pk):
        raise NotOnCurve("public key is not on curve")
    if not curve.isOnCurve(gamma):
        raise NotOnCurve("gamma is not on curve")
    if not curve.isOnCurve(cGammaWitness):
        raise NotOnCurve("cGammaWitness is not on curve")
    if not curve.isOnCurve(sHashWitness):
        raise NotOnCurve("sHashWitness is not on curve")
    # pk plays the role of Y in step 5 of section 5.3 of the IETF draft, with
    # u's address in place of u. The terms are added, where the draft subtracts,
    # because s is computed with the opposite sign.
    if not verifyLinearCombinationWithGenerator(c, pk, s, uWitness):
        raise AddressMismatch("addr(c*pk+s*g)≠_uWitness")
    hash = hashToCurve(pk, seed, maxAttempts=maxAttempts)
    v = linearCombination(c, gamma, cGammaWitness, s, hash, sHashWitness, zInv)
    derivedC = scalarFromCurvePoints(hash, pk, gamma, uWitness, v)
    if c != derivedC:
        raise ChallengeMismatch("invalid proof")


def verify(publicKey, seed, proof, maxAttempts=DEFAULT_MAX_HASH_ATTEMPTS):
    """
    verify checks that proof is a valid proof, for the expected public key and
    seed, of the VRF output it carries.

    Args:
        publicKey (AffinePoint): The expected public key.
        seed (int): The expected seed.
        proof (SolidityProof): The proof and its verifier witnesses.
        maxAttempts (int): The hashToCurve rehash limit.

    Returns:
        bool: Whether the proof is valid.
        str: The reason it is not, else an empty string.
    """
    p = proof.proof
    if p.publicKey != publicKey:
        return False, "public key mismatch"
    if p.seed != seed:
        return False, "seed mismatch"
    if not isinstance(p.seed, int) or not 0 <= p.seed <= UINT256_MAX:
        return False, "seed must be a uint256"
    if len(ByteArray(p.uWitness)) != ADDRESS_LEN:
        return False, "uWitness must be %d bytes" % ADDRESS_LEN
    try:
        verifyVRFProof(
            p.publicKey,
            p.gamma,
            p.c,
            p.s,
            p.seed,
            p.uWitness,
            proof.cGammaWitness,
            proof.sHashWitness,
            proof.zInv,
            maxAttempts=maxAttempts,
        )
    except VerificationError as e:
        log.debug(f"VRF proof rejected: {e.reason}")
        return False, e.reason
    except HashToCurveExhausted as e:
        log.warning(f"VRF proof rejected: {e}")
        return False, str(e)
    if p.output != vrfOutput(p.gamma):
        return False, "output mismatch"
    return True, ""


def vrfOutput(gamma):
    """
    vrfOutput is the VRF output for the point gamma, keccak256(gamma) as an
    integer.
    """
    return intFromBytes(keccak256(longMarshal(gamma)))


class Proof:
    """
    Proof is a VRF output, with a proof that it was computed as mandated by the
    secret key for publicKey, from seed.
    """

    def __init__(self, publicKey, gamma, c, s, seed, output, uWitness):
        """
        Args:
            publicKey (AffinePoint): secretKey*G.
            gamma (AffinePoint): secretKey*hashToCurve(publicKey, seed).
            c (int): The Fiat-Shamir challenge.
            s (int): nonce - c*secretKey mod N.
            seed (int): The VRF input.
            output (int): keccak256(gamma), the VRF output.
            uWitness (ByteArray): The address of c*publicKey + s*G.
        """
        self.publicKey = publicKey
        self.gamma = gamma
        self.c = c
        self.s = s
        self.seed = seed
        self.output = output
        self.uWitness = ByteArray(uWitness)

    def __eq__(self, other):
        if not isinstance(other, Proof):
            return NotImplemented
        return (
            self.publicKey == other.publicKey
            and self.gamma == other.gamma
            and self.c == other.c
            and self.s == other.s
            and self.seed == other.seed
            and self.output == other.output
            and self.uWitness == other.uWitness
        )

    def __repr__(self):
        return (
            f"Proof(publicKey={self.publicKey!r}, gamma={self.gamma!r}, "
            f"c=0x{self.c:x}, s=0x{self.s:x}, seed=0x{self.seed:x}, "
            f"output=0x{self.output:x}, uWitness={self.uWitness.hex()})"
        )

    def wellFormed(self):
        """
        wellFormed is true iff the proof's fields have the right types and
        ranges.
        """
        return (
            validPublicKey(self.publicKey)
            and validPublicKey(self.gamma)
            and isinstance(self.c, int)
            and 0 <= self.c <= UINT256_MAX
            and curve.representsScalar(self.s)
            and isinstance(self.seed, int)
            and 0 <= self.seed <= UINT256_MAX
            and len(self.uWitness) == ADDRESS_LEN
        )

    def verifyVRFProof(self, maxAttempts=DEFAULT_MAX_HASH_ATTEMPTS):
        """
        verifyVRFProof is true iff the proof is valid. Unlike the on-chain
        verifier, it needs no precomputed witnesses, since it can afford to
        compute the linear combinations itself.

        Returns:
            bool: Whether the proof is valid.

        Raises:
            VRFError: The proof is not well formed.
        """
        if not self.wellFormed():
            raise VRFError("badly-formatted proof")
        h = hashToCurve(self.publicKey, self.seed, maxAttempts=maxAttempts)
        try:
            checkCGammaNotEqualToSHash(self.c, self.gamma, self.s, h)
        except DegenerateNonce:
            log.debug("c*gamma and s*hash share an x ordinate")
            return False
        # publicKey = secretKey*G. See generateProofWithNonce for u, v, m, s.
        # c*secretKey*G + (m - c*secretKey)*G = m*G = u
        uPrime = curve.linearCombination(self.c, self.publicKey, self.s, Generator)
        # c*secretKey*h + (m - c*secretKey)*h = m*h = v
        vPrime = curve.linearCombination(self.c, self.gamma, self.s, h)
        uWitness = ethereumAddress(uPrime)
        cPrime = scalarFromCurvePoints(h, self.publicKey, self.gamma, uWitness, vPrime)
        return (
            self.c == cPrime
            and self.uWitness == uWitness
            and self.output == vrfOutput(self.gamma)
        )


def checkCGammaNotEqualToSHash(c, gamma, s, hash):
    """
    The verifier cannot add c*gamma and s*hash when they have the same x
    ordinate.

    Raises:
        DegenerateNonce: They do.
    """
    cGamma = curve.scalarMult(c, gamma)
    sHash = curve.scalarMult(s, hash)
    if cGamma.x == sHash.x:
        raise DegenerateNonce("pick a different nonce; c*gamma and s*hash collide")


def generateProofWithNonce(
    secretKey, seed, nonce, maxAttempts=DEFAULT_MAX_HASH_ATTEMPTS
):
    """
    generateProofWithNonce returns the VRF output for seed under secretKey,
    with a proof that uses nonce as its commitment randomness.

    The nonce must be secret, uniformly random and never used twice with the
    same key; a repeated nonce reveals the secret key. Only tests should call
    this directly.

    Args:
        secretKey (int): A scalar in [1, N).
        seed (int): The VRF input, a uint256.
        nonce (int): A scalar in [1, N).
        maxAttempts (int): The hashToCurve rehash limit.

    Returns:
        Proof: The proof.

    Raises:
        InvalidKey, InvalidSeed, HashToCurveExhausted, DegenerateNonce.
    """
    if not (curve.representsScalar(secretKey) and secretKey != 0):
        raise InvalidKey("secret key must be in [1, group order)")
    checkSeed(seed)
    if not (curve.representsScalar(nonce) and nonce != 0):
        raise VRFError("nonce must be in [1, group order)")
    publicKey = curve.scalarBaseMult(secretKey)
    h = hashToCurve(publicKey, seed, maxAttempts=maxAttempts)
    gamma = curve.scalarMult(secretKey, h)
    u = curve.scalarBaseMult(nonce)
    uWitness = ethereumAddress(u)
    v = curve.scalarMult(nonce, h)
    c = scalarFromCurvePoints(h, publicKey, gamma, uWitness, v)
    # (m - c*secretKey) % GroupOrder
    s = (nonce - c * secretKey) % curve.N
    checkCGammaNotEqualToSHash(c, gamma, s, h)
    rv = Proof(
        publicKey=publicKey,
        gamma=gamma,
        c=c,
        s=s,
        seed=seed,
        output=vrfOutput(gamma),
        uWitness=uWitness,
    )
    if not rv.verifyVRFProof(maxAttempts=maxAttempts):
        raise VRFError("constructed invalid proof")
    log.debug(f"generated VRF proof for seed 0x{seed:x}")
    return rv


def generateProof(secretKey, seed, maxAttempts=DEFAULT_MAX_HASH_ATTEMPTS):
    """
    generateProof returns the VRF output for seed under secretKey, with a proof,
    using a fresh random nonce.

    Args:
        secretKey (int): A scalar in [1, N).
        seed (int): The VRF input, a uint256.
        maxAttempts (int): The hashToCurve rehash limit.

    Returns:
        Proof: The proof.
    """
    for _ in range(MAX_NONCE_ATTEMPTS):
        try:
            return generateProofWithNonce(
                secretKey, seed, rando.randomScalar(), maxAttempts=maxAttempts
            )
        except DegenerateNonce:
            # Cryptographically impossible, but try again if it ever happens.
            log.warning("VRF nonce rejected, retrying with a fresh one")
    raise DegenerateNonce(f"no usable nonce in {MAX_NONCE_ATTEMPTS} attempts")
