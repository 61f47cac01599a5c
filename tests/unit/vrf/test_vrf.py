"""
Copyright (c) 2020, the Decred developers
See LICENSE for details
"""

import pytest

from chainvrf import VRFError
from chainvrf.crypto.crypto import ethereumAddress, keccak256
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
)
from chainvrf.util.encode import ByteArray, intFromBytes, uint256
from chainvrf.vrf import vrf
from chainvrf.vrf.proof import SolidityProof, randomValueFromVRFProof


def test_fieldHash(rnd, samples):
    for _ in samples:
        msg = rnd.getrandbits(256).to_bytes(32, "big")
        h = vrf.fieldHash(msg)
        assert 0 <= h < field.P
        # keccak output is practically always below P, so there is no rehash.
        assert h == intFromBytes(keccak256(msg))


class TestHashToCurve:
    def test_onCurve(self, randPoint, randUint256, samples):
        for _ in samples:
            pk, seed = randPoint(), randUint256()
            h = vrf.hashToCurve(pk, seed)
            assert curve.isOnCurve(h)
            assert h.y % 2 == 0
            assert vrf.hashToCurve(pk, seed) == h

    def test_firstOrdinate(self):
        pk = curve.G
        ordinates = []
        h = vrf.hashToCurve(pk, 2, ordinates=ordinates.append)
        first = vrf.fieldHash(uint256(1) + longMarshal(pk) + uint256(2))
        assert ordinates[0] == first
        assert ordinates[-1] == h.x
        for x, nextX in zip(ordinates, ordinates[1:]):
            assert not field.isCurveXOrdinate(x)
            assert nextX == vrf.fieldHash(uint256(x))

    def test_exhausted(self):
        pk = curve.G
        # Find a seed whose first candidate ordinate is off the curve.
        for seed in range(64):
            ordinates = []
            vrf.hashToCurve(pk, seed, ordinates=ordinates.append)
            if len(ordinates) > 1:
                break
        else:
            raise AssertionError("no seed needing a rehash")
        rehashes = len(ordinates) - 1
        with pytest.raises(HashToCurveExhausted) as excinfo:
            vrf.hashToCurve(pk, seed, maxAttempts=0)
        assert excinfo.value.attempts == 0
        with pytest.raises(HashToCurveExhausted):
            vrf.hashToCurve(pk, seed, maxAttempts=rehashes - 1)
        assert curve.isOnCurve(vrf.hashToCurve(pk, seed, maxAttempts=rehashes))

    def test_badInput(self):
        with pytest.raises(InvalidKey):
            vrf.hashToCurve(AffinePoint(1, 1), 1)
        for seed in (-1, 2 ** 256, 1.5, "1"):
            with pytest.raises(InvalidSeed):
                vrf.hashToCurve(curve.G, seed)


def test_scalarFromCurvePoints(randPoint):
    hash, pk, gamma, v = randPoint(), randPoint(), randPoint(), randPoint()
    uWitness = ethereumAddress(randPoint())
    c = vrf.scalarFromCurvePoints(hash, pk, gamma, uWitness, v)
    msg = (
        uint256(2)
        + longMarshal(hash)
        + longMarshal(pk)
        + longMarshal(gamma)
        + longMarshal(v)
        + uWitness.bytes()
    )
    assert c == intFromBytes(keccak256(msg))
    with pytest.raises(VRFError):
        vrf.scalarFromCurvePoints(hash, pk, gamma, uWitness.word(), v)


def test_ecmulVerify(randScalar, randPoint, samples):
    for _ in samples:
        k, p = randScalar(), randPoint()
        product = curve.scalarMult(k, p)
        assert vrf.ecmulVerify(p, k, product)
        assert not vrf.ecmulVerify(p, k + 1, product)
    assert not vrf.ecmulVerify(curve.G, 0, curve.scalarBaseMult(0))
    assert not vrf.ecmulVerify(curve.G, curve.N, curve.G)


def test_verifyLinearCombinationWithGenerator(randScalar, randPoint, samples):
    for _ in samples:
        c, s, p = randScalar(), randScalar(), randPoint()
        lc = ethereumAddress(curve.linearCombination(c, p, s, curve.G))
        assert vrf.verifyLinearCombinationWithGenerator(c, p, s, lc)
        assert not vrf.verifyLinearCombinationWithGenerator(c, p, s + 1, lc)
    with pytest.raises(AddressMismatch) as excinfo:
        vrf.verifyLinearCombinationWithGenerator(1, curve.G, 1, ByteArray(0, length=20))
    assert excinfo.value.reason == "bad witness"


def highXPoint():
    # ecrecover rejects an r of N or more, which some curve x ordinates are.
    x = curve.N
    while not field.isCurveXOrdinate(x):
        x += 1
    assert x < field.P
    return AffinePoint(x, field.squareRoot(field.ySquared(x)))


def test_highXOrdinate():
    p = highXPoint()
    assert curve.isOnCurve(p)
    assert not vrf.ecmulVerify(p, 3, curve.scalarMult(3, p))
    lc = ethereumAddress(curve.linearCombination(3, p, 5, curve.G))
    assert not vrf.verifyLinearCombinationWithGenerator(3, p, 5, lc)


def test_linearCombination(randScalar, randPoint):
    c, s = randScalar(), randScalar()
    p1, p2 = randPoint(), randPoint()
    cp1, sp2 = curve.scalarMult(c, p1), curve.scalarMult(s, p2)
    zInv = field.inverse(curve.projectiveECAdd(cp1, sp2).z)
    assert vrf.linearCombination(c, p1, cp1, s, p2, sp2, zInv) == curve.add(cp1, sp2)

    def reason(*args):
        with pytest.raises(MultiplicationCheckFailed) as excinfo:
            vrf.linearCombination(*args)
        return excinfo.value.reason

    assert reason(c, p1, cp1, c, p1, cp1, zInv) == "points in sum must be distinct"
    assert reason(c + 1, p1, cp1, s, p2, sp2, zInv) == "First multiplication check failed"
    assert reason(c, p1, cp1, s + 1, p2, sp2, zInv) == "Second multiplication check failed"


class TestProof:
    def test_endToEnd(self):
        proof = vrf.generateProof(1, 2)
        assert proof.publicKey == curve.G
        assert proof.seed == 2
        assert proof.verifyVRFProof()
        sp = SolidityProof.fromProof(proof)
        assert vrf.verify(curve.G, 2, sp) == (True, "")
        gamma = curve.scalarMult(1, vrf.hashToCurve(curve.G, 2))
        assert proof.gamma == gamma
        assert proof.output == intFromBytes(keccak256(longMarshal(gamma)))

    def test_random(self, randScalar, randUint256, samples):
        for _ in samples:
            sk, seed = randScalar(), randUint256()
            proof = vrf.generateProofWithNonce(sk, seed, randScalar())
            assert proof.wellFormed()
            assert proof.verifyVRFProof()
            pk = curve.scalarBaseMult(sk)
            sp = SolidityProof.fromProof(proof)
            assert vrf.verify(pk, seed, sp) == (True, "")

    def test_deterministic(self, randScalar):
        sk, nonce1, nonce2 = randScalar(), randScalar(), randScalar()
        a = vrf.generateProofWithNonce(sk, 7, nonce1)
        assert vrf.generateProofWithNonce(sk, 7, nonce1) == a
        # The output depends only on the key and seed.
        b = vrf.generateProofWithNonce(sk, 7, nonce2)
        assert b.output == a.output
        assert b.gamma == a.gamma
        assert b.c != a.c
        assert vrf.generateProofWithNonce(sk, 8, nonce1).output != a.output

    def test_tampered(self, randScalar):
        proof = vrf.generateProofWithNonce(randScalar(), 3, randScalar())
        proof.output ^= 1
        assert not proof.verifyVRFProof()
        proof.output ^= 1
        proof.c += 1
        assert not proof.verifyVRFProof()
        proof.c -= 1
        proof.uWitness = ByteArray(1, length=20)
        assert not proof.verifyVRFProof()

    def test_notWellFormed(self):
        proof = vrf.generateProof(5, 6)
        proof.s = curve.N
        assert not proof.wellFormed()
        with pytest.raises(VRFError):
            proof.verifyVRFProof()

    def test_badInput(self):
        with pytest.raises(InvalidKey):
            vrf.generateProof(0, 1)
        with pytest.raises(InvalidKey):
            vrf.generateProof(curve.N, 1)
        with pytest.raises(InvalidSeed):
            vrf.generateProof(1, -1)
        with pytest.raises(InvalidSeed):
            vrf.generateProof(1, 2 ** 256)
        with pytest.raises(VRFError):
            vrf.generateProofWithNonce(1, 1, 0)

    def test_repr(self):
        proof = vrf.generateProof(1, 2)
        assert "publicKey=AffinePoint" in repr(proof)


class TestVerify:
    def test_mismatch(self):
        sp = SolidityProof.fromProof(vrf.generateProof(1, 2))
        otherKey = curve.scalarBaseMult(2)
        assert vrf.verify(otherKey, 2, sp) == (False, "public key mismatch")
        assert vrf.verify(curve.G, 3, sp) == (False, "seed mismatch")

    def test_reasons(self):
        sp = SolidityProof.fromProof(vrf.generateProof(1, 2))
        sp.proof.gamma = AffinePoint(sp.proof.gamma.x, sp.proof.gamma.y + 1)
        assert vrf.verify(curve.G, 2, sp) == (False, "gamma is not on curve")

        sp = SolidityProof.fromProof(vrf.generateProof(1, 2))
        sp.proof.c += 1
        assert vrf.verify(curve.G, 2, sp) == (False, "addr(c*pk+s*g)≠_uWitness")

        sp = SolidityProof.fromProof(vrf.generateProof(1, 2))
        sp.zInv = field.add(sp.zInv, 1)
        assert vrf.verify(curve.G, 2, sp) == (False, "invZ must be inverse of z")

        sp = SolidityProof.fromProof(vrf.generateProof(1, 2))
        sp.proof.output ^= 1
        assert vrf.verify(curve.G, 2, sp) == (False, "output mismatch")

    def test_verifyVRFProofOrder(self):
        sp = SolidityProof.fromProof(vrf.generateProof(1, 2))
        p = sp.proof
        offCurve = AffinePoint(1, 1)
        with pytest.raises(NotOnCurve) as excinfo:
            vrf.verifyVRFProof(
                offCurve, offCurve, p.c, p.s, p.seed, p.uWitness,
                sp.cGammaWitness, sp.sHashWitness, sp.zInv,
            )
        assert excinfo.value.reason == "public key is not on curve"
        with pytest.raises(NotOnCurve) as excinfo:
            vrf.verifyVRFProof(
                p.publicKey, p.gamma, p.c, p.s, p.seed, p.uWitness,
                offCurve, offCurve, sp.zInv,
            )
        assert excinfo.value.reason == "cGammaWitness is not on curve"
        with pytest.raises(NotOnCurve) as excinfo:
            vrf.verifyVRFProof(
                p.publicKey, p.gamma, p.c, p.s, p.seed, p.uWitness,
                sp.cGammaWitness, offCurve, sp.zInv,
            )
        assert excinfo.value.reason == "sHashWitness is not on curve"

    def test_invalidProof(self):
        # Consistent witnesses for a different gamma pass every check but the
        # challenge.
        sp = SolidityProof.fromProof(vrf.generateProof(1, 2))
        gamma = curve.scalarMult(2, sp.proof.gamma)
        sp.proof.gamma = gamma
        sp.proof.output = vrf.vrfOutput(gamma)
        sp.cGammaWitness = curve.scalarMult(sp.proof.c, gamma)
        z = curve.projectiveECAdd(sp.cGammaWitness, sp.sHashWitness).z
        sp.zInv = field.inverse(z)
        assert vrf.verify(curve.G, 2, sp) == (False, "invalid proof")
        with pytest.raises(ChallengeMismatch) as excinfo:
            randomValueFromVRFProof(sp.marshal())
        assert excinfo.value.reason == "invalid proof"

    def test_malformedFields(self):
        sp = SolidityProof.fromProof(vrf.generateProof(1, 2))
        sp.proof.seed = 2 ** 256
        assert vrf.verify(curve.G, 2 ** 256, sp) == (False, "seed must be a uint256")

        sp = SolidityProof.fromProof(vrf.generateProof(1, 2))
        sp.proof.uWitness = ByteArray(1, length=21)
        assert vrf.verify(curve.G, 2, sp) == (False, "uWitness must be 20 bytes")


class TestGenerateProof:
    def test_retry(self, monkeypatch):
        calls = []
        check = vrf.checkCGammaNotEqualToSHash

        def flaky(*a):
            calls.append(a)
            if len(calls) == 1:
                raise DegenerateNonce("collision")
            check(*a)

        monkeypatch.setattr(vrf, "checkCGammaNotEqualToSHash", flaky)
        assert vrf.generateProof(1, 2).verifyVRFProof()
        assert len(calls) > 1

    def test_giveUp(self, monkeypatch):
        def degenerate(*a):
            raise DegenerateNonce("collision")

        monkeypatch.setattr(vrf, "checkCGammaNotEqualToSHash", degenerate)
        with pytest.raises(DegenerateNonce):
            vrf.generateProof(1, 2)

    def test_checkCGammaNotEqualToSHash(self):
        h = vrf.hashToCurve(curve.G, 2)
        # c*h and s*h collide for s = ±c.
        with pytest.raises(DegenerateNonce):
            vrf.checkCGammaNotEqualToSHash(3, h, curve.N - 3, h)
        vrf.checkCGammaNotEqualToSHash(3, h, 4, h)
