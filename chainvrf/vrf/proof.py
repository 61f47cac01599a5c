"""
Copyright (c) 2020, the Decred developers
See LICENSE for details

Marshaling of VRF proofs for the on-chain verifier.

A marshaled proof is the ABI encoding of

    (uint256[2] pk, uint256[2] gamma, uint256 c, uint256 s, uint256 seed,
     address uWitness, uint256[2] cGammaWitness, uint256[2] sHashWitness,
     uint256 zInv)

which is a flat run of 32-byte words. The address is right-aligned in its word
and the verifier reads only its low 20 bytes, so the 12 bytes of padding ahead
of it have no effect on verification.
"""

from chainvrf import VRFError
from chainvrf.crypto.crypto import ethereumAddress
from chainvrf.crypto.secp256k1 import field
from chainvrf.crypto.secp256k1.curve import (
    LONG_MARSHAL_LEN,
    curve,
    longMarshal,
    longUnmarshal,
)
from chainvrf.errors import MalformedProof
from chainvrf.util import helpers
from chainvrf.util.encode import ADDRESS_LEN, WORD_LEN, intFromBytes, uint256

from . import vrf


log = helpers.getLogger("PROOF")

# Length of marshaled proof, in bytes.
PROOF_LENGTH = (
    LONG_MARSHAL_LEN  # PublicKey
    + LONG_MARSHAL_LEN  # Gamma
    + WORD_LEN  # C
    + WORD_LEN  # S
    + WORD_LEN  # Seed
    + WORD_LEN  # uWitness (gets padded to 256 bits, even though it's only 160)
    + LONG_MARSHAL_LEN  # cGammaWitness
    + LONG_MARSHAL_LEN  # sHashWitness
    + WORD_LEN  # zInv (Leave Output out, because that can be efficiently calculated)
)

# Offsets of each field in a marshaled proof.
PK_OFFSET = 0
GAMMA_OFFSET = PK_OFFSET + LONG_MARSHAL_LEN
C_OFFSET = GAMMA_OFFSET + LONG_MARSHAL_LEN
S_OFFSET = C_OFFSET + WORD_LEN
SEED_OFFSET = S_OFFSET + WORD_LEN
UWITNESS_OFFSET = SEED_OFFSET + WORD_LEN
CGAMMA_OFFSET = UWITNESS_OFFSET + WORD_LEN
SHASH_OFFSET = CGAMMA_OFFSET + LONG_MARSHAL_LEN
ZINV_OFFSET = SHASH_OFFSET + LONG_MARSHAL_LEN

# The padding bytes of the uWitness word, which the verifier ignores.
UWITNESS_PADDING = range(UWITNESS_OFFSET, UWITNESS_OFFSET + WORD_LEN - ADDRESS_LEN)


class SolidityProof:
    """
    SolidityProof is a Proof with the extra values the verifier needs to check
    it cheaply: the products c*gamma and s*hash, and the inverse of the z
    ordinate of their projective sum.
    """

    def __init__(self, proof, cGammaWitness, sHashWitness, zInv):
        """
        Args:
            proof (Proof): The proof.
            cGammaWitness (AffinePoint): c*gamma.
            sHashWitness (AffinePoint): s*hashToCurve(pk, seed).
            zInv (int): Inverse of z in projectiveECAdd(cGammaWitness,
                sHashWitness).
        """
        self.proof = proof
        self.cGammaWitness = cGammaWitness
        self.sHashWitness = sHashWitness
        self.zInv = zInv

    @staticmethod
    def fromProof(proof, maxAttempts=vrf.DEFAULT_MAX_HASH_ATTEMPTS):
        """
        fromProof precalculates the verifier witnesses for proof.

        Args:
            proof (Proof): A proof, such as one from vrf.generateProof.
            maxAttempts (int): The hashToCurve rehash limit.

        Returns:
            SolidityProof: The proof with its witnesses.

        Raises:
            VRFError: proof.uWitness is not the address of c*pk + s*G, so the
                verifier would reject it.
        """
        u = curve.linearCombination(proof.c, proof.publicKey, proof.s, curve.G)
        uWitness = ethereumAddress(u)
        if uWitness != proof.uWitness:
            raise VRFError("proof uWitness is not the address of c*pk+s*g")
        cGammaWitness = curve.scalarMult(proof.c, proof.gamma)
        hash = vrf.hashToCurve(proof.publicKey, proof.seed, maxAttempts=maxAttempts)
        sHashWitness = curve.scalarMult(proof.s, hash)
        z = curve.projectiveECAdd(cGammaWitness, sHashWitness).z
        return SolidityProof(proof, cGammaWitness, sHashWitness, field.inverse(z))

    def __eq__(self, other):
        if not isinstance(other, SolidityProof):
            return NotImplemented
        return (
            self.proof == other.proof
            and self.cGammaWitness == other.cGammaWitness
            and self.sHashWitness == other.sHashWitness
            and self.zInv == other.zInv
        )

    def __repr__(self):
        return (
            f"SolidityProof(proof={self.proof!r}, "
            f"cGammaWitness={self.cGammaWitness!r}, "
            f"sHashWitness={self.sHashWitness!r}, zInv=0x{self.zInv:x})"
        )

    def marshal(self):
        """
        marshal encodes the proof for the verifier contract.

        Returns:
            bytes: The PROOF_LENGTH-byte marshaled proof.
        """
        p = self.proof
        b = bytearray()
        b += longMarshal(p.publicKey)
        b += longMarshal(p.gamma)
        b += uint256(p.c)
        b += uint256(p.s)
        b += uint256(p.seed)
        b += p.uWitness.word()  # Left-padded to 32 bytes, with zeros
        b += longMarshal(self.cGammaWitness)
        b += longMarshal(self.sHashWitness)
        b += uint256(self.zInv)
        if len(b) != PROOF_LENGTH:
            raise MalformedProof(f"wrong proof length: {len(b)}")
        return bytes(b)

    @staticmethod
    def unmarshal(b):
        """
        unmarshal decodes a marshaled proof. Points are not checked for curve
        membership, and the padding ahead of uWitness is discarded.

        Args:
            b (bytes-like): The marshaled proof.

        Returns:
            SolidityProof: The decoded proof.

        Raises:
            MalformedProof: b is not PROOF_LENGTH bytes long.
        """
        b = bytes(b)
        if len(b) != PROOF_LENGTH:
            raise MalformedProof(
                f"VRF proof is {len(b)} bytes long, should be {PROOF_LENGTH}"
            )

        def point(offset):
            return longUnmarshal(b[offset : offset + LONG_MARSHAL_LEN])

        def word(offset):
            return intFromBytes(b[offset : offset + WORD_LEN])

        gamma = point(GAMMA_OFFSET)
        proof = vrf.Proof(
            publicKey=point(PK_OFFSET),
            gamma=gamma,
            c=word(C_OFFSET),
            s=word(S_OFFSET),
            seed=word(SEED_OFFSET),
            output=vrf.vrfOutput(gamma),
            uWitness=b[UWITNESS_OFFSET + WORD_LEN - ADDRESS_LEN : CGAMMA_OFFSET],
        )
        return SolidityProof(
            proof,
            cGammaWitness=point(CGAMMA_OFFSET),
            sHashWitness=point(SHASH_OFFSET),
            zInv=word(ZINV_OFFSET),
        )


def encode(proof):
    """
    encode marshals a Proof or SolidityProof for the verifier contract. A bare
    Proof has its witnesses computed first.
    """
    if isinstance(proof, vrf.Proof):
        proof = SolidityProof.fromProof(proof)
    return proof.marshal()


def decode(b):
    """
    decode is SolidityProof.unmarshal.
    """
    return SolidityProof.unmarshal(b)


def randomValueFromVRFProof(b, maxAttempts=vrf.DEFAULT_MAX_HASH_ATTEMPTS):
    """
    randomValueFromVRFProof is the verifier's entry point. It decodes and
    verifies a marshaled proof, returning the VRF output.

    Args:
        b (bytes-like): The marshaled proof.
        maxAttempts (int): The hashToCurve rehash limit.

    Returns:
        int: The VRF output.

    Raises:
        MalformedProof: b has the wrong length.
        VerificationError: The proof is invalid. The reason attribute is the
            verifier's revert reason.
    """
    sp = decode(b)
    p = sp.proof
    vrf.verifyVRFProof(
        p.publicKey,
        p.gamma,
        p.c,
        p.s,
        p.seed,
        p.uWitness,
        sp.cGammaWitness,
        sp.sHashWitness,
        sp.zInv,
        maxAttempts=maxAttempts,
    )
    log.debug(f"verified VRF proof for seed {p.seed}")
    return p.output
