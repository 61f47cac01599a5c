"""
Copyright (c) 2020, the Decred developers
See LICENSE for details

Errors raised while generating, encoding and verifying VRF proofs. Every
verification failure carries the revert string the on-chain verifier would
have produced for the same input, in its `reason` attribute.
"""

from chainvrf import VRFError


class InvalidKey(VRFError):
    """
    The secret key is not a scalar in [1, group order), or a public key is not
    a valid curve point.
    """

    pass


class InvalidSeed(VRFError):
    """
    The seed does not fit in a uint256.
    """

    pass


class HashToCurveExhausted(VRFError):
    """
    No curve point was found within the allowed number of rehashes. For honest
    input this happens with negligible probability.
    """

    def __init__(self, attempts):
        super().__init__(f"no curve point found after {attempts} attempts")
        self.attempts = attempts


class DegenerateNonce(VRFError):
    """
    The nonce yields c*gamma and s*hash with equal x ordinates, which the
    verifier cannot add. Generate again with a different nonce.
    """

    pass


class MalformedProof(VRFError):
    """
    A marshaled proof has the wrong length.
    """

    pass


class MalformedLog(VRFError):
    """
    An event log does not have the shape of the expected event.
    """

    pass


class VerificationError(VRFError):
    """
    VerificationError is the base class of proof verification failures.
    """

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


class NotOnCurve(VerificationError):
    pass


class InvalidInverse(VerificationError):
    pass


class MultiplicationCheckFailed(VerificationError):
    pass


class AddressMismatch(VerificationError):
    pass


class ChallengeMismatch(VerificationError):
    pass


class CoordinatorError(VRFError):
    """
    A coordinator operation was rejected, as the contract would revert it.
    """

    pass


class InsufficientBalance(CoordinatorError):
    pass
