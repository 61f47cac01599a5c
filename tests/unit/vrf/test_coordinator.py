"""
Copyright (c) 2020, the Decred developers
See LICENSE for details
"""

import pytest

from chainvrf.crypto.crypto import SecretKey
from chainvrf.crypto.secp256k1.curve import AffinePoint
from chainvrf.errors import (
    CoordinatorError,
    InsufficientBalance,
    InvalidKey,
    VerificationError,
)
from chainvrf.util.encode import ByteArray
from chainvrf.vrf import proof, vrf
from chainvrf.vrf.coordinator import VRFCoordinator
from chainvrf.vrf.request import NewServiceAgreementLog, RandomnessRequestLog


ORACLE = ByteArray("0a" * 20)
CONSUMER = ByteArray("0c" * 20)
RECIPIENT = ByteArray("0e" * 20)
JOB_ID = ByteArray("6a6f62", length=32)
FEE = 10 ** 17


@pytest.fixture
def provingKey():
    return SecretKey(0xC0FFEE)


@pytest.fixture
def coordinator(provingKey, prepareLogger):
    c = VRFCoordinator()
    c.registerProvingKey(ORACLE, FEE, provingKey.pub, JOB_ID)
    return c


def fulfill(coordinator, provingKey, event):
    p = vrf.generateProof(provingKey.key, event.seed)
    return coordinator.fulfillRandomnessRequest(proof.encode(p))


class TestVRFCoordinator:
    def test_registerProvingKey(self, provingKey, coordinator):
        event = coordinator.logs[0]
        assert event == NewServiceAgreementLog(provingKey.keyHash(), FEE)
        with pytest.raises(CoordinatorError):
            coordinator.registerProvingKey(ORACLE, FEE, provingKey.pub, JOB_ID)
        with pytest.raises(InvalidKey):
            coordinator.registerProvingKey(ORACLE, FEE, AffinePoint(1, 1), JOB_ID)

    def test_requestRandomness(self, provingKey, coordinator):
        keyHash = provingKey.keyHash()
        event = coordinator.requestRandomness(CONSUMER, keyHash, FEE, 42)
        assert isinstance(event, RandomnessRequestLog)
        assert event.jobID == JOB_ID
        assert event.sender == CONSUMER
        assert event.fee == FEE
        assert RandomnessRequestLog.parse(event.rawLog()) == event
        # Repeated requests get fresh seeds.
        again = coordinator.requestRandomness(CONSUMER, keyHash, FEE, 42)
        assert again.seed != event.seed
        assert coordinator.logs[-2:] == [event, again]

        with pytest.raises(CoordinatorError):
            coordinator.requestRandomness(CONSUMER, keyHash, FEE - 1, 42)
        with pytest.raises(CoordinatorError):
            coordinator.requestRandomness(CONSUMER, ByteArray(1, length=32), FEE, 42)

    def test_fulfill(self, provingKey, coordinator):
        received = []
        coordinator.registerConsumer(CONSUMER, lambda rid, out: received.append((rid, out)))
        event = coordinator.requestRandomness(CONSUMER, provingKey.keyHash(), FEE, 42)
        assert coordinator.withdrawableTokens(ORACLE) == 0

        requestID, output = fulfill(coordinator, provingKey, event)
        assert requestID == event.requestID()
        assert received == [(requestID, output)]
        assert coordinator.withdrawableTokens(ORACLE) == FEE

        # A request is fulfilled only once.
        with pytest.raises(CoordinatorError):
            fulfill(coordinator, provingKey, event)
        assert coordinator.withdrawableTokens(ORACLE) == FEE

    def test_fulfillUnrequested(self, provingKey, coordinator):
        with pytest.raises(CoordinatorError):
            fulfill(coordinator, provingKey, RandomnessRequestLog(
                provingKey.keyHash(), 5, JOB_ID, CONSUMER, FEE
            ))

    def test_fulfillBadProof(self, provingKey, coordinator):
        event = coordinator.requestRandomness(CONSUMER, provingKey.keyHash(), FEE, 1)
        blob = bytearray(proof.encode(vrf.generateProof(provingKey.key, event.seed)))
        blob[-1] ^= 1
        with pytest.raises(VerificationError):
            coordinator.fulfillRandomnessRequest(blob)
        assert coordinator.withdrawableTokens(ORACLE) == 0

    def test_consumerFailure(self, provingKey, coordinator):
        def broken(requestID, output):
            raise ValueError("consumer is broken")

        coordinator.registerConsumer(CONSUMER, broken)
        event = coordinator.requestRandomness(CONSUMER, provingKey.keyHash(), FEE, 1)
        fulfill(coordinator, provingKey, event)
        assert coordinator.withdrawableTokens(ORACLE) == FEE

    def test_withdraw(self, provingKey, coordinator):
        event = coordinator.requestRandomness(CONSUMER, provingKey.keyHash(), FEE, 1)
        fulfill(coordinator, provingKey, event)
        with pytest.raises(InsufficientBalance):
            coordinator.withdraw(ORACLE, RECIPIENT, FEE + 1)
        coordinator.withdraw(ORACLE, RECIPIENT, FEE - 1)
        assert coordinator.withdrawableTokens(ORACLE) == 1
        assert coordinator.balanceOf(RECIPIENT) == FEE - 1
        with pytest.raises(InsufficientBalance):
            coordinator.withdraw(ORACLE, RECIPIENT, 2)
        coordinator.withdraw(ORACLE, RECIPIENT, 1)
        assert coordinator.withdrawableTokens(ORACLE) == 0
        assert coordinator.balanceOf(RECIPIENT) == FEE
        with pytest.raises(InsufficientBalance):
            coordinator.withdraw(CONSUMER, RECIPIENT, 1)
