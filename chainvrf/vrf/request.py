"""
Copyright (c) 2020, the Decred developers
See LICENSE for details

The coordinator contract's randomness request and key registration events,
and the request ID and VRF input seed derivations it uses.
"""

from chainvrf import VRFError
from chainvrf.crypto.crypto import keccak256
from chainvrf.errors import MalformedLog
from chainvrf.util.encode import (
    ADDRESS_LEN,
    WORD_LEN,
    ByteArray,
    address,
    decodeBA,
    hash32,
    intFromBytes,
    uint256,
    words,
)


RANDOMNESS_REQUEST_SIGNATURE = (
    "RandomnessRequest(bytes32,uint256,bytes32,address,uint256)"
)
NEW_SERVICE_AGREEMENT_SIGNATURE = "NewServiceAgreement(bytes32,uint256)"

# topic 0 of each event is the keccak256 of its signature.
RANDOMNESS_REQUEST_TOPIC = ByteArray(keccak256(RANDOMNESS_REQUEST_SIGNATURE.encode()))
NEW_SERVICE_AGREEMENT_TOPIC = ByteArray(
    keccak256(NEW_SERVICE_AGREEMENT_SIGNATURE.encode())
)


def makeVRFInputSeed(keyHash, userSeed, sender, nonce):
    """
    makeVRFInputSeed is the seed the coordinator actually asks the VRF for,
    keccak256(abi.encode(keyHash, userSeed, sender, nonce)). Mixing in the
    requester and its request count keeps a requester from reusing another's
    output.

    Args:
        keyHash (ByteArray): The proving key's hash.
        userSeed (int): The seed the requester supplied.
        sender (ByteArray): The requester's address.
        nonce (int): The number of requests sender has made for keyHash.

    Returns:
        int: The VRF input seed.
    """
    msg = (
        hash32(keyHash).bytes()
        + uint256(userSeed)
        + address(sender).word()
        + uint256(nonce)
    )
    return intFromBytes(keccak256(msg))


def makeRequestId(keyHash, vrfInputSeed):
    """
    makeRequestId is keccak256(abi.encodePacked(keyHash, vrfInputSeed)).

    Returns:
        ByteArray: The 32-byte request ID.
    """
    return ByteArray(keccak256(hash32(keyHash).bytes() + uint256(vrfInputSeed)))


def _topics(log):
    try:
        topics = [hash32(t) for t in log["topics"]]
    except (KeyError, TypeError, ValueError, VRFError) as e:
        raise MalformedLog(f"bad log topics: {e}")
    if not topics:
        raise MalformedLog("log has no topics")
    return topics


def _data(log, nWords):
    try:
        data = decodeBA(log["data"])
    except (KeyError, TypeError, ValueError, VRFError) as e:
        raise MalformedLog(f"bad log data: {e}")
    if len(data) != nWords * WORD_LEN:
        raise MalformedLog(
            f"log data is {len(data)} bytes, expected {nWords * WORD_LEN}"
        )
    return words(data)


class RandomnessRequestLog:
    """
    RandomnessRequestLog is the coordinator's

        event RandomnessRequest(bytes32 keyHash, uint256 seed,
            bytes32 indexed jobID, address sender, uint256 fee)

    emitted when a consumer requests randomness.
    """

    def __init__(self, keyHash, seed, jobID, sender, fee):
        """
        Args:
            keyHash (ByteArray): Hash of the proving key to use.
            seed (int): The VRF input seed, from makeVRFInputSeed.
            jobID (ByteArray): The job registered for the proving key.
            sender (ByteArray): The requesting contract's address.
            fee (int): The payment offered.
        """
        self.keyHash = hash32(keyHash)
        self.seed = seed
        self.jobID = hash32(jobID)
        self.sender = address(sender)
        self.fee = fee

    def requestID(self):
        """
        requestID is the ID the coordinator and consumer know the request by.
        """
        return makeRequestId(self.keyHash, self.seed)

    def __eq__(self, other):
        if not isinstance(other, RandomnessRequestLog):
            return NotImplemented
        return (
            self.keyHash == other.keyHash
            and self.seed == other.seed
            and self.jobID == other.jobID
            and self.sender == other.sender
            and self.fee == other.fee
        )

    def __repr__(self):
        return (
            f"RandomnessRequestLog(keyHash={self.keyHash.hex()}, seed=0x{self.seed:x}, "
            f"jobID={self.jobID.hex()}, sender={self.sender.hex()}, fee={self.fee})"
        )

    def rawLog(self):
        """
        rawLog encodes the event as the node sees it: topics, then the ABI
        encoded unindexed fields.

        Returns:
            dict: With "topics" (list(bytes)) and "data" (bytes).
        """
        data = (
            self.keyHash.bytes()
            + uint256(self.seed)
            + self.sender.word()
            + uint256(self.fee)
        )
        return {
            "topics": [RANDOMNESS_REQUEST_TOPIC.bytes(), self.jobID.bytes()],
            "data": data,
        }

    @staticmethod
    def parse(log):
        """
        parse decodes a RandomnessRequest event log.

        Args:
            log (dict): The log. "topics" is a list of 32-byte values and "data"
                the log data, each as bytes or hex.

        Returns:
            RandomnessRequestLog: The decoded event.

        Raises:
            MalformedLog: log is not a RandomnessRequest event.
        """
        topics = _topics(log)
        if topics[0] != RANDOMNESS_REQUEST_TOPIC:
            raise MalformedLog("not a RandomnessRequest log")
        if len(topics) != 2:
            raise MalformedLog(f"expected 2 topics, got {len(topics)}")
        keyHash, seed, sender, fee = _data(log, 4)
        if any(sender[: WORD_LEN - ADDRESS_LEN]):
            raise MalformedLog("sender address has non-zero padding")
        return RandomnessRequestLog(
            keyHash=keyHash,
            seed=intFromBytes(seed),
            jobID=topics[1],
            sender=sender[WORD_LEN - ADDRESS_LEN :],
            fee=intFromBytes(fee),
        )


def parseRandomnessRequestLog(log):
    return RandomnessRequestLog.parse(log)


class NewServiceAgreementLog:
    """
    NewServiceAgreementLog is the coordinator's

        event NewServiceAgreement(bytes32 keyHash, uint256 fee)

    emitted when a proving key is registered.
    """

    def __init__(self, keyHash, fee):
        self.keyHash = hash32(keyHash)
        self.fee = fee

    def __eq__(self, other):
        if not isinstance(other, NewServiceAgreementLog):
            return NotImplemented
        return self.keyHash == other.keyHash and self.fee == other.fee

    def __repr__(self):
        return f"NewServiceAgreementLog(keyHash={self.keyHash.hex()}, fee={self.fee})"

    def rawLog(self):
        return {
            "topics": [NEW_SERVICE_AGREEMENT_TOPIC.bytes()],
            "data": self.keyHash.bytes() + uint256(self.fee),
        }

    @staticmethod
    def parse(log):
        """
        parse decodes a NewServiceAgreement event log. See
        RandomnessRequestLog.parse.
        """
        topics = _topics(log)
        if topics[0] != NEW_SERVICE_AGREEMENT_TOPIC:
            raise MalformedLog("not a NewServiceAgreement log")
        keyHash, fee = _data(log, 2)
        return NewServiceAgreementLog(keyHash=keyHash, fee=intFromBytes(fee))
