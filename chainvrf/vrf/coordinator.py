"""
Copyright (c) 2020, the Decred developers
See LICENSE for details

VRFCoordinator is an in-memory model of the coordinator contract: the universe
in which randomness is requested by a consumer, fulfilled by a node operator
with a VRF proof, and paid for. It follows the contract's bookkeeping and
rejection rules so the whole request cycle can be exercised without a chain.
"""

from chainvrf.crypto.crypto import keyHash as hashOfKey, validPublicKey
from chainvrf.errors import CoordinatorError, InsufficientBalance, InvalidKey
from chainvrf.util import helpers
from chainvrf.util.encode import address, hash32

from . import proof as vrfproof, vrf
from .request import (
    NewServiceAgreementLog,
    RandomnessRequestLog,
    makeRequestId,
    makeVRFInputSeed,
)


log = helpers.getLogger("COORDINATOR")


class ServiceAgreement:
    """
    The terms under which a node operator serves requests for a proving key.
    """

    def __init__(self, vrfOracle, fee, jobID):
        self.vrfOracle = address(vrfOracle)
        self.fee = fee
        self.jobID = hash32(jobID)


class Callback:
    """
    A pending request: who to deliver the output to, and what they paid.
    """

    def __init__(self, callbackContract, randomnessFee, seed):
        self.callbackContract = address(callbackContract)
        self.randomnessFee = randomnessFee
        self.seed = seed


class VRFCoordinator:
    def __init__(self, maxAttempts=vrf.DEFAULT_MAX_HASH_ATTEMPTS):
        """
        Args:
            maxAttempts (int): The hashToCurve rehash limit used when checking
                fulfillment proofs.
        """
        self.maxAttempts = maxAttempts
        self.serviceAgreements = {}
        self.callbacks = {}
        self.nonces = {}
        self.balances = {}
        self.tokenBalances = {}
        self.consumers = {}
        self.logs = []

    def registerConsumer(self, consumer, fulfill):
        """
        registerConsumer sets the function called with (requestID, output)
        when a request from consumer is fulfilled.

        Args:
            consumer (ByteArray): The consumer's address.
            fulfill (func(ByteArray, int)): The callback.
        """
        self.consumers[address(consumer)] = fulfill

    def registerProvingKey(self, oracle, fee, publicKey, jobID):
        """
        registerProvingKey commits oracle to serving requests for publicKey,
        for the given fee, with the given job.

        Returns:
            NewServiceAgreementLog: The emitted event.

        Raises:
            InvalidKey: publicKey is not on the curve.
            CoordinatorError: The key is already registered.
        """
        if not validPublicKey(publicKey):
            raise InvalidKey("public key is not on curve")
        keyHash = hashOfKey(publicKey)
        if keyHash in self.serviceAgreements:
            raise CoordinatorError("please register a new key")
        self.serviceAgreements[keyHash] = ServiceAgreement(oracle, fee, jobID)
        event = NewServiceAgreementLog(keyHash, fee)
        self.logs.append(event)
        log.info(f"registered proving key {keyHash.hex()} with fee {fee}")
        return event

    def requestRandomness(self, sender, keyHash, fee, userSeed):
        """
        requestRandomness records a request from sender, which pays fee, for
        randomness from the key with keyHash.

        Returns:
            RandomnessRequestLog: The emitted event.

        Raises:
            CoordinatorError: The key is unknown or fee is below the agreed
                payment.
        """
        keyHash = hash32(keyHash)
        sender = address(sender)
        agreement = self.serviceAgreements.get(keyHash)
        if agreement is None:
            raise CoordinatorError("unknown proving key")
        if fee < agreement.fee:
            raise CoordinatorError("Below agreed payment")
        nonceKey = (keyHash, sender)
        nonce = self.nonces.get(nonceKey, 0)
        seed = makeVRFInputSeed(keyHash, userSeed, sender, nonce)
        requestID = makeRequestId(keyHash, seed)
        if requestID in self.callbacks:
            raise CoordinatorError("request ID already in use")
        self.callbacks[requestID] = Callback(sender, fee, seed)
        self.nonces[nonceKey] = nonce + 1
        event = RandomnessRequestLog(
            keyHash=keyHash, seed=seed, jobID=agreement.jobID, sender=sender, fee=fee
        )
        self.logs.append(event)
        log.debug(f"randomness request {requestID.hex()} from {sender.hex()}")
        return event

    def fulfillRandomnessRequest(self, proofBlob):
        """
        fulfillRandomnessRequest checks the marshaled proof, pays the key's
        oracle the request fee, and delivers the output to the requester.

        Args:
            proofBlob (bytes-like): A marshaled SolidityProof.

        Returns:
            ByteArray: The request ID.
            int: The VRF output.

        Raises:
            MalformedProof, VerificationError: The proof is bad.
            CoordinatorError: There is no pending request for the proof.
        """
        sp = vrfproof.decode(proofBlob)
        keyHash = hashOfKey(sp.proof.publicKey)
        requestID = makeRequestId(keyHash, sp.proof.seed)
        callback = self.callbacks.get(requestID)
        if callback is None:
            raise CoordinatorError("no corresponding request")
        output = vrfproof.randomValueFromVRFProof(proofBlob, maxAttempts=self.maxAttempts)
        oracle = self.serviceAgreements[keyHash].vrfOracle
        self.balances[oracle] = self.balances.get(oracle, 0) + callback.randomnessFee
        del self.callbacks[requestID]
        log.info(f"fulfilled randomness request {requestID.hex()}")
        fulfill = self.consumers.get(callback.callbackContract)
        if fulfill:
            # A failing consumer does not undo the fulfillment.
            try:
                fulfill(requestID, output)
            except Exception as e:
                log.error(
                    "consumer %s failed to accept randomness: %s"
                    % (callback.callbackContract.hex(), helpers.formatTraceback(e))
                )
        return requestID, output

    def withdrawableTokens(self, oracle):
        """
        The amount oracle has earned and not yet withdrawn.
        """
        return self.balances.get(address(oracle), 0)

    def withdraw(self, oracle, recipient, amount):
        """
        withdraw transfers amount of oracle's earnings to recipient.

        Raises:
            InsufficientBalance: oracle has earned less than amount.
        """
        oracle, recipient = address(oracle), address(recipient)
        balance = self.balances.get(oracle, 0)
        if amount > balance:
            raise InsufficientBalance("can't withdraw more than balance")
        self.balances[oracle] = balance - amount
        self.tokenBalances[recipient] = self.tokenBalances.get(recipient, 0) + amount
        log.debug(f"{oracle.hex()} withdrew {amount} to {recipient.hex()}")

    def balanceOf(self, account):
        """
        The tokens paid out to account.
        """
        return self.tokenBalances.get(address(account), 0)
