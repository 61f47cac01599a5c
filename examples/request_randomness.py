"""
Copyright (c) 2020, The Decred developers

This example script runs a randomness request through an in-memory coordinator:
the oracle registers a proving key, a consumer requests randomness, the oracle
answers the request log with a proof, and withdraws its fee.
"""

from chainvrf.crypto import rando
from chainvrf.crypto.crypto import SecretKey
from chainvrf.util import helpers
from chainvrf.util.encode import ByteArray
from chainvrf.vrf import proof, vrf
from chainvrf.vrf.coordinator import VRFCoordinator
from chainvrf.vrf.request import RandomnessRequestLog


ORACLE = ByteArray("0a" * 20)
CONSUMER = ByteArray("0c" * 20)
FEE = 10 ** 17


def main():
    helpers.prepareLogging()
    coordinator = VRFCoordinator()
    sk = SecretKey.generate()
    coordinator.registerProvingKey(ORACLE, FEE, sk.pub, jobID="0x01")
    coordinator.registerConsumer(
        CONSUMER, lambda rid, out: print("consumer got 0x%064x for %s" % (out, rid.hex()))
    )

    event = coordinator.requestRandomness(CONSUMER, sk.keyHash(), FEE, rando.randomSeed())
    rawLog = event.rawLog()

    # The oracle sees only the raw log.
    request = RandomnessRequestLog.parse(rawLog)
    blob = proof.encode(vrf.generateProof(sk.key, request.seed))
    coordinator.fulfillRandomnessRequest(blob)

    earned = coordinator.withdrawableTokens(ORACLE)
    coordinator.withdraw(ORACLE, ORACLE, earned)
    print("oracle earned %d" % coordinator.balanceOf(ORACLE))


if __name__ == "__main__":
    main()
