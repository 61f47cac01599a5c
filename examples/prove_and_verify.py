"""
Copyright (c) 2020, The Decred developers

This example script creates a proving key, generates a VRF output and proof for
a seed, and checks the marshaled proof the way the verifier contract does.
"""

from chainvrf.crypto.crypto import SecretKey
from chainvrf.util import helpers
from chainvrf.vrf import proof, vrf


def main():
    helpers.prepareLogging()
    sk = SecretKey.generate()
    print("key hash 0x%s" % sk.keyHash().hex())

    seed = 0xDECAF
    p = vrf.generateProof(sk.key, seed)
    blob = proof.encode(p)
    print("proof    0x%s" % blob.hex())

    # This is what the coordinator contract gets from the oracle.
    output = proof.randomValueFromVRFProof(blob)
    assert output == p.output
    print("output   0x%064x" % output)

    # Any change to the proof is caught.
    tampered = bytearray(blob)
    tampered[proof.S_OFFSET] ^= 1
    ok, reason = vrf.verify(sk.pub, seed, proof.decode(tampered))
    print("tampered proof rejected: %s" % reason)


if __name__ == "__main__":
    main()
