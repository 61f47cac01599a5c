"""
Copyright (c) 2020, the Decred developers
See LICENSE for details

The chainvrf command. Generates and checks marshaled VRF proofs, and computes
the identifiers the coordinator uses.

    chainvrf [--loglevel LVL] [--max-hash-attempts N] [--datadir DIR] COMMAND

Run `chainvrf COMMAND -h` for a command's options.
"""

import argparse
import sys

from chainvrf import VRFError, config
from chainvrf.crypto.crypto import SecretKey
from chainvrf.crypto.secp256k1.curve import longMarshal, longUnmarshal
from chainvrf.util import helpers
from chainvrf.util.encode import decodeBA
from chainvrf.vrf import proof as vrfproof, vrf
from chainvrf.vrf.request import makeRequestId


log = helpers.getLogger("CLI")


def parseInt(s):
    """
    parseInt parses a decimal or 0x-prefixed hexadecimal integer.
    """
    return int(s, 0)


def prove(cfg, args):
    sk = SecretKey(args.key)
    if args.nonce is not None:
        p = vrf.generateProofWithNonce(
            sk.key, args.seed, args.nonce, maxAttempts=cfg.maxHashAttempts
        )
    else:
        p = vrf.generateProof(sk.key, args.seed, maxAttempts=cfg.maxHashAttempts)
    sp = vrfproof.SolidityProof.fromProof(p, maxAttempts=cfg.maxHashAttempts)
    print(f"proof: 0x{sp.marshal().hex()}")
    print(f"output: 0x{p.output:064x}")
    return 0


def verify(cfg, args):
    sp = vrfproof.decode(decodeBA(args.proof))
    publicKey = sp.proof.publicKey
    if args.key:
        publicKey = longUnmarshal(decodeBA(args.key))
    seed = sp.proof.seed if args.seed is None else args.seed
    ok, reason = vrf.verify(publicKey, seed, sp, maxAttempts=cfg.maxHashAttempts)
    if not ok:
        print(f"invalid proof: {reason}", file=sys.stderr)
        return 1
    print(f"output: 0x{sp.proof.output:064x}")
    return 0


def requestID(cfg, args):
    print(f"request ID: 0x{makeRequestId(args.key_hash, args.seed).hex()}")
    return 0


def keyHash(cfg, args):
    sk = SecretKey(args.key)
    print(f"public key: 0x{longMarshal(sk.pub).hex()}")
    print(f"key hash: 0x{sk.keyHash().hex()}")
    return 0


def makeParser():
    parser = argparse.ArgumentParser(
        prog="chainvrf",
        description="secp256k1 VRF proofs for the on-chain verifier",
        epilog="global options: --loglevel, --max-hash-attempts, --datadir",
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    cmd = commands.add_parser("prove", help="generate a marshaled proof")
    cmd.add_argument("--key", required=True, help="secret key, hex")
    cmd.add_argument("--seed", required=True, type=parseInt, help="VRF input")
    cmd.add_argument(
        "--nonce", type=parseInt, help="fixed nonce. For testing only; never reuse"
    )
    cmd.set_defaults(func=prove)

    cmd = commands.add_parser("verify", help="verify a marshaled proof")
    cmd.add_argument("proof", help="the marshaled proof, hex")
    cmd.add_argument("--key", help="expected public key, 64-byte hex")
    cmd.add_argument("--seed", type=parseInt, help="expected VRF input")
    cmd.set_defaults(func=verify)

    cmd = commands.add_parser("request-id", help="compute a request ID")
    cmd.add_argument("--key-hash", required=True, help="proving key hash, hex")
    cmd.add_argument("--seed", required=True, type=parseInt, help="VRF input seed")
    cmd.set_defaults(func=requestID)

    cmd = commands.add_parser("keyhash", help="show a proving key's identifiers")
    cmd.add_argument("--key", required=True, help="secret key, hex")
    cmd.set_defaults(func=keyHash)
    return parser


def main(argv=None):
    """
    main runs the chainvrf command.

    Args:
        argv (list(str)): optional. The arguments. Defaults to sys.argv[1:].

    Returns:
        int: The exit status.
    """
    cfg = config.load(argv)
    helpers.prepareLogging(logLvl=cfg.logLevel, lvlMap=cfg.moduleLevels)
    args = makeParser().parse_args(cfg.remaining)
    try:
        return args.func(cfg, args)
    except (VRFError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        log.critical(helpers.formatTraceback(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
