"""
Copyright (c) 2020, Brian Stafford
Copyright (c) 2020, the Decred developers
See LICENSE for details

Byte encodings shared by the curve, proof and log code. Everything that crosses
the wire to the verifier contract is a sequence of 32-byte big-endian words.
"""

from chainvrf import VRFError


WORD_LEN = 32
ADDRESS_LEN = 20
UINT256_MAX = 2 ** 256 - 1


def intToBytes(i, signed=False):
    """
    Encodes an integer to bytes.

    Args:
        i (int): The integer.
        signed (bool): Whether to encode as a signed integer.

    Returns:
        bytearray: The encoded integer.
    """
    length = ((i + ((i * signed) < 0)).bit_length() + 7 + signed) // 8
    return bytearray(i.to_bytes(length, byteorder="big", signed=signed))


def intFromBytes(b, signed=False):
    """
    Decodes an integer from bytes.

    Args:
        b (bytes-like): The encoded integer.
        signed (bool): Whether to decode as a signed integer.

    Returns:
        int: The decoded integer.
    """
    return int.from_bytes(b, "big", signed=signed)


def uint256(i):
    """
    uint256 encodes i as a single 32-byte big-endian word, the way the EVM
    stores a uint256.

    Args:
        i (int): A value in [0, 2^256).

    Returns:
        bytes: The 32-byte word.
    """
    if i < 0 or i > UINT256_MAX:
        raise VRFError(f"{i} does not fit in a uint256")
    return i.to_bytes(WORD_LEN, "big")


def words(b):
    """
    Split b into 32-byte words.

    Args:
        b (bytes-like): A buffer whose length is a multiple of 32.

    Returns:
        list(bytes): The words.
    """
    if len(b) % WORD_LEN != 0:
        raise VRFError(f"{len(b)} bytes is not a whole number of words")
    return [bytes(b[i : i + WORD_LEN]) for i in range(0, len(b), WORD_LEN)]


def decodeBA(b, copy=False):
    """
    Decode into a bytearray.

    Args:
        b (str, bytes-like, ByteArray, int, list(int)): The value to decode to
            a bytearray. Strings are interpreted as hexadecimal, with or without
            a 0x prefix. Integers are minimally encoded to an unsigned integer.

    Returns:
        bytearray: The decoded bytes.
    """
    if isinstance(b, ByteArray):
        return bytearray(b.b) if copy else b.b
    if isinstance(b, bytearray):
        return bytearray(b) if copy else b
    if isinstance(b, bytes):
        return bytearray(b)
    if isinstance(b, int):
        return intToBytes(b) if b else bytearray([0])
    if isinstance(b, str):
        if b[:2] in ("0x", "0X"):
            b = b[2:]
        if len(b) % 2:
            b = "0" + b
        return bytearray.fromhex(b)
    if hasattr(b, "__iter__"):
        return bytearray(b)
    raise TypeError("decodeBA: unknown type %s" % type(b))


class ByteArray:
    """
    ByteArray is a bytearray manager that accepts hex strings, integers and
    bytes-likes interchangeably. An integer argument results in the shortest
    possible byte representation of the integer. To get a zero-padded ByteArray
    of length n, use the `length` keyword argument; the value is then
    right-aligned, the way Solidity left-pads bytes32 and address values.
    """

    def __init__(self, b=b"", copy=True, length=None):
        """
        Set copy to False if you want to share the memory with another
        bytearray/ByteArray. If the type of b is not bytearray or ByteArray,
        copy has no effect.
        """
        if length:
            raw = decodeBA(b)
            if len(raw) > length:
                raise VRFError("value of %d bytes exceeds length %d" % (len(raw), length))
            self.b = bytearray(length - len(raw)) + raw
        else:
            self.b = decodeBA(b, copy=copy)

    def __eq__(self, a):
        try:
            return bytearray.__eq__(self.b, decodeBA(a))
        except Exception:
            return False

    def __ne__(self, a):
        return not self.__eq__(a)

    def __repr__(self):
        return "ByteArray(" + self.hex() + ")"

    def __len__(self):
        return len(self.b)

    def __getitem__(self, k):
        if isinstance(k, slice):
            return ByteArray(self.b[k.start : k.stop : k.step])
        return self.b[k]

    def __hash__(self):
        """Enables ByteArray to be a dict key."""
        return hash(bytes(self.b))

    def hex(self):
        """
        A hexadecimal string representation of the bytes.

        Returns:
            str: The hex bytes.
        """
        return self.b.hex()

    def iszero(self):
        """
        True if all bytes are zero.
        """
        return all((v == 0 for v in self.b))

    def int(self):
        """The bytes as an integer."""
        return intFromBytes(self.b)

    def bytes(self):
        """The bytes as Python `bytes`."""
        return bytes(self.b)

    def word(self):
        """The bytes left-padded to a single 32-byte word."""
        return ByteArray(self.b, length=WORD_LEN).bytes()


def hash32(b):
    """
    hash32 coerces b to a 32-byte value, such as a key hash or job ID. Shorter
    input is left-padded with zeros.

    Args:
        b (str, bytes-like, ByteArray, int): The value.

    Returns:
        ByteArray: The 32-byte value.
    """
    return ByteArray(b, length=WORD_LEN)


def address(b):
    """
    address coerces b to a 20-byte Ethereum-style address.

    Args:
        b (str, bytes-like, ByteArray, int): The address.

    Returns:
        ByteArray: The 20-byte address.
    """
    return ByteArray(b, length=ADDRESS_LEN)
