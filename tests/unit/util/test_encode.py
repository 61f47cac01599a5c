"""
Copyright (c) 2019-2020, the Decred developers
See LICENSE for details
"""

import pytest

from chainvrf import VRFError
from chainvrf.util import encode
from chainvrf.util.encode import ByteArray


class TestEncode:
    def test_ByteArray(self):
        zero = ByteArray([0, 0, 0])
        assert zero.iszero()
        assert len(zero) == 3

        zero2 = ByteArray(zero)
        assert zero.b is not zero2.b
        assert zero == zero2

        zero2 = ByteArray(zero, copy=False)
        assert zero.b is zero2.b

        a = ByteArray("0x0102")
        assert a == bytearray([1, 2])
        assert a == "0102"
        assert a == ByteArray(258)
        assert a != ByteArray(259)
        assert a != None  # noqa: E711
        assert a.int() == 258
        assert a.bytes() == b"\x01\x02"
        assert a.hex() == "0102"
        assert a[0] == 1
        assert a[1:] == ByteArray(2)
        assert repr(a) == "ByteArray(0102)"
        assert ByteArray("abc") == ByteArray("0abc")
        assert ByteArray(0) == ByteArray([0])
        assert {a: 1}[ByteArray("0102")] == 1

    def test_length(self):
        a = ByteArray(1, length=32)
        assert len(a) == 32
        assert a.int() == 1
        assert a[-1] == 1
        assert not a.iszero()
        with pytest.raises(VRFError):
            ByteArray(bytes(33), length=32)
        assert ByteArray("ff").word() == bytes(31) + b"\xff"

    def test_decodeBA(self):
        assert encode.decodeBA(b"\x01") == bytearray([1])
        assert encode.decodeBA([1, 2]) == bytearray([1, 2])
        assert encode.decodeBA(0) == bytearray([0])
        with pytest.raises(TypeError):
            encode.decodeBA(1.5)
        with pytest.raises(ValueError):
            encode.decodeBA("0xzz")

    def test_ints(self):
        assert encode.intToBytes(0) == bytearray()
        assert encode.intToBytes(256) == bytearray([1, 0])
        assert encode.intToBytes(-1, signed=True) == bytearray([0xFF])
        assert encode.intFromBytes(b"\x01\x00") == 256
        assert encode.intFromBytes(b"\xff", signed=True) == -1

    def test_uint256(self):
        assert encode.uint256(0) == bytes(32)
        assert encode.uint256(1) == bytes(31) + b"\x01"
        assert encode.uint256(encode.UINT256_MAX) == b"\xff" * 32
        with pytest.raises(VRFError):
            encode.uint256(encode.UINT256_MAX + 1)
        with pytest.raises(VRFError):
            encode.uint256(-1)

    def test_words(self):
        ws = encode.words(bytes(31) + b"\x01" + b"\x02" * 32)
        assert ws == [bytes(31) + b"\x01", b"\x02" * 32]
        assert encode.words(b"") == []
        with pytest.raises(VRFError):
            encode.words(bytes(33))

    def test_hash32(self):
        assert encode.hash32("01") == bytes(31) + b"\x01"
        assert len(encode.address(1)) == encode.ADDRESS_LEN
        with pytest.raises(VRFError):
            encode.address(bytes(21))
