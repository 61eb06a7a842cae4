import pytest
from arbitrai_protocol.abi import (
    AbiReader,
    CodecError,
    Dynamic,
    encode_address,
    encode_bool,
    encode_bytes32,
    encode_dynamic_bytes,
    encode_params,
    encode_string,
    encode_uint,
    hex_to_bytes,
)
from eth_abi import encode


def test_static_words_match_reference_encoder() -> None:
    assert encode_uint(7, 8) == encode(["uint8"], [7])
    assert encode_uint(10_000, 16) == encode(["uint16"], [10_000])
    assert encode_uint(2**256 - 1) == encode(["uint256"], [2**256 - 1])
    assert encode_bool(True) == encode(["bool"], [True])
    address = "0x" + "ab" * 20
    assert encode_address(address) == encode(["address"], [address])
    assert encode_bytes32(b"\x01" * 32) == encode(["bytes32"], [b"\x01" * 32])


def test_uint_range_and_type_checks() -> None:
    with pytest.raises(CodecError):
        encode_uint(256, 8)
    with pytest.raises(CodecError):
        encode_uint(-1)
    with pytest.raises(CodecError):
        encode_uint(True)
    with pytest.raises(CodecError):
        encode_uint(1, 12)


def test_bytes32_and_address_length_checks() -> None:
    with pytest.raises(CodecError):
        encode_bytes32("0x1234")
    with pytest.raises(CodecError):
        encode_address("0x" + "00" * 19)
    with pytest.raises(CodecError):
        encode_bytes32("0xzz" + "00" * 31)


def test_odd_length_hex_is_rejected_not_padded() -> None:
    with pytest.raises(CodecError, match="odd-length"):
        encode_bytes32("0x" + "1" * 63)
    with pytest.raises(CodecError, match="odd-length"):
        encode_address("0x" + "a" * 39)
    with pytest.raises(CodecError, match="odd-length"):
        hex_to_bytes("0x123")
    assert hex_to_bytes("0X0a0B") == b"\x0a\x0b"
    assert hex_to_bytes("") == b""


def test_dynamic_bytes_padding() -> None:
    assert encode_dynamic_bytes(b"") == encode_uint(0)
    encoded = encode_dynamic_bytes(b"\xff" * 33)
    assert len(encoded) == 32 + 64
    assert encoded[32 + 33 :] == b"\x00" * 31


def test_mixed_params_match_reference_encoder() -> None:
    ours = encode_params(
        [
            encode_uint(42),
            Dynamic(encode_string("héllo wörld, a string longer than one word")),
            encode_bytes32(b"\x22" * 32),
            Dynamic(encode_dynamic_bytes(b"\x01\x02\x03")),
        ]
    )
    reference = encode(
        ["uint256", "string", "bytes32", "bytes"],
        [42, "héllo wörld, a string longer than one word", b"\x22" * 32, b"\x01\x02\x03"],
    )
    assert ours == reference


def test_reader_decodes_reference_encoding() -> None:
    address = "0x" + "12" * 20
    data = encode(["uint256", "address", "bool", "string"], [99, address, True, "evidence"])
    reader = AbiReader(data)
    assert reader.uint(0) == 99
    assert reader.address(1).lower() == address
    assert reader.boolean(2) is True
    assert reader.string(3) == "evidence"


def test_reader_follows_nested_dynamic_tuple() -> None:
    data = encode(["(uint256,string,uint8)"], [(5, "nested description", 3)])
    body = AbiReader(data).tuple_at(0)
    assert body.uint(0) == 5
    assert body.string(1) == "nested description"
    assert body.uint(2, 8) == 3


def test_reader_rejects_malformed_words() -> None:
    dirty_address = b"\x01" + b"\x00" * 11 + b"\x12" * 20
    with pytest.raises(CodecError):
        AbiReader(dirty_address).address(0)
    with pytest.raises(CodecError):
        AbiReader(encode_uint(2)).boolean(0)
    with pytest.raises(CodecError):
        AbiReader(encode_uint(300)).uint(0, 8)
    with pytest.raises(CodecError):
        AbiReader(encode_uint(1)).uint(1)
    with pytest.raises(CodecError):
        AbiReader(encode_uint(4096)).string(0)
