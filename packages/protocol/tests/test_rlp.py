import pytest
from arbitrai_protocol import rlp
from arbitrai_protocol.abi import CodecError

LOREM = b"Lorem ipsum dolor sit amet, consectetur adipisicing elit"


@pytest.mark.parametrize(
    ("item", "expected"),
    [
        (b"dog", "83646f67"),
        ([b"cat", b"dog"], "c88363617483646f67"),
        (b"", "80"),
        ([], "c0"),
        (0, "80"),
        (15, "0f"),
        (1024, "820400"),
        ([[], [[]], [[], [[]]]], "c7c0c1c0c3c0c1c0"),
        (LOREM, "b838" + LOREM.hex()),
    ],
)
def test_encode_known_vectors(item, expected: str) -> None:
    assert rlp.encode(item).hex() == expected


def test_decode_inverts_encode_for_nested_lists() -> None:
    item = [b"\x01", [b"cat", [b""]], LOREM, b"\x80"]
    assert rlp.decode(rlp.encode(item)) == item


def test_long_list_uses_long_form() -> None:
    item = [LOREM, LOREM]
    encoded = rlp.encode(item)
    assert encoded[0] == 0xF8
    assert rlp.decode(encoded) == item


def test_negative_integers_rejected() -> None:
    with pytest.raises(CodecError):
        rlp.encode(-1)


@pytest.mark.parametrize(
    "raw",
    [
        b"\x81\x05",  # single small byte must not carry a prefix
        b"\xb8\x03dog",  # long form for a short string
        b"\x83do",  # truncated
        b"\x83dogX",  # trailing bytes
        b"\xc3\x83do",  # list payload truncated
        b"",
    ],
)
def test_decode_rejects_non_canonical_input(raw: bytes) -> None:
    with pytest.raises(CodecError):
        rlp.decode(raw)


def test_bytes_to_int_rejects_leading_zero() -> None:
    assert rlp.bytes_to_int(b"") == 0
    assert rlp.bytes_to_int(b"\x04\x00") == 1024
    with pytest.raises(CodecError):
        rlp.bytes_to_int(b"\x00\x01")
