import hashlib

import pytest

from hash_search import ConfigurationError, TargetPrefix, lookup_algorithm, matches


def test_even_length_prefix():
    p = TargetPrefix.from_hex("dead")
    assert p.data == b"\xde\xad"
    assert p.nibble is None
    assert p.bit_length == 16
    assert p.hex == "dead"


def test_odd_length_prefix_keeps_high_nibble():
    p = TargetPrefix.from_hex("ABC")
    assert p.data == b"\xab"
    assert p.nibble == 0xC0
    assert p.bit_length == 12
    assert p.hex == "abc"

    single = TargetPrefix.from_hex("7")
    assert single.data == b""
    assert single.nibble == 0x70
    assert single.bit_length == 4


@pytest.mark.parametrize("text", ["", "xyz", "0x12", " ab", "ab\n", "g0"])
def test_malformed_prefix(text):
    with pytest.raises(ConfigurationError):
        TargetPrefix.from_hex(text)


def test_prefix_must_fit_digest():
    md5 = lookup_algorithm("md5")
    TargetPrefix.from_hex("0" * 32).check_fits(md5)
    with pytest.raises(ConfigurationError):
        TargetPrefix.from_hex("0" * 33).check_fits(md5)
    TargetPrefix.from_hex("0" * 33).check_fits(lookup_algorithm("sha256"))


def test_nibble_comparison_ignores_low_bits():
    digest = bytes.fromhex("abcdef") + bytes(13)
    assert matches(digest, TargetPrefix.from_hex("a"))
    assert matches(digest, TargetPrefix.from_hex("abc"))
    assert matches(digest, TargetPrefix.from_hex("abcd"))
    assert not matches(digest, TargetPrefix.from_hex("abd"))
    assert not matches(digest, TargetPrefix.from_hex("b"))
    assert not matches(digest, TargetPrefix.from_hex("abce"))


def test_full_length_prefix():
    digest = hashlib.md5(b"x").digest()
    assert matches(digest, TargetPrefix.from_hex(digest.hex()))
    assert matches(digest, TargetPrefix.from_hex(digest.hex()[:31]))


def test_matches_agrees_with_hex_startswith():
    prefixes = ["0", "f", "00", "a5", "1b3", "c0de"]
    for i in range(512):
        digest = hashlib.sha1(i.to_bytes(4, "little")).digest()
        text = digest.hex()
        for p in prefixes + [text[:1], text[:3], text[:6]]:
            assert matches(digest, TargetPrefix.from_hex(p)) == text.startswith(p)
