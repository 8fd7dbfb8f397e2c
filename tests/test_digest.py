import hashlib

import pytest

from hash_search import ConfigurationError, DigestContext, available_algorithms, lookup_algorithm


def test_lookup_known_algorithms():
    md5 = lookup_algorithm("md5")
    assert md5.name == "md5"
    assert md5.digest_size == 16
    assert md5.bits == 128
    assert lookup_algorithm("SHA256").digest_size == 32


def test_lookup_unknown_algorithm():
    with pytest.raises(ConfigurationError):
        lookup_algorithm("md6")
    with pytest.raises(ConfigurationError):
        lookup_algorithm("")


def test_variable_length_algorithms_excluded():
    names = available_algorithms()
    assert "md5" in names
    assert "sha1" in names
    assert not any(n.startswith("shake") for n in names)
    assert names == sorted(names)


def test_update_matches_hashlib():
    ctx = DigestContext(lookup_algorithm("sha1"))
    assert ctx.byte_count == 0
    ctx.update(b"hello ")
    ctx.update(b"world")
    assert ctx.byte_count == 11
    assert ctx.finalize() == hashlib.sha1(b"hello world").digest()


def test_clone_is_independent():
    base = DigestContext(lookup_algorithm("md5"))
    base.update(b"abc")

    clone = base.clone()
    clone.update(b"suffix")
    assert clone.byte_count == 9
    assert clone.finalize() == hashlib.md5(b"abcsuffix").digest()

    # finalizing the clone left the source untouched
    assert base.byte_count == 3
    assert base.clone().finalize() == hashlib.md5(b"abc").digest()
    again = base.clone()
    again.update(b"suffix")
    assert again.finalize() == hashlib.md5(b"abcsuffix").digest()

    base.update(b"def")
    assert base.finalize() == hashlib.md5(b"abcdef").digest()


def test_finalized_context_is_consumed():
    ctx = DigestContext(lookup_algorithm("md5"))
    ctx.finalize()
    assert ctx.finalized
    with pytest.raises(RuntimeError):
        ctx.finalize()
    with pytest.raises(RuntimeError):
        ctx.update(b"x")
    with pytest.raises(RuntimeError):
        ctx.clone()


def test_peek_and_trial_leave_context_usable():
    ctx = DigestContext(lookup_algorithm("sha256"))
    ctx.update(b"data")
    assert ctx.peek() == hashlib.sha256(b"data").digest()
    assert ctx.trial(b"\x01\x00\x00\x00") == hashlib.sha256(b"data\x01\x00\x00\x00").digest()
    assert ctx.trial(b"42") == hashlib.sha256(b"data42").digest()
    assert not ctx.finalized
    assert ctx.byte_count == 4
    assert ctx.finalize() == hashlib.sha256(b"data").digest()
