import hashlib
import io

import pytest

from sigkit.message import (
    compute_digest_for_signing,
    compute_digest_for_verifying,
    hash_message,
    is_supported_alg,
    select_rand,
)
from sigkit.options import (
    Hash,
    SignerOpts,
    default_rand,
    with_context,
    with_crypto_signer_opts,
    with_digest,
    with_rand,
)

RSA_HASHES = [Hash.SHA256, Hash.SHA384, Hash.SHA512]
MESSAGE = b"sign me"


class _FailingReader(io.RawIOBase):
    def readable(self):
        return True

    def read(self, size=-1):
        raise OSError("disk on fire")


def test_is_supported_alg_none_list_allows_anything():
    assert is_supported_alg(Hash.SHA1, None) is True
    assert is_supported_alg(Hash.NONE, None) is True


def test_is_supported_alg_membership():
    assert is_supported_alg(Hash.SHA384, RSA_HASHES) is True
    assert is_supported_alg(Hash.SHA1, RSA_HASHES) is False
    assert is_supported_alg(Hash.SHA256, []) is False


def test_default_hash_is_used():
    expected = hashlib.sha256(MESSAGE).digest()
    assert compute_digest_for_signing(io.BytesIO(MESSAGE), Hash.SHA256, RSA_HASHES) == (
        expected,
        Hash.SHA256,
    )
    assert compute_digest_for_verifying(io.BytesIO(MESSAGE), Hash.SHA256, RSA_HASHES) == (
        expected,
        Hash.SHA256,
    )


def test_bytes_message_is_accepted():
    expected = hashlib.sha512(MESSAGE).digest()
    assert compute_digest_for_signing(MESSAGE, Hash.SHA512, RSA_HASHES) == (
        expected,
        Hash.SHA512,
    )
    assert compute_digest_for_verifying(MESSAGE, Hash.SHA512, RSA_HASHES) == (
        expected,
        Hash.SHA512,
    )


@pytest.mark.parametrize("compute", [compute_digest_for_signing, compute_digest_for_verifying])
def test_precomputed_digest_returned_unchanged(compute):
    given = hashlib.sha256(MESSAGE).digest()
    digest, used = compute(None, Hash.SHA256, RSA_HASHES, with_digest(given))
    assert digest == given
    assert used is Hash.SHA256


@pytest.mark.parametrize("compute", [compute_digest_for_signing, compute_digest_for_verifying])
def test_precomputed_digest_with_matching_opts(compute):
    given = hashlib.sha256(MESSAGE).digest()
    digest, used = compute(
        io.BytesIO(MESSAGE),
        Hash.SHA256,
        RSA_HASHES,
        with_digest(given),
        with_crypto_signer_opts(Hash.SHA256),
    )
    assert (digest, used) == (given, Hash.SHA256)


@pytest.mark.parametrize("compute", [compute_digest_for_signing, compute_digest_for_verifying])
def test_mismatched_digest_and_opts_raise(compute):
    given = hashlib.sha256(MESSAGE).digest()
    with pytest.raises(ValueError, match="unexpected length of digest"):
        compute(
            io.BytesIO(MESSAGE),
            Hash.SHA256,
            RSA_HASHES,
            with_digest(given),
            with_crypto_signer_opts(Hash.SHA512),
        )


@pytest.mark.parametrize("compute", [compute_digest_for_signing, compute_digest_for_verifying])
def test_unsupported_hash_raises(compute):
    with pytest.raises(ValueError) as info:
        compute(
            io.BytesIO(MESSAGE),
            Hash.SHA256,
            RSA_HASHES,
            with_crypto_signer_opts(Hash.SHA1),
        )
    message = str(info.value)
    assert message.startswith('unsupported hash algorithm: "SHA-1"')
    assert "[SHA-256 SHA-384 SHA-512]" in message


@pytest.mark.parametrize("compute", [compute_digest_for_signing, compute_digest_for_verifying])
def test_hash_zero_is_unsupported_for_rsa(compute):
    given = hashlib.sha256(MESSAGE).digest()
    with pytest.raises(ValueError, match="unsupported hash algorithm"):
        compute(
            io.BytesIO(MESSAGE),
            Hash.SHA256,
            RSA_HASHES,
            with_digest(given),
            with_crypto_signer_opts(Hash.NONE),
        )


def test_hash_zero_returns_raw_message():
    assert compute_digest_for_signing(io.BytesIO(MESSAGE), Hash.NONE, None) == (
        MESSAGE,
        Hash.NONE,
    )
    assert compute_digest_for_verifying(io.BytesIO(MESSAGE), Hash.NONE, None) == (
        MESSAGE,
        Hash.NONE,
    )


@pytest.mark.parametrize("compute", [compute_digest_for_signing, compute_digest_for_verifying])
def test_hash_zero_accepts_any_digest_length(compute):
    digest, used = compute(None, Hash.NONE, None, with_digest(b"xyz"))
    assert (digest, used) == (b"xyz", Hash.NONE)


@pytest.mark.parametrize("compute", [compute_digest_for_signing, compute_digest_for_verifying])
def test_nil_crypto_signer_opts_means_sha256(compute):
    digest, used = compute(
        io.BytesIO(MESSAGE), Hash.SHA512, RSA_HASHES, with_crypto_signer_opts(None)
    )
    assert used is Hash.SHA256
    assert digest == hashlib.sha256(MESSAGE).digest()


@pytest.mark.parametrize("compute", [compute_digest_for_signing, compute_digest_for_verifying])
def test_signer_opts_object_selects_hash(compute):
    digest, used = compute(
        io.BytesIO(MESSAGE),
        Hash.SHA256,
        RSA_HASHES,
        with_crypto_signer_opts(SignerOpts(Hash.SHA384)),
    )
    assert used is Hash.SHA384
    assert len(digest) == Hash.SHA384.size
    assert digest == hashlib.sha384(MESSAGE).digest()


@pytest.mark.parametrize("compute", [compute_digest_for_signing, compute_digest_for_verifying])
def test_later_option_overrides_earlier(compute):
    _, used = compute(
        io.BytesIO(MESSAGE),
        Hash.SHA256,
        RSA_HASHES,
        with_crypto_signer_opts(Hash.SHA512),
        with_crypto_signer_opts(Hash.SHA384),
    )
    assert used is Hash.SHA384


@pytest.mark.parametrize("compute", [compute_digest_for_signing, compute_digest_for_verifying])
def test_empty_digest_counts_as_absent(compute):
    digest, _ = compute(io.BytesIO(MESSAGE), Hash.SHA256, RSA_HASHES, with_digest(b""))
    assert digest == hashlib.sha256(MESSAGE).digest()


@pytest.mark.parametrize("compute", [compute_digest_for_signing, compute_digest_for_verifying])
def test_unrelated_options_are_ignored(compute):
    digest, used = compute(
        io.BytesIO(MESSAGE), Hash.SHA256, RSA_HASHES, with_context(object())
    )
    assert used is Hash.SHA256
    assert digest == hashlib.sha256(MESSAGE).digest()


def test_nil_message_raises():
    with pytest.raises(ValueError, match="message cannot be nil"):
        compute_digest_for_signing(None, Hash.SHA256, RSA_HASHES)
    with pytest.raises(ValueError, match="message cannot be nil"):
        compute_digest_for_verifying(None, Hash.SHA256, RSA_HASHES)


def test_hash_message_none_raises():
    with pytest.raises(ValueError, match="message cannot be nil"):
        hash_message(None, Hash.SHA256)


def test_hash_message_large_stream_matches_one_shot():
    data = bytes(range(256)) * 1000
    assert hash_message(io.BytesIO(data), Hash.SHA3_256) == hashlib.sha3_256(data).digest()


def test_hash_message_read_error_is_wrapped():
    with pytest.raises(OSError, match="hashing message"):
        hash_message(_FailingReader(), Hash.SHA256)


def test_hash_message_none_hash_returns_stream_contents():
    assert hash_message(io.BytesIO(MESSAGE), Hash.NONE) == MESSAGE


def test_select_rand_default():
    assert select_rand() is default_rand


def test_select_rand_custom_source():
    def fixed(n):
        return b"\x01" * n

    chosen = select_rand(with_digest(b"abc"), with_rand(fixed))
    assert chosen is fixed
    assert chosen(4) == b"\x01\x01\x01\x01"


def test_select_rand_none_falls_back_to_default():
    assert select_rand(with_rand(None)) is default_rand