"""Choosing a hash function and computing the digest to sign or verify."""

from __future__ import annotations

from typing import BinaryIO, Iterable, Optional, Sequence, Tuple, Union

from .options import (
    Hash,
    HashFuncProvider,
    RandSource,
    SignOption,
    VerifyOption,
    default_rand,
)

__all__ = [
    "is_supported_alg",
    "compute_digest_for_signing",
    "compute_digest_for_verifying",
    "hash_message",
    "select_rand",
]

Message = Union[bytes, bytearray, memoryview, BinaryIO]

_CHUNK_SIZE = 64 * 1024


def is_supported_alg(alg: Hash, supported: Optional[Sequence[Hash]]) -> bool:
    """Return True if ``alg`` is in ``supported``; a None list allows anything."""
    if supported is None:
        return True
    return alg in supported


def _compute_digest(
    message: Optional[Message],
    default_hash: Hash,
    supported_hashes: Optional[Sequence[Hash]],
    opts: Iterable[object],
) -> Tuple[bytes, Hash]:
    digest: Optional[bytes] = None
    signer_opts: HashFuncProvider = default_hash
    for opt in opts:
        digest = opt.apply_digest(digest)
        signer_opts = opt.apply_crypto_signer_opts(signer_opts)

    hashed_with = Hash(signer_opts.hash_func())
    if not is_supported_alg(hashed_with, supported_hashes):
        allowed = " ".join(str(h) for h in supported_hashes or ())
        raise ValueError(
            f'unsupported hash algorithm: "{hashed_with}" not in [{allowed}]'
        )

    if digest:
        if hashed_with is not Hash.NONE and len(digest) != hashed_with.size:
            raise ValueError("unexpected length of digest for hash function specified")
        return bytes(digest), hashed_with

    return hash_message(message, hashed_with), hashed_with


def compute_digest_for_signing(
    message: Optional[Message],
    default_hash: Hash,
    supported_hashes: Optional[Sequence[Hash]],
    *args: SignOption,
) -> Tuple[bytes, Hash]:
    """Return ``(digest, hash)`` for a message about to be signed.

    A digest given with ``with_digest`` is returned unchanged if its length
    fits the selected hash. The hash is taken from ``with_crypto_signer_opts``
    if given, else ``default_hash``; it must be in ``supported_hashes``.
    """
    return _compute_digest(message, default_hash, supported_hashes, args)


def compute_digest_for_verifying(
    message: Optional[Message],
    default_hash: Hash,
    supported_hashes: Optional[Sequence[Hash]],
    *args: VerifyOption,
) -> Tuple[bytes, Hash]:
    """Return ``(digest, hash)`` for a message whose signature is verified.

    The hash function is selected exactly as for signing.
    """
    return _compute_digest(message, default_hash, supported_hashes, args)


def hash_message(message: Optional[Message], hash_func: Hash) -> bytes:
    """Hash the message; with ``Hash.NONE`` the raw message is returned."""
    if message is None:
        raise ValueError("message cannot be nil")
    if isinstance(message, (bytes, bytearray, memoryview)):
        data = bytes(message)
        if hash_func is Hash.NONE:
            return data
        hasher = hash_func.new()
        hasher.update(data)
        return hasher.digest()

    if hash_func is Hash.NONE:
        return message.read()
    hasher = hash_func.new()
    try:
        for chunk in iter(lambda: message.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)
    except OSError as exc:
        raise OSError(f"hashing message: {exc}") from exc
    return hasher.digest()


def select_rand(*args: SignOption) -> RandSource:
    """Return the entropy source chosen by the options, or the system one."""
    rand = default_rand
    for opt in args:
        rand = opt.apply_rand(rand)
    return rand