"""Hash identifiers and functional options for signing and verification.

Each option overrides one setting. Every ``apply_*`` method takes the
current value of a setting and returns the value to use from then on.
Options that do not deal with a setting hand back the value they were given.
"""

from __future__ import annotations

import enum
import hashlib
import os
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional, Protocol, Tuple

from cryptography.hazmat.primitives import hashes

__all__ = [
    "Hash",
    "HashFuncProvider",
    "SignerOpts",
    "KeyVersionSink",
    "RPCAuthOIDC",
    "RPCAuth",
    "NoOpOption",
    "RequestContext",
    "RequestDigest",
    "RequestKeyVersion",
    "RequestKeyVersionUsed",
    "RequestRand",
    "RequestRemoteVerification",
    "RPCAuthOpts",
    "RequestCryptoSignerOpts",
    "RPCOption",
    "PublicKeyOption",
    "MessageOption",
    "SignOption",
    "VerifyOption",
    "default_rand",
    "with_context",
    "with_digest",
    "with_key_version",
    "return_key_version_used",
    "with_rand",
    "with_remote_verification",
    "with_rpc_auth_opts",
    "with_crypto_signer_opts",
]

RandSource = Callable[[int], bytes]

default_rand: RandSource = os.urandom
"""The source of entropy used when none is given."""


class Hash(enum.IntEnum):
    """Identifies a hash function; ``NONE`` means the message is not hashed."""

    NONE = 0
    SHA1 = 3
    SHA224 = 4
    SHA256 = 5
    SHA384 = 6
    SHA512 = 7
    SHA3_224 = 10
    SHA3_256 = 11
    SHA3_384 = 12
    SHA3_512 = 13

    def __str__(self) -> str:
        if self is Hash.NONE:
            return "unknown hash value 0"
        return _DISPLAY_NAMES[self]

    def __repr__(self) -> str:
        return f"Hash.{self.name}"

    @property
    def available(self) -> bool:
        """Whether this hash function can actually be computed."""
        return self is not Hash.NONE

    @property
    def size(self) -> int:
        """Length in bytes of a digest produced by this hash function."""
        if self is Hash.NONE:
            return 0
        return self.new().digest_size

    def new(self) -> "hashlib._Hash":
        """Return a fresh hashlib object for this hash function."""
        if self is Hash.NONE:
            raise ValueError("hash function 0 cannot be instantiated")
        return hashlib.new(_HASHLIB_NAMES[self])

    def hash_func(self) -> "Hash":
        """A bare hash acts as signer options that name itself."""
        return self

    def to_cryptography(self) -> hashes.HashAlgorithm:
        """Return the matching algorithm object of the cryptography library."""
        if self is Hash.NONE:
            raise ValueError("hash function 0 has no algorithm")
        return _CRYPTOGRAPHY_ALGORITHMS[self]()


_HASHLIB_NAMES = {
    Hash.SHA1: "sha1",
    Hash.SHA224: "sha224",
    Hash.SHA256: "sha256",
    Hash.SHA384: "sha384",
    Hash.SHA512: "sha512",
    Hash.SHA3_224: "sha3_224",
    Hash.SHA3_256: "sha3_256",
    Hash.SHA3_384: "sha3_384",
    Hash.SHA3_512: "sha3_512",
}

_DISPLAY_NAMES = {
    Hash.SHA1: "SHA-1",
    Hash.SHA224: "SHA-224",
    Hash.SHA256: "SHA-256",
    Hash.SHA384: "SHA-384",
    Hash.SHA512: "SHA-512",
    Hash.SHA3_224: "SHA3-224",
    Hash.SHA3_256: "SHA3-256",
    Hash.SHA3_384: "SHA3-384",
    Hash.SHA3_512: "SHA3-512",
}

_CRYPTOGRAPHY_ALGORITHMS = {
    Hash.SHA1: hashes.SHA1,
    Hash.SHA224: hashes.SHA224,
    Hash.SHA256: hashes.SHA256,
    Hash.SHA384: hashes.SHA384,
    Hash.SHA512: hashes.SHA512,
    Hash.SHA3_224: hashes.SHA3_224,
    Hash.SHA3_256: hashes.SHA3_256,
    Hash.SHA3_384: hashes.SHA3_384,
    Hash.SHA3_512: hashes.SHA3_512,
}


class HashFuncProvider(Protocol):
    """Anything that names the hash function used for a digest."""

    def hash_func(self) -> Hash: ...


@dataclass(frozen=True)
class SignerOpts:
    """Signer options naming a hash function plus extra signing options."""

    hash: Hash = Hash.NONE
    opts: Tuple["NoOpOption", ...] = ()

    def hash_func(self) -> Hash:
        """Return the hash function for these options."""
        return self.hash


@dataclass
class KeyVersionSink:
    """Receives the key version that a remote signer actually used."""

    value: Optional[str] = None


@dataclass(frozen=True)
class RPCAuthOIDC:
    """Credentials for logging in to an RPC service with OIDC."""

    path: str = ""
    role: str = ""
    token: str = ""


@dataclass(frozen=True)
class RPCAuth:
    """Credentials for RPC calls; empty fields are ignored when merging."""

    address: str = ""
    path: str = ""
    token: str = ""
    oidc: RPCAuthOIDC = field(default_factory=RPCAuthOIDC)


class NoOpOption:
    """An option that leaves every setting unchanged."""

    def apply_context(self, ctx: Any) -> Any:
        return ctx

    def apply_crypto_signer_opts(self, opts: HashFuncProvider) -> HashFuncProvider:
        return opts

    def apply_digest(self, digest: Optional[bytes]) -> Optional[bytes]:
        return digest

    def apply_rand(self, rand: RandSource) -> RandSource:
        return rand

    def apply_remote_verification(self, remote_verification: bool) -> bool:
        return remote_verification

    def apply_rpc_auth_opts(self, opts: RPCAuth) -> RPCAuth:
        return opts

    def apply_key_version(self, key_version: str) -> str:
        return key_version

    def apply_key_version_used(
        self, key_version_used: Optional[KeyVersionSink]
    ) -> Optional[KeyVersionSink]:
        return key_version_used


RPCOption = NoOpOption
PublicKeyOption = NoOpOption
MessageOption = NoOpOption
SignOption = NoOpOption
VerifyOption = NoOpOption


@dataclass(frozen=True)
class RequestContext(NoOpOption):
    """Supplies the context to use for calls to external services."""

    ctx: Any

    def apply_context(self, ctx: Any) -> Any:
        return self.ctx


@dataclass(frozen=True)
class RequestDigest(NoOpOption):
    """Supplies a digest that has already been computed."""

    digest: Optional[bytes]

    def apply_digest(self, digest: Optional[bytes]) -> Optional[bytes]:
        return self.digest


@dataclass(frozen=True)
class RequestKeyVersion(NoOpOption):
    """Selects the key version to use in a key management service."""

    key_version: str

    def apply_key_version(self, key_version: str) -> str:
        return self.key_version


@dataclass(frozen=True)
class RequestKeyVersionUsed(NoOpOption):
    """Asks for the key version used in signing to be stored in a sink."""

    sink: Optional[KeyVersionSink]

    def apply_key_version_used(
        self, key_version_used: Optional[KeyVersionSink]
    ) -> Optional[KeyVersionSink]:
        return self.sink


@dataclass(frozen=True)
class RequestRand(NoOpOption):
    """Supplies the source of entropy for signing."""

    rand: RandSource

    def apply_rand(self, rand: RandSource) -> RandSource:
        return self.rand


@dataclass(frozen=True)
class RequestRemoteVerification(NoOpOption):
    """Asks for verification to be done remotely where possible."""

    remote_verification: bool

    def apply_remote_verification(self, remote_verification: bool) -> bool:
        return self.remote_verification


@dataclass(frozen=True)
class RPCAuthOpts(NoOpOption):
    """Overrides the non-empty fields of the RPC credentials."""

    opts: RPCAuth

    def apply_rpc_auth_opts(self, opts: RPCAuth) -> RPCAuth:
        changes = {}
        if self.opts.address:
            changes["address"] = self.opts.address
        if self.opts.path:
            changes["path"] = self.opts.path
        if self.opts.token:
            changes["token"] = self.opts.token
        if self.opts.oidc.token:
            changes["oidc"] = self.opts.oidc
        return replace(opts, **changes)


@dataclass(frozen=True)
class RequestCryptoSignerOpts(NoOpOption):
    """Supplies the signer options, and so the hash function, to use."""

    opts: HashFuncProvider

    def apply_crypto_signer_opts(self, opts: HashFuncProvider) -> HashFuncProvider:
        return self.opts


def with_context(ctx: Any) -> RequestContext:
    """Use the given context for calls to external services."""
    return RequestContext(ctx)


def with_digest(digest: Optional[bytes]) -> RequestDigest:
    """Use the given precomputed digest instead of hashing the message."""
    return RequestDigest(digest)


def with_key_version(key_version: str) -> RequestKeyVersion:
    """Use a specific key version; "0" selects the latest version."""
    return RequestKeyVersion(key_version)


def return_key_version_used(sink: Optional[KeyVersionSink]) -> RequestKeyVersionUsed:
    """Store the key version used during signing in ``sink``."""
    return RequestKeyVersionUsed(sink)


def with_rand(rand: Optional[RandSource]) -> RequestRand:
    """Use the given entropy source, or the system one if ``rand`` is None."""
    return RequestRand(default_rand if rand is None else rand)


def with_remote_verification(remote_verification: bool) -> RequestRemoteVerification:
    """Perform verification remotely rather than in this process."""
    return RequestRemoteVerification(remote_verification)


def with_rpc_auth_opts(opts: RPCAuth) -> RPCAuthOpts:
    """Use the given credentials for RPC logins."""
    return RPCAuthOpts(opts)


def with_crypto_signer_opts(opts: Optional[HashFuncProvider]) -> RequestCryptoSignerOpts:
    """Use the given signer options; SHA-256 is used when ``opts`` is None."""
    return RequestCryptoSignerOpts(Hash.SHA256 if opts is None else opts)