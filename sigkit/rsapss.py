"""RSA-PSS signers and verifiers.

The cryptographic backend supplies its own entropy for salts, so entropy
sources passed with ``with_rand`` are accepted but not consulted.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import BinaryIO, Optional, Tuple, Union

from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from .message import (
    Message,
    compute_digest_for_signing,
    compute_digest_for_verifying,
    is_supported_alg,
)
from .options import (
    Hash,
    HashFuncProvider,
    PublicKeyOption,
    RandSource,
    SignOption,
    VerifyOption,
    with_crypto_signer_opts,
    with_digest,
    with_rand,
)

__all__ = [
    "RSA_SUPPORTED_HASHES",
    "PSS_SALT_LENGTH_AUTO",
    "PSS_SALT_LENGTH_EQUALS_HASH",
    "PSSOptions",
    "RSAPSSSigner",
    "RSAPSSVerifier",
    "RSAPSSSignerVerifier",
    "load_rsa_pss_signer",
    "load_rsa_pss_verifier",
    "load_rsa_pss_signer_verifier",
    "new_default_rsa_pss_signer_verifier",
    "new_rsa_pss_signer_verifier",
]

RSA_SUPPORTED_HASHES: Tuple[Hash, ...] = (Hash.SHA256, Hash.SHA384, Hash.SHA512)
"""Hash functions accepted by the RSA signers and verifiers."""

PSS_SALT_LENGTH_AUTO = 0
"""Sign with the longest possible salt; accept any salt length when verifying."""

PSS_SALT_LENGTH_EQUALS_HASH = -1
"""Use a salt as long as the digest."""

SignatureSource = Union[bytes, bytearray, memoryview, BinaryIO]


@dataclass(frozen=True)
class PSSOptions:
    """Parameters for PSS signatures; also usable as signer options."""

    salt_length: int = PSS_SALT_LENGTH_AUTO
    hash: Hash = Hash.NONE

    def hash_func(self) -> Hash:
        """Return the hash function named by these options."""
        return self.hash


def _check_private_key(priv: object) -> None:
    if not isinstance(priv, rsa.RSAPrivateKey):
        raise ValueError("invalid RSA private key specified")


def _check_public_key(pub: object) -> None:
    if not isinstance(pub, rsa.RSAPublicKey):
        raise ValueError("invalid RSA public key specified")


def _check_hash(hash_func: object) -> Hash:
    try:
        checked = Hash(hash_func)
    except (ValueError, TypeError):
        raise ValueError("invalid hash function specified") from None
    if not is_supported_alg(checked, RSA_SUPPORTED_HASHES):
        raise ValueError("invalid hash function specified")
    return checked


def _read_all(source: SignatureSource) -> bytes:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    try:
        return source.read()
    except OSError as exc:
        raise OSError(f"reading signature: {exc}") from exc


def _sign_salt_length(salt_length: int) -> object:
    if salt_length == PSS_SALT_LENGTH_AUTO:
        return padding.PSS.MAX_LENGTH
    if salt_length == PSS_SALT_LENGTH_EQUALS_HASH:
        return padding.PSS.DIGEST_LENGTH
    if salt_length < 0:
        raise ValueError(f"invalid PSS salt length: {salt_length}")
    return salt_length


def _verify_salt_length(salt_length: int) -> object:
    if salt_length == PSS_SALT_LENGTH_AUTO:
        return padding.PSS.AUTO
    return _sign_salt_length(salt_length)


def _pss_padding(hash_func: Hash, salt_length: object) -> padding.PSS:
    return padding.PSS(mgf=padding.MGF1(hash_func.to_cryptography()), salt_length=salt_length)


class RSAPSSSigner:
    """Signs messages with RSA-PSS."""

    def __init__(
        self,
        priv: rsa.RSAPrivateKey,
        hash_func: Hash,
        opts: Optional[PSSOptions] = None,
    ) -> None:
        _check_private_key(priv)
        self._hash_func = _check_hash(hash_func)
        self._priv = priv
        self._pss_opts = opts

    def sign_message(self, message: Optional[Message], *args: SignOption) -> bytes:
        """Sign ``message``, hashing it unless ``with_digest`` supplies a digest.

        ``with_crypto_signer_opts`` selects another supported hash function.
        """
        digest, hashed_with = compute_digest_for_signing(
            message, self._hash_func, RSA_SUPPORTED_HASHES, *args
        )
        pss_opts = replace(self._pss_opts or PSSOptions(), hash=hashed_with)
        return self._priv.sign(
            digest,
            _pss_padding(hashed_with, _sign_salt_length(pss_opts.salt_length)),
            Prehashed(hashed_with.to_cryptography()),
        )

    def public(self) -> rsa.RSAPublicKey:
        """Return the public key matching this signer."""
        return self._priv.public_key()

    def public_key(self, *args: PublicKeyOption) -> rsa.RSAPublicKey:
        """Return the public key; options are ignored."""
        return self.public()

    def sign(
        self,
        rand: Optional[RandSource],
        digest: Optional[bytes],
        opts: Optional[HashFuncProvider],
    ) -> bytes:
        """Sign a precomputed digest.

        ``opts`` names the hash used for ``digest``; without it the signer's
        own hash function is assumed. The salt length always comes from the
        options given when the signer was created.
        """
        sign_opts = [with_digest(digest), with_rand(rand)]
        if opts is not None:
            sign_opts.append(with_crypto_signer_opts(opts))
        return self.sign_message(None, *sign_opts)


class RSAPSSVerifier:
    """Verifies RSA-PSS signatures."""

    def __init__(
        self,
        pub: rsa.RSAPublicKey,
        hash_func: Hash,
        opts: Optional[PSSOptions] = None,
    ) -> None:
        _check_public_key(pub)
        self._hash_func = _check_hash(hash_func)
        self._pub = pub
        self._pss_opts = opts

    def public_key(self, *args: PublicKeyOption) -> rsa.RSAPublicKey:
        """Return the public key; options are ignored."""
        return self._pub

    def verify_signature(
        self,
        signature: Optional[SignatureSource],
        message: Optional[Message],
        *args: VerifyOption,
    ) -> None:
        """Verify ``signature`` over ``message``.

        Raises ``cryptography.exceptions.InvalidSignature`` if it does not match.
        """
        digest, hashed_with = compute_digest_for_verifying(
            message, self._hash_func, RSA_SUPPORTED_HASHES, *args
        )
        if signature is None:
            raise ValueError("nil signature passed to VerifySignature")
        sig_bytes = _read_all(signature)
        pss_opts = self._pss_opts or PSSOptions()
        self._pub.verify(
            sig_bytes,
            digest,
            _pss_padding(hashed_with, _verify_salt_length(pss_opts.salt_length)),
            Prehashed(hashed_with.to_cryptography()),
        )


class RSAPSSSignerVerifier(RSAPSSSigner, RSAPSSVerifier):
    """Signs and verifies with one RSA key pair using PSS."""

    def __init__(
        self,
        priv: rsa.RSAPrivateKey,
        hash_func: Hash,
        opts: Optional[PSSOptions] = None,
    ) -> None:
        RSAPSSSigner.__init__(self, priv, hash_func, opts)
        RSAPSSVerifier.__init__(self, priv.public_key(), hash_func, opts)

    def public_key(self, *args: PublicKeyOption) -> rsa.RSAPublicKey:
        """Return the public key; options are ignored."""
        return self._pub


def load_rsa_pss_signer(
    priv: rsa.RSAPrivateKey, hash_func: Hash, opts: Optional[PSSOptions]
) -> RSAPSSSigner:
    """Create a signer; ``hash_func`` must be SHA-256, SHA-384 or SHA-512."""
    return RSAPSSSigner(priv, hash_func, opts)


def load_rsa_pss_verifier(
    pub: rsa.RSAPublicKey, hash_func: Hash, opts: Optional[PSSOptions]
) -> RSAPSSVerifier:
    """Create a verifier; ``hash_func`` must be SHA-256, SHA-384 or SHA-512."""
    return RSAPSSVerifier(pub, hash_func, opts)


def load_rsa_pss_signer_verifier(
    priv: rsa.RSAPrivateKey, hash_func: Hash, opts: Optional[PSSOptions]
) -> RSAPSSSignerVerifier:
    """Create a combined signer and verifier for ``priv``."""
    try:
        load_rsa_pss_signer(priv, hash_func, opts)
    except ValueError as exc:
        raise ValueError(f"initializing signer: {exc}") from exc
    try:
        load_rsa_pss_verifier(priv.public_key(), hash_func, opts)
    except ValueError as exc:
        raise ValueError(f"initializing verifier: {exc}") from exc
    return RSAPSSSignerVerifier(priv, hash_func, opts)


def new_default_rsa_pss_signer_verifier() -> Tuple[RSAPSSSignerVerifier, rsa.RSAPrivateKey]:
    """Generate a 2048-bit key and a SHA-256 signer and verifier for it."""
    return new_rsa_pss_signer_verifier(None, 2048, Hash.SHA256)


def new_rsa_pss_signer_verifier(
    rand: Optional[RandSource], bits: int, hash_func: Hash
) -> Tuple[RSAPSSSignerVerifier, rsa.RSAPrivateKey]:
    """Generate a key of ``bits`` bits and a signer and verifier for it.

    Keys are generated from the backend's secure random source; ``rand``
    is accepted for symmetry with the signing interface.
    """
    priv = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    sv = load_rsa_pss_signer_verifier(priv, hash_func, PSSOptions(hash=hash_func))
    return sv, priv