"""RSA PKCS #1 v1.5 signers and verifiers."""

from __future__ import annotations

from typing import Optional, Tuple

from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from .message import Message, compute_digest_for_signing, compute_digest_for_verifying
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
from .rsapss import (
    RSA_SUPPORTED_HASHES,
    SignatureSource,
    _check_hash,
    _check_private_key,
    _check_public_key,
    _read_all,
)

__all__ = [
    "RSAPKCS1v15Signer",
    "RSAPKCS1v15Verifier",
    "RSAPKCS1v15SignerVerifier",
    "load_rsa_pkcs1v15_signer",
    "load_rsa_pkcs1v15_verifier",
    "load_rsa_pkcs1v15_signer_verifier",
    "new_default_rsa_pkcs1v15_signer_verifier",
    "new_rsa_pkcs1v15_signer_verifier",
]


class RSAPKCS1v15Signer:
    """Signs messages with RSA PKCS #1 v1.5."""

    def __init__(self, priv: rsa.RSAPrivateKey, hash_func: Hash) -> None:
        _check_private_key(priv)
        self._hash_func = _check_hash(hash_func)
        self._priv = priv

    def sign_message(self, message: Optional[Message], *args: SignOption) -> bytes:
        """Sign ``message``, hashing it unless ``with_digest`` supplies a digest.

        ``with_crypto_signer_opts`` selects another supported hash function.
        """
        digest, hashed_with = compute_digest_for_signing(
            message, self._hash_func, RSA_SUPPORTED_HASHES, *args
        )
        return self._priv.sign(
            digest, padding.PKCS1v15(), Prehashed(hashed_with.to_cryptography())
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
        own hash function is assumed.
        """
        sign_opts = [with_digest(digest), with_rand(rand)]
        if opts is not None:
            sign_opts.append(with_crypto_signer_opts(opts))
        return self.sign_message(None, *sign_opts)


class RSAPKCS1v15Verifier:
    """Verifies RSA PKCS #1 v1.5 signatures."""

    def __init__(self, pub: rsa.RSAPublicKey, hash_func: Hash) -> None:
        _check_public_key(pub)
        self._hash_func = _check_hash(hash_func)
        self._pub = pub

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
        self._pub.verify(
            sig_bytes, digest, padding.PKCS1v15(), Prehashed(hashed_with.to_cryptography())
        )


class RSAPKCS1v15SignerVerifier(RSAPKCS1v15Signer, RSAPKCS1v15Verifier):
    """Signs and verifies with one RSA key pair using PKCS #1 v1.5."""

    def __init__(self, priv: rsa.RSAPrivateKey, hash_func: Hash) -> None:
        RSAPKCS1v15Signer.__init__(self, priv, hash_func)
        RSAPKCS1v15Verifier.__init__(self, priv.public_key(), hash_func)

    def public_key(self, *args: PublicKeyOption) -> rsa.RSAPublicKey:
        """Return the public key; options are ignored."""
        return self._pub


def load_rsa_pkcs1v15_signer(priv: rsa.RSAPrivateKey, hash_func: Hash) -> RSAPKCS1v15Signer:
    """Create a signer; ``hash_func`` must be SHA-256, SHA-384 or SHA-512."""
    return RSAPKCS1v15Signer(priv, hash_func)


def load_rsa_pkcs1v15_verifier(pub: rsa.RSAPublicKey, hash_func: Hash) -> RSAPKCS1v15Verifier:
    """Create a verifier; ``hash_func`` must be SHA-256, SHA-384 or SHA-512."""
    return RSAPKCS1v15Verifier(pub, hash_func)


def load_rsa_pkcs1v15_signer_verifier(
    priv: rsa.RSAPrivateKey, hash_func: Hash
) -> RSAPKCS1v15SignerVerifier:
    """Create a combined signer and verifier for ``priv``."""
    try:
        load_rsa_pkcs1v15_signer(priv, hash_func)
    except ValueError as exc:
        raise ValueError(f"initializing signer: {exc}") from exc
    try:
        load_rsa_pkcs1v15_verifier(priv.public_key(), hash_func)
    except ValueError as exc:
        raise ValueError(f"initializing verifier: {exc}") from exc
    return RSAPKCS1v15SignerVerifier(priv, hash_func)


def new_default_rsa_pkcs1v15_signer_verifier() -> Tuple[
    RSAPKCS1v15SignerVerifier, rsa.RSAPrivateKey
]:
    """Generate a 2048-bit key and a SHA-256 signer and verifier for it."""
    return new_rsa_pkcs1v15_signer_verifier(None, 2048, Hash.SHA256)


def new_rsa_pkcs1v15_signer_verifier(
    rand: Optional[RandSource], bits: int, hash_func: Hash
) -> Tuple[RSAPKCS1v15SignerVerifier, rsa.RSAPrivateKey]:
    """Generate a key of ``bits`` bits and a signer and verifier for it.

    Keys are generated from the backend's secure random source; ``rand``
    is accepted for symmetry with the signing interface.
    """
    priv = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    sv = load_rsa_pkcs1v15_signer_verifier(priv, hash_func)
    return sv, priv