"""Interfaces for signers and verifiers, and loaders that choose one by key type."""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from cryptography.hazmat.primitives.asymmetric import rsa

from .message import Message
from .options import Hash, PublicKeyOption, SignOption, VerifyOption
from .rsapkcs1v15 import (
    load_rsa_pkcs1v15_signer,
    load_rsa_pkcs1v15_signer_verifier,
    load_rsa_pkcs1v15_verifier,
)
from .rsapss import SignatureSource

__all__ = [
    "PublicKeyProvider",
    "Signer",
    "Verifier",
    "SignerVerifier",
    "load_signer",
    "load_verifier",
    "load_signer_verifier",
]


@runtime_checkable
class PublicKeyProvider(Protocol):
    """Provides the public key associated with a digital signature."""

    def public_key(self, *args: PublicKeyOption) -> Any: ...


@runtime_checkable
class Signer(PublicKeyProvider, Protocol):
    """Creates digital signatures over a message with a key pair."""

    def sign_message(self, message: Optional[Message], *args: SignOption) -> bytes: ...


@runtime_checkable
class Verifier(PublicKeyProvider, Protocol):
    """Verifies digital signatures with a public key."""

    def verify_signature(
        self,
        signature: Optional[SignatureSource],
        message: Optional[Message],
        *args: VerifyOption,
    ) -> None: ...


@runtime_checkable
class SignerVerifier(Signer, Verifier, Protocol):
    """Both creates and verifies digital signatures with a key pair."""


def _unsupported() -> ValueError:
    return ValueError("unsupported public key type")


def load_signer(private_key: Any, hash_func: Hash) -> Signer:
    """Return a signer suited to the type of ``private_key``.

    RSA keys get a PKCS #1 v1.5 signer; use the PSS loader directly for PSS.
    """
    if isinstance(private_key, rsa.RSAPrivateKey):
        return load_rsa_pkcs1v15_signer(private_key, hash_func)
    raise _unsupported()


def load_verifier(public_key: Any, hash_func: Hash) -> Verifier:
    """Return a verifier suited to the type of ``public_key``.

    RSA keys get a PKCS #1 v1.5 verifier; use the PSS loader directly for PSS.
    """
    if isinstance(public_key, rsa.RSAPublicKey):
        return load_rsa_pkcs1v15_verifier(public_key, hash_func)
    raise _unsupported()


def load_signer_verifier(private_key: Any, hash_func: Hash) -> SignerVerifier:
    """Return a combined signer and verifier suited to ``private_key``.

    RSA keys use PKCS #1 v1.5; use the PSS loader directly for PSS.
    """
    if isinstance(private_key, rsa.RSAPrivateKey):
        return load_rsa_pkcs1v15_signer_verifier(private_key, hash_func)
    raise _unsupported()