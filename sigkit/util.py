"""Signing and verifying container image payloads."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from cryptography.exceptions import InvalidSignature

from .loaders import SignerVerifier
from .payload import Cosign, Digest

__all__ = ["sign_image", "verify_image_signature"]


def sign_image(
    signer: SignerVerifier,
    image: Digest,
    annotations: Optional[Dict[str, Any]],
) -> Tuple[bytes, bytes]:
    """Sign a container manifest reference; return ``(payload, signature)``."""
    try:
        payload = Cosign(image=image, annotations=annotations).to_json()
    except (TypeError, ValueError) as exc:
        raise ValueError(f"failed to marshal payload to JSON: {exc}") from exc
    try:
        signature = signer.sign_message(payload)
    except (ValueError, OSError) as exc:
        raise ValueError(f"failed to sign payload: {exc}") from exc
    return payload, signature


def verify_image_signature(
    signer: SignerVerifier,
    payload: bytes,
    signature: bytes,
) -> Tuple[Optional[Digest], Optional[Dict[str, Any]]]:
    """Verify a signature over a payload; return its image and annotations.

    A payload of JSON ``null`` yields ``(None, None)``.
    """
    try:
        signer.verify_signature(signature, payload)
    except (InvalidSignature, ValueError, OSError) as exc:
        raise ValueError(f"signature verification failed: {exc or 'invalid signature'}") from exc
    try:
        cosign = Cosign.from_json(payload)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ValueError(f"could not deserialize image payload: {exc}") from exc
    if cosign is None:
        return None, None
    return cosign.image, cosign.annotations