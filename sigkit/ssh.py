"""SSH signatures in the armored SSHSIG file format.

Signatures are made over a wrapped digest of the message in the ``file``
namespace and armored as an ``SSH SIGNATURE`` PEM block. Verification raises
``cryptography.exceptions.InvalidSignature`` when a signature does not match,
and ``ValueError`` when a signature block or key cannot be used.
"""

from __future__ import annotations

import base64
import re
import struct
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, Optional, Tuple, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from .message import Message, hash_message
from .options import Hash, PublicKeyOption, SignOption, VerifyOption

__all__ = [
    "NAMESPACE",
    "PEM_TYPE",
    "MAGIC_HEADER",
    "DEFAULT_HASH_ALGORITHM",
    "SUPPORTED_HASH_ALGORITHMS",
    "SSHSignature",
    "Signer",
    "armor",
    "decode",
    "sign",
    "verify",
]

NAMESPACE = "file"
PEM_TYPE = "SSH SIGNATURE"
MAGIC_HEADER = b"SSHSIG"
DEFAULT_HASH_ALGORITHM = "sha512"

SUPPORTED_HASH_ALGORITHMS: Dict[str, Hash] = {
    "sha256": Hash.SHA256,
    "sha512": Hash.SHA512,
}
"""Hash algorithms a signature block may name, by their SSHSIG names."""

_KEY_ALGO_RSA = "ssh-rsa"
_SIG_ALGO_RSA_SHA2_512 = "rsa-sha2-512"

_RSA_SIGNATURE_HASHES = {
    "ssh-rsa": hashes.SHA1,
    "rsa-sha2-256": hashes.SHA256,
    "rsa-sha2-512": hashes.SHA512,
}

_ECDSA_HASHES = {
    "secp256r1": hashes.SHA256,
    "secp384r1": hashes.SHA384,
    "secp521r1": hashes.SHA512,
}

_PEM_LINE_LENGTH = 64
_PEM_RE = re.compile(
    rb"-----BEGIN ([^\r\n]*?)-----[ \t]*\r?\n(.*?)^-----END \1-----",
    re.S | re.M,
)

PrivateKey = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey]
PublicKey = Union[rsa.RSAPublicKey, ec.EllipticCurvePublicKey, ed25519.Ed25519PublicKey]


@dataclass(frozen=True)
class SSHSignature:
    """An SSH signature: its format, blob and, once decoded, key and hash."""

    format: str
    blob: bytes
    public_key: Optional[Any] = None
    hash_alg: str = DEFAULT_HASH_ALGORITHM
    rest: bytes = b""


class _WireReader:
    """Reads the SSH wire encoding of uint32 values and length-prefixed strings."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def take(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise ValueError("ssh: short read while parsing message")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def uint32(self) -> int:
        return struct.unpack(">I", self.take(4))[0]

    def string(self) -> bytes:
        return self.take(self.uint32())

    def rest(self) -> bytes:
        chunk = self._data[self._pos:]
        self._pos = len(self._data)
        return chunk

    def finish(self) -> None:
        if self._pos != len(self._data):
            raise ValueError("ssh: unexpected trailing data in message")


def _string(value: Union[bytes, str]) -> bytes:
    raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    return struct.pack(">I", len(raw)) + raw


def _mpint(value: int) -> bytes:
    if value == 0:
        return b""
    return value.to_bytes((value.bit_length() + 8) // 8, "big", signed=True)


def _text(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def _public_key_blob(public_key: PublicKey) -> bytes:
    try:
        line = public_key.public_bytes(
            serialization.Encoding.OpenSSH, serialization.PublicFormat.OpenSSH
        )
    except (AttributeError, ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ValueError(f"ssh: unsupported public key: {exc}") from exc
    return base64.b64decode(line.split()[1])


def _key_type(public_key: PublicKey) -> str:
    return _text(_WireReader(_public_key_blob(public_key)).string())


def _parse_public_key(blob: bytes) -> PublicKey:
    try:
        key_type = _WireReader(blob).string()
        return serialization.load_ssh_public_key(key_type + b" " + base64.b64encode(blob))
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise ValueError(f"ssh: cannot parse public key: {exc}") from exc


def _check_private_key(key: object) -> PrivateKey:
    if not isinstance(
        key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey)
    ):
        raise ValueError(f"ssh: unsupported key type {type(key).__name__}")
    return key


def _parse_private_key(text: Union[str, bytes]) -> PrivateKey:
    raw = text.encode("utf-8") if isinstance(text, str) else bytes(text)
    try:
        if b"OPENSSH PRIVATE KEY" in raw:
            key = serialization.load_ssh_private_key(raw, password=None)
        else:
            key = serialization.load_pem_private_key(raw, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ValueError(f"ssh: cannot parse private key: {exc}") from exc
    return _check_private_key(key)


def _ecdsa_hash(curve: ec.EllipticCurve) -> hashes.HashAlgorithm:
    try:
        return _ECDSA_HASHES[curve.name]()
    except KeyError:
        raise ValueError(f"ssh: unsupported curve {curve.name}") from None


def _sign_with_algorithm(private_key: PrivateKey, data: bytes, algorithm: str) -> SSHSignature:
    public_key = private_key.public_key()
    key_type = _key_type(public_key)
    if isinstance(private_key, rsa.RSAPrivateKey):
        algorithm = algorithm or _KEY_ALGO_RSA
        if algorithm not in _RSA_SIGNATURE_HASHES:
            raise ValueError(f"ssh: unsupported signature algorithm {algorithm}")
        blob = private_key.sign(data, padding.PKCS1v15(), _RSA_SIGNATURE_HASHES[algorithm]())
        return SSHSignature(format=algorithm, blob=blob, public_key=public_key)
    if algorithm and algorithm != key_type:
        raise ValueError(f"ssh: unsupported signature algorithm {algorithm}")
    if isinstance(private_key, ec.EllipticCurvePrivateKey):
        der = private_key.sign(data, ec.ECDSA(_ecdsa_hash(private_key.curve)))
        r, s = decode_dss_signature(der)
        blob = _string(_mpint(r)) + _string(_mpint(s))
        return SSHSignature(format=key_type, blob=blob, public_key=public_key)
    return SSHSignature(format=key_type, blob=private_key.sign(data), public_key=public_key)


def _verify_raw(public_key: PublicKey, data: bytes, signature: SSHSignature) -> None:
    key_type = _key_type(public_key)
    if isinstance(public_key, rsa.RSAPublicKey):
        hash_cls = _RSA_SIGNATURE_HASHES.get(signature.format)
        if hash_cls is None:
            raise ValueError(
                f"ssh: signature type {signature.format} for key type {key_type}"
            )
        public_key.verify(signature.blob, data, padding.PKCS1v15(), hash_cls())
        return
    if signature.format != key_type:
        raise ValueError(f"ssh: signature type {signature.format} for key type {key_type}")
    if isinstance(public_key, ec.EllipticCurvePublicKey):
        reader = _WireReader(signature.blob)
        r = int.from_bytes(reader.string(), "big", signed=True)
        s = int.from_bytes(reader.string(), "big", signed=True)
        reader.finish()
        if r <= 0 or s <= 0:
            raise ValueError("ssh: invalid ECDSA signature values")
        public_key.verify(
            encode_dss_signature(r, s), data, ec.ECDSA(_ecdsa_hash(public_key.curve))
        )
        return
    if isinstance(public_key, ed25519.Ed25519PublicKey):
        if len(signature.blob) != 64:
            raise ValueError(f"ssh: invalid size {len(signature.blob)} for Ed25519 signature")
        public_key.verify(signature.blob, data)
        return
    raise ValueError(f"ssh: unsupported key type {key_type}")


def _signed_data(hash_alg: str, digest: bytes) -> bytes:
    return MAGIC_HEADER + (
        _string(NAMESPACE) + _string(b"") + _string(hash_alg) + _string(digest)
    )


def _pem_encode(block_type: str, body: bytes) -> bytes:
    encoded = base64.b64encode(body).decode("ascii")
    lines = [f"-----BEGIN {block_type}-----"]
    lines.extend(
        encoded[start:start + _PEM_LINE_LENGTH]
        for start in range(0, len(encoded), _PEM_LINE_LENGTH)
    )
    lines.append(f"-----END {block_type}-----")
    return ("\n".join(lines) + "\n").encode("ascii")


def _pem_decode(data: bytes) -> Optional[Tuple[str, bytes]]:
    for match in _PEM_RE.finditer(data):
        body = b"".join(match.group(2).split())
        try:
            return _text(match.group(1)), base64.b64decode(body, validate=True)
        except ValueError:
            continue
    return None


def _read_all(source: Union[bytes, bytearray, memoryview, BinaryIO, None], what: str) -> bytes:
    if source is None:
        raise ValueError(f"{what} cannot be nil")
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    return source.read()


def armor(signature: SSHSignature, public_key: PublicKey) -> bytes:
    """Return a PEM armored SSHSIG block for ``signature`` made by ``public_key``."""
    sig_blob = _string(signature.format) + _string(signature.blob) + signature.rest
    body = (
        MAGIC_HEADER
        + struct.pack(">I", 1)
        + _string(_public_key_blob(public_key))
        + _string(NAMESPACE)
        + _string(b"")
        + _string(DEFAULT_HASH_ALGORITHM)
        + _string(sig_blob)
    )
    return _pem_encode(PEM_TYPE, body)


def decode(data: Union[bytes, str]) -> SSHSignature:
    """Parse a PEM armored SSHSIG block."""
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    block = _pem_decode(raw)
    if block is None:
        raise ValueError("unable to decode pem file")
    block_type, body = block
    if block_type != PEM_TYPE:
        raise ValueError(f"wrong pem block type: {block_type}. Expected SSH-SIGNATURE")

    reader = _WireReader(body)
    magic = reader.take(len(MAGIC_HEADER))
    version = reader.uint32()
    public_key_blob = reader.string()
    namespace = reader.string()
    reader.string()
    hash_alg = reader.string()
    signature_blob = reader.string()
    reader.finish()

    if version != 1:
        raise ValueError(f"unsupported signature version: {version}")
    if magic != MAGIC_HEADER:
        raise ValueError(f"invalid magic header: {_text(magic)}")
    if namespace != NAMESPACE.encode():
        raise ValueError(f"invalid signature namespace: {_text(namespace)}")
    hash_name = _text(hash_alg)
    if hash_name not in SUPPORTED_HASH_ALGORITHMS:
        raise ValueError(f"unsupported hash algorithm: {hash_name}")

    sig_reader = _WireReader(signature_blob)
    sig_format = _text(sig_reader.string())
    sig_value = sig_reader.string()
    rest = sig_reader.rest()

    return SSHSignature(
        format=sig_format,
        blob=sig_value,
        public_key=_parse_public_key(public_key_blob),
        hash_alg=hash_name,
        rest=rest,
    )


def sign(private_key_text: Union[str, bytes], data: Optional[Message]) -> bytes:
    """Sign ``data`` with an OpenSSH or PEM private key; return the armored block."""
    private_key = _parse_private_key(private_key_text)
    digest = hash_message(data, SUPPORTED_HASH_ALGORITHMS[DEFAULT_HASH_ALGORITHM])
    algorithm = ""
    if _key_type(private_key.public_key()) == _KEY_ALGO_RSA:
        algorithm = _SIG_ALGO_RSA_SHA2_512
    signature = _sign_with_algorithm(
        private_key, _signed_data(DEFAULT_HASH_ALGORITHM, digest), algorithm
    )
    return armor(signature, private_key.public_key())


def verify(message: Optional[Message], armored_signature: Union[bytes, str], public_key: PublicKey) -> None:
    """Verify an armored signature over ``message`` against ``public_key``."""
    decoded = decode(armored_signature)
    digest = hash_message(message, SUPPORTED_HASH_ALGORITHMS[decoded.hash_alg])
    _verify_raw(public_key, _signed_data(decoded.hash_alg, digest), decoded)


class Signer:
    """Signs and verifies with an SSH key pair."""

    def __init__(self, private_key: PrivateKey) -> None:
        self._private_key = _check_private_key(private_key)

    def public_key(self, *args: PublicKeyOption) -> PublicKey:
        """Return the public key; options are ignored."""
        return self._private_key.public_key()

    def sign_message(self, message: Optional[Message], *args: SignOption) -> bytes:
        """Sign the raw message with the key's default algorithm and armor it."""
        data = _read_all(message, "message")
        signature = _sign_with_algorithm(self._private_key, data, "")
        return armor(signature, self.public_key())

    def verify_signature(
        self,
        signature: Union[bytes, bytearray, memoryview, BinaryIO, None],
        message: Optional[Message],
        *args: VerifyOption,
    ) -> None:
        """Verify an armored signature over ``message`` with this key."""
        return verify(message, _read_all(signature, "signature"), self.public_key())