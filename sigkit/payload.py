"""Container image signature payloads and image digest references."""

from __future__ import annotations

import json
import string
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import urlsplit

__all__ = [
    "COSIGN_SIGNATURE_TYPE",
    "DEFAULT_REGISTRY",
    "Digest",
    "SimpleContainerImage",
    "Cosign",
]

COSIGN_SIGNATURE_TYPE = "cosign container image signature"
"""The value of ``critical.type`` in a cosign payload."""

DEFAULT_REGISTRY = "index.docker.io"
_REGISTRY_ALIAS = "docker.io"

_DIGEST_CHARS = frozenset("sha256:0123456789abcdef")
_REPOSITORY_CHARS = frozenset("abcdefghijklmnopqrstuvwxyz0123456789_-./")
_TAG_CHARS = frozenset(string.ascii_letters + string.digits + "_-.")


def _check_element(kind: str, value: str, allowed: frozenset, min_len: int, max_len: int) -> None:
    if not min_len <= len(value) <= max_len:
        raise ValueError(
            f"{kind} must be between {min_len} and {max_len} characters in length: {value}"
        )
    if any(ch not in allowed for ch in value):
        raise ValueError(
            f"{kind} can only contain the characters `{''.join(sorted(allowed))}`: {value}"
        )


def _strip_tag(base: str) -> str:
    head, sep, tag = base.rpartition(":")
    if not sep or "/" in tag:
        return base
    try:
        _check_element("tag", tag, _TAG_CHARS, 1, 127)
    except ValueError:
        return base
    return head


def _normalize_registry(registry: str) -> str:
    if not registry or registry == _REGISTRY_ALIAS:
        return DEFAULT_REGISTRY
    try:
        host = urlsplit("//" + registry).netloc
    except ValueError as exc:
        raise ValueError(f"registries must be valid RFC 3986 URI authorities: {registry}") from exc
    if host != registry:
        raise ValueError(f"registries must be valid RFC 3986 URI authorities: {registry}")
    return registry


def _split_repository(name: str) -> Tuple[str, str]:
    if not name:
        raise ValueError("a repository name must be specified")
    first, sep, rest = name.partition("/")
    registry, repository = "", name
    if sep and ("." in first or ":" in first or first == "localhost"):
        registry, repository = first, rest
    _check_element("repository", repository, _REPOSITORY_CHARS, 2, 255)
    registry = _normalize_registry(registry)
    if registry == DEFAULT_REGISTRY and "/" not in repository:
        repository = "library/" + repository
    return registry, repository


@dataclass(frozen=True)
class Digest:
    """A reference to a container image by repository and content digest."""

    registry: str
    repository: str
    digest: str

    @classmethod
    def parse(cls, digest_str: str) -> "Digest":
        """Parse a reference such as ``example.com/repo@sha256:<hex>``."""
        parts = digest_str.split("@")
        if len(parts) != 2:
            raise ValueError(
                "a digest must contain exactly one '@' separator "
                f"(e.g. registry/repository@digest) saw: {digest_str}"
            )
        base, digest = parts
        _check_element("digest", digest, _DIGEST_CHARS, 7 + 64, 7 + 64)
        registry, repository = _split_repository(_strip_tag(base))
        return cls(registry, repository, digest)

    @property
    def repository_name(self) -> str:
        """The fully qualified repository, registry included."""
        return f"{self.registry}/{self.repository}"

    def name(self) -> str:
        """The fully qualified reference, ``repository@digest``."""
        return f"{self.repository_name}@{self.digest}"

    def __str__(self) -> str:
        return self.name()


def _get_object(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"field {key!r} must be a JSON object")
    return value


def _get_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a JSON string")
    return value


@dataclass(frozen=True)
class SimpleContainerImage:
    """The basic container image signature payload structure."""

    docker_reference: str = ""
    docker_manifest_digest: str = ""
    type: str = ""
    optional: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the payload as nested JSON-ready dictionaries."""
        return {
            "critical": {
                "identity": {"docker-reference": self.docker_reference},
                "image": {"docker-manifest-digest": self.docker_manifest_digest},
                "type": self.type,
            },
            "optional": self.optional,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimpleContainerImage":
        """Build a payload from decoded JSON; missing fields become empty."""
        if not isinstance(data, dict):
            raise ValueError("payload must be a JSON object")
        critical = _get_object(data, "critical")
        optional = data.get("optional")
        if optional is not None and not isinstance(optional, dict):
            raise ValueError("field 'optional' must be a JSON object")
        return cls(
            docker_reference=_get_str(_get_object(critical, "identity"), "docker-reference"),
            docker_manifest_digest=_get_str(
                _get_object(critical, "image"), "docker-manifest-digest"
            ),
            type=_get_str(critical, "type"),
            optional=optional,
        )


_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _dumps(obj: Any) -> bytes:
    text = json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False
    )
    for raw, escaped in _HTML_ESCAPES.items():
        text = text.replace(raw, escaped)
    return text.encode("utf-8")


@dataclass(frozen=True)
class Cosign:
    """A container image signed with cosign, plus optional annotations."""

    image: Digest
    annotations: Optional[Dict[str, Any]] = None

    def simple_container_image(self) -> SimpleContainerImage:
        """Describe the image in the simple container signature format."""
        return SimpleContainerImage(
            docker_reference=self.image.repository_name,
            docker_manifest_digest=self.image.digest,
            type=COSIGN_SIGNATURE_TYPE,
            optional=self.annotations,
        )

    def to_json(self) -> bytes:
        """Serialise the payload as compact JSON with sorted keys."""
        return _dumps(self.simple_container_image().to_dict())

    @classmethod
    def from_json(cls, data: Union[bytes, bytearray, str]) -> Optional["Cosign"]:
        """Parse a payload; JSON ``null`` gives None."""
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        if text.strip() == "null":
            return None
        simple = SimpleContainerImage.from_dict(json.loads(text))
        if simple.type != COSIGN_SIGNATURE_TYPE:
            raise ValueError(
                f'Cosign signature payload was of an unknown type: "{simple.type}"'
            )
        digest_str = simple.docker_reference + "@" + simple.docker_manifest_digest
        try:
            image = Digest.parse(digest_str)
        except ValueError as exc:
            raise ValueError(
                f'could not parse image digest string "{digest_str}": {exc}'
            ) from exc
        return cls(image=image, annotations=simple.optional)