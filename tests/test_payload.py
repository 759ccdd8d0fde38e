import json

import pytest

from sigkit.payload import (
    COSIGN_SIGNATURE_TYPE,
    Cosign,
    Digest,
    SimpleContainerImage,
)

VALID_DIGEST = "sha256:d34db33fd34db33fd34db33fd34db33fd34db33fd34db33fd34db33fd34db33f"


def must_parse(ref):
    return Digest.parse(ref)


MARSHAL_CASES = [
    (
        "no claims",
        "example.com/test/image@" + VALID_DIGEST,
        None,
        '{"critical":{"identity":{"docker-reference":"example.com/test/image"},"image":{"docker-manifest-digest":"sha256:d34db33fd34db33fd34db33fd34db33fd34db33fd34db33fd34db33fd34db33f"},"type":"cosign container image signature"},"optional":null}',
    ),
    (
        "standard atomic signature",
        "example.com/atomic/test/image@" + VALID_DIGEST,
        {"creator": "atomic", "timestamp": 1458239713},
        '{"critical":{"identity":{"docker-reference":"example.com/atomic/test/image"},"image":{"docker-manifest-digest":"sha256:d34db33fd34db33fd34db33fd34db33fd34db33fd34db33fd34db33fd34db33f"},"type":"cosign container image signature"},"optional":{"creator":"atomic","timestamp":1458239713}}',
    ),
    (
        "arbitrary claims",
        "example.com/cosign/test/image@" + VALID_DIGEST,
        {
            "creator": "anyone",
            "some_struct": {"foo": "bar", "false": True, "nothing": None},
            "CamelCase WithSpace": 8.314,
        },
        '{"critical":{"identity":{"docker-reference":"example.com/cosign/test/image"},"image":{"docker-manifest-digest":"sha256:d34db33fd34db33fd34db33fd34db33fd34db33fd34db33fd34db33fd34db33f"},"type":"cosign container image signature"},"optional":{"CamelCase WithSpace":8.314,"creator":"anyone","some_struct":{"false":true,"foo":"bar","nothing":null}}}',
    ),
]


@pytest.mark.parametrize(
    "ref,annotations,expected",
    [(c[1], c[2], c[3]) for c in MARSHAL_CASES],
    ids=[c[0] for c in MARSHAL_CASES],
)
def test_marshal_cosign(ref, annotations, expected):
    payload = Cosign(image=Digest.parse(ref), annotations=annotations)
    assert payload.to_json().decode("utf-8") == expected


UNMARSHAL_CASES = [
    (
        "no claims",
        '{"critical":{"identity":{"docker-reference":"example.com/test/image"},"image":{"docker-manifest-digest":"sha256:d34db33fd34db33fd34db33fd34db33fd34db33fd34db33fd34db33fd34db33f"},"type":"cosign container image signature"},"optional":null}',
        Cosign(image=must_parse("example.com/test/image@" + VALID_DIGEST)),
    ),
    (
        "arbitrary claims",
        '{"critical":{"identity":{"docker-reference":"example.com/cosign/test/image"},"image":{"docker-manifest-digest":"sha256:d34db33fd34db33fd34db33fd34db33fd34db33fd34db33fd34db33fd34db33f"},"type":"cosign container image signature"},"optional":{"CamelCase WithSpace":8.314,"creator":"anyone","some_struct":{"false":true,"foo":"bar","nothing":null}}}',
        Cosign(
            image=must_parse("example.com/cosign/test/image@" + VALID_DIGEST),
            annotations={
                "creator": "anyone",
                "some_struct": {"foo": "bar", "false": True, "nothing": None},
                "CamelCase WithSpace": 8.314,
            },
        ),
    ),
]


@pytest.mark.parametrize(
    "payload,expected",
    [(c[1], c[2]) for c in UNMARSHAL_CASES],
    ids=[c[0] for c in UNMARSHAL_CASES],
)
def test_unmarshal_cosign(payload, expected):
    assert Cosign.from_json(payload.encode("utf-8")) == expected


def test_unmarshal_unknown_type():
    payload = '{"critical":{"identity":{"docker-reference":"example.com/atomic/test/image"},"image":{"docker-manifest-digest":"sha256:d34db33fd34db33fd34db33fd34db33fd34db33fd34db33fd34db33fd34db33f"},"type":"atomic container signature"},"optional":{}}'
    with pytest.raises(ValueError, match="unknown type"):
        Cosign.from_json(payload)


def test_unmarshal_null_is_noop():
    assert Cosign.from_json(b"null") is None


def test_unmarshal_invalid_json():
    with pytest.raises(ValueError):
        Cosign.from_json(b"{not json")


def test_unmarshal_bad_digest():
    payload = json.dumps(
        {
            "critical": {
                "identity": {"docker-reference": "example.com/test/image"},
                "image": {"docker-manifest-digest": "sha256:abc"},
                "type": COSIGN_SIGNATURE_TYPE,
            },
            "optional": None,
        }
    )
    with pytest.raises(ValueError, match="could not parse image digest string"):
        Cosign.from_json(payload)


def test_unmarshal_wrong_field_type():
    payload = json.dumps({"critical": {"type": 5}})
    with pytest.raises(ValueError):
        Cosign.from_json(payload)


def test_round_trip():
    original = Cosign(
        image=must_parse("example.com/rsa@" + VALID_DIGEST),
        annotations={"creator": "RSA", "Floaty McFloatface": 6.022e23},
    )
    assert Cosign.from_json(original.to_json()) == original


def test_html_characters_are_escaped():
    payload = Cosign(
        image=must_parse("example.com/test/image@" + VALID_DIGEST),
        annotations={"note": "<a&b>"},
    )
    text = payload.to_json().decode("utf-8")
    assert "\\u003ca\\u0026b\\u003e" in text
    assert Cosign.from_json(text) == payload


def test_simple_container_image_fields():
    cosign = Cosign(image=must_parse("example.com/test/image@" + VALID_DIGEST))
    simple = cosign.simple_container_image()
    assert simple.docker_reference == "example.com/test/image"
    assert simple.docker_manifest_digest == VALID_DIGEST
    assert simple.type == COSIGN_SIGNATURE_TYPE
    assert simple.optional is None


def test_simple_container_image_dict_round_trip():
    simple = SimpleContainerImage("example.com/a/b", VALID_DIGEST, COSIGN_SIGNATURE_TYPE, {"k": 1})
    assert SimpleContainerImage.from_dict(simple.to_dict()) == simple


def test_digest_name():
    digest = Digest.parse("example.com/test/image@" + VALID_DIGEST)
    assert digest.name() == "example.com/test/image@" + VALID_DIGEST
    assert digest.registry == "example.com"
    assert digest.repository == "test/image"
    assert digest.digest == VALID_DIGEST


def test_digest_default_registry():
    digest = Digest.parse("ubuntu@" + VALID_DIGEST)
    assert digest.repository_name == "index.docker.io/library/ubuntu"


def test_digest_registry_alias():
    digest = Digest.parse("docker.io/someone/tool@" + VALID_DIGEST)
    assert digest.repository_name == "index.docker.io/someone/tool"


def test_digest_with_port_and_tag():
    digest = Digest.parse("localhost:5000/foo/bar:v1@" + VALID_DIGEST)
    assert digest.registry == "localhost:5000"
    assert digest.repository == "foo/bar"
    assert digest.name() == "localhost:5000/foo/bar@" + VALID_DIGEST


@pytest.mark.parametrize(
    "ref",
    [
        "example.com/test/image",
        "example.com/test/image@" + VALID_DIGEST + "@" + VALID_DIGEST,
        "example.com/test/image@sha256:abc",
        "example.com/test/image@sha512:" + "a" * 64,
        "example.com/Test/Image@" + VALID_DIGEST,
        "example.com/a@" + VALID_DIGEST,
        "@" + VALID_DIGEST,
    ],
)
def test_digest_invalid(ref):
    with pytest.raises(ValueError):
        Digest.parse(ref)