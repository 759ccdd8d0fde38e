# sigkit

Create and check digital signatures over messages using RSA (PKCS#1 v1.5 or
PSS) and SSH keys, and sign container image payloads.

## Install

```
pip install sigkit
```

## Signing and verifying with RSA

```python
from sigkit.rsapss import new_default_rsa_pss_signer_verifier

sv, priv = new_default_rsa_pss_signer_verifier()
signature = sv.sign_message(b"sign me")
sv.verify_signature(signature, b"sign me")
```

Messages and signatures may be given as bytes or as binary file objects.
`verify_signature` returns nothing on success and raises
`cryptography.exceptions.InvalidSignature` when the signature does not match;
it raises `ValueError` when the message or signature is missing or the options
are unusable.

`sigkit.rsapkcs1v15` offers the same functions and classes for PKCS#1 v1.5
(`new_default_rsa_pkcs1v15_signer_verifier`, `load_rsa_pkcs1v15_signer`,
`load_rsa_pkcs1v15_verifier`, `load_rsa_pkcs1v15_signer_verifier`). Digests
are computed with SHA-256, SHA-384 or SHA-512; any other hash is rejected with
`ValueError("invalid hash function specified")`.

For PSS, `PSSOptions(salt_length=...)` sets the salt length; the default
(`PSS_SALT_LENGTH_AUTO`) signs with the longest salt and accepts any salt
length when verifying.

## Options

Options alter a single call:

```python
from sigkit.options import Hash, with_digest, with_crypto_signer_opts

hasher = Hash.SHA256.new()
hasher.update(b"sign me")
sv.sign_message(None, with_digest(hasher.digest()), with_crypto_signer_opts(Hash.SHA256))
```

A digest given with `with_digest` is used as it is, provided its length fits
the selected hash. `with_crypto_signer_opts(None)` selects SHA-256. The other
options in `sigkit.options` (`with_context`, `with_rand`, `with_key_version`,
`return_key_version_used`, `with_remote_verification`, `with_rpc_auth_opts`)
are accepted by every signer and verifier but have no effect on the local
RSA and SSH implementations; the cryptographic backend supplies its own
entropy.

## Picking an implementation from a key

```python
from sigkit.loaders import load_signer, load_verifier, load_signer_verifier
from sigkit.options import Hash

signer = load_signer(priv, Hash.SHA256)
verifier = load_verifier(priv.public_key(), Hash.SHA256)
```

RSA keys get a PKCS#1 v1.5 implementation; use the PSS loaders in
`sigkit.rsapss` directly for PSS.

## Container image signatures

```python
from sigkit.payload import Digest
from sigkit.util import sign_image, verify_image_signature

image = Digest.parse("example.com/app@sha256:" + "ab" * 32)
payload, signature = sign_image(sv, image, {"creator": "ci"})
image_back, annotations = verify_image_signature(sv, payload, signature)
```

The payload uses the simple container image signature JSON layout
(`critical` / `optional`) with type `cosign container image signature`;
`Cosign.to_json` and `Cosign.from_json` convert it to and from bytes.

## SSH signatures

`sigkit.ssh` produces and checks PEM armoured `SSH SIGNATURE` blocks in the
`file` namespace, over a SHA-512 digest of the message:

```python
from sigkit import ssh

armored = ssh.sign(pem_text, b"data")
ssh.verify(b"data", armored, public)
```

`ssh.sign` takes the text of an OpenSSH or PEM private key (RSA, ECDSA or
Ed25519, unencrypted); `ssh.decode` parses an armoured block into an
`SSHSignature`. `ssh.Signer` wraps a private key object with `sign_message`,
`verify_signature` and `public_key`.

## What it does not do

- `load_signer`, `load_verifier` and `load_signer_verifier` accept RSA keys
  only; any other key type raises `ValueError("unsupported public key type")`.
  ECDSA and Ed25519 keys are handled only by `sigkit.ssh`.
- There is no loading of keys from PEM files and no password handling; pass
  key objects from the `cryptography` library.
- There are no remote or key-management-service signers and no command-line
  tool.

## Tests

```
pip install -e .[test]
pytest
```