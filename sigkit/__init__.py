"""Digital signatures with RSA (PKCS#1 v1.5, PSS) and SSH keys, and container image payloads."""

__version__ = "0.1.0"