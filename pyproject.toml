[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sigkit"
version = "0.1.0"
description = "Digital signatures over messages and container image payloads with RSA and SSH keys"
requires-python = ">=3.10"
dependencies = [
    "cryptography",
]
keywords = ["signature", "rsa", "pss", "pkcs1v15", "ssh", "sshsig", "container", "signing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["sigkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
