"""
Shared fixtures for distfetch tests.
"""

import hashlib

import pytest
from loguru import logger

PAYLOAD = b"distfetch test payload\n" * 40


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


@pytest.fixture(autouse=True)
def silence_logger():
    """Keep loguru output out of the captured report lines."""
    logger.remove()
    yield
    logger.remove()


@pytest.fixture
def payload():
    return PAYLOAD


@pytest.fixture
def write_manifest(tmp_path):
    """Write a Manifest file from a list of lines and return its path."""

    def _write(*lines, name="Manifest"):
        path = tmp_path / name
        path.write_text("".join(f"{line}\n" for line in lines))
        return path

    return _write
