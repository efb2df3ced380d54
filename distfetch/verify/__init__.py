"""
distfetch 校验层

包含校验和分派与文件校验。
"""

from distfetch.verify.checksums import (
    ChecksumAlgorithm,
    ChecksumDispatcher,
    HashlibChecksum,
)
from distfetch.verify.verifier import FileVerifier

__all__ = [
    "ChecksumAlgorithm",
    "ChecksumDispatcher",
    "HashlibChecksum",
    "FileVerifier",
]
