"""
distfetch Manifest 层

包含 DIST 记录模型与 Manifest 加载、查询。
"""

from distfetch.manifest.models import (
    DIST_TAG,
    ChecksumStatus,
    ManifestRecord,
    VerificationOutcome,
)
from distfetch.manifest.store import ManifestStore

__all__ = [
    "DIST_TAG",
    "ChecksumStatus",
    "ManifestRecord",
    "VerificationOutcome",
    "ManifestStore",
]
