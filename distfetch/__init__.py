"""
distfetch - 按 Manifest 下载并校验分发文件
"""

__version__ = "0.1.0"

from distfetch.exceptions import DistFetchError
from distfetch.manifest import ManifestRecord, ManifestStore, VerificationOutcome
from distfetch.verify import ChecksumDispatcher, FileVerifier
from distfetch.download import DownloadOrchestrator
from distfetch.workflow import GetWorkflow, VerifyWorkflow

__all__ = [
    "__version__",
    "DistFetchError",
    "ManifestRecord",
    "ManifestStore",
    "VerificationOutcome",
    "ChecksumDispatcher",
    "FileVerifier",
    "DownloadOrchestrator",
    "GetWorkflow",
    "VerifyWorkflow",
]
