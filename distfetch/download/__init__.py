"""
distfetch 下载层

包含下载源解析、续传下载器与下载编排。
"""

from distfetch.download.fetcher import CommandFetcher, Fetcher, HttpFetcher
from distfetch.download.manager import DownloadOrchestrator, DownloadStats
from distfetch.download.source import SourceDescriptor

__all__ = [
    "Fetcher",
    "HttpFetcher",
    "CommandFetcher",
    "DownloadOrchestrator",
    "DownloadStats",
    "SourceDescriptor",
]
