"""
Tests for the download orchestrator and the get/verify workflows.
"""

import pytest
from loguru import logger

from distfetch.config import DistFetchConfig
from distfetch.download import DownloadOrchestrator, Fetcher
from distfetch.exceptions import DownloadError, SourceError
from distfetch.manifest import ManifestStore
from distfetch.workflow import GetWorkflow, VerifyWorkflow
from tests.conftest import PAYLOAD, sha256_hex


class FakeFetcher(Fetcher):
    """Appends the remainder of a per-URL body to the target, like a resume."""

    def __init__(self, bodies=None, codes=None):
        self.bodies = bodies or {}
        self.codes = codes or {}
        self.calls = []
        self.closed = False

    async def fetch(self, url, target):
        self.calls.append((url, target))
        code = self.codes.get(url, 0)
        if code:
            return code
        body = self.bodies.get(url, PAYLOAD)
        with open(target, "ab") as f:
            f.seek(0, 2)
            offset = f.tell()
            f.write(body[offset:])
        return 0

    async def close(self):
        self.closed = True


def add_source(directory, name, *lines):
    (directory / f"{name}.src-uri").write_text("".join(f"{line}\n" for line in lines))
    return directory / name


@pytest.fixture
def config():
    return DistFetchConfig(quiet=True)


@pytest.fixture
def manifest(write_manifest):
    path = write_manifest(
        f"DIST good.tar.gz {len(PAYLOAD)} SHA256 {sha256_hex(PAYLOAD)}",
        f"DIST bad.tar.gz {len(PAYLOAD)} SHA256 {'0' * 64}",
        "DIST short.tar.gz 10",
    )
    return ManifestStore.load(str(path))


class TestDownloadOrchestrator:
    @pytest.mark.asyncio
    async def test_promotes_download_to_destination(self, tmp_path, config):
        dest = add_source(tmp_path, "good.tar.gz", "https://example.org/good.tar.gz")
        fetcher = FakeFetcher()

        await DownloadOrchestrator(config, fetcher).fetch(str(dest))

        assert dest.read_bytes() == PAYLOAD
        assert not (tmp_path / "good.tar.gz.download").exists()
        assert fetcher.calls == [
            ("https://example.org/good.tar.gz", f"{dest}.download")
        ]

    @pytest.mark.asyncio
    async def test_stats_count_downloaded_bytes(self, tmp_path, config):
        dest = add_source(tmp_path, "good.tar.gz", "https://example.org/good.tar.gz")
        orchestrator = DownloadOrchestrator(config, FakeFetcher())

        await orchestrator.fetch(str(dest))

        assert orchestrator.stats.total == 1
        assert orchestrator.stats.completed == 1
        assert orchestrator.stats.bytes_downloaded == len(PAYLOAD)

    @pytest.mark.asyncio
    async def test_only_last_uri_is_fetched(self, tmp_path, config):
        dest = add_source(
            tmp_path,
            "bar.tar.gz",
            "# primary mirror",
            "https://one.example/bar.tar.gz",
            "https://two.example/bar.tar.gz",
        )
        fetcher = FakeFetcher()

        await DownloadOrchestrator(config, fetcher).fetch(str(dest))

        assert [url for url, _ in fetcher.calls] == ["https://two.example/bar.tar.gz"]

    @pytest.mark.asyncio
    async def test_failure_leaves_touched_destination(self, tmp_path, config):
        url = "https://example.org/good.tar.gz"
        dest = add_source(tmp_path, "good.tar.gz", url)
        orchestrator = DownloadOrchestrator(config, FakeFetcher(codes={url: 4}))

        with pytest.raises(DownloadError) as excinfo:
            await orchestrator.fetch(str(dest))

        assert excinfo.value.exit_code == 4
        assert dest.exists() and dest.read_bytes() == b""
        assert orchestrator.stats.failed == 1

    @pytest.mark.asyncio
    async def test_existing_destination_seeds_resume(self, tmp_path, config):
        dest = add_source(tmp_path, "good.tar.gz", "https://example.org/good.tar.gz")
        dest.write_bytes(PAYLOAD[:50])

        orchestrator = DownloadOrchestrator(config, FakeFetcher())
        await orchestrator.fetch(str(dest))

        assert dest.read_bytes() == PAYLOAD
        assert orchestrator.stats.bytes_downloaded == len(PAYLOAD) - 50

    @pytest.mark.asyncio
    async def test_missing_sidecar_is_fatal(self, tmp_path, config):
        with pytest.raises(SourceError):
            await DownloadOrchestrator(config, FakeFetcher()).fetch(
                str(tmp_path / "good.tar.gz")
            )
        assert not (tmp_path / "good.tar.gz").exists()


class TestGetWorkflow:
    @pytest.mark.asyncio
    async def test_good_file_is_kept(self, tmp_path, config, manifest):
        dest = add_source(tmp_path, "good.tar.gz", "https://example.org/good.tar.gz")
        fetcher = FakeFetcher()

        code = await GetWorkflow(config, manifest, fetcher=fetcher).run([str(dest)])

        assert code == 0
        assert dest.read_bytes() == PAYLOAD
        assert fetcher.closed

    @pytest.mark.asyncio
    async def test_summary_reports_download_totals(self, tmp_path, config, manifest):
        messages = []
        logger.add(messages.append, format="{message}", level="INFO")
        dest = add_source(tmp_path, "good.tar.gz", "https://example.org/good.tar.gz")

        await GetWorkflow(config, manifest, fetcher=FakeFetcher()).run([str(dest)])

        summary = [m for m in messages if m.startswith("[统计]")]
        assert len(summary) == 1
        assert "下载 1 个: 1 成功, 0 失败" in summary[0]
        assert f"{len(PAYLOAD) / (1024 * 1024):.2f} MB" in summary[0]

    @pytest.mark.asyncio
    async def test_failed_verification_is_quarantined(self, tmp_path, config, manifest):
        dest = add_source(tmp_path, "bad.tar.gz", "https://example.org/bad.tar.gz")

        code = await GetWorkflow(config, manifest, fetcher=FakeFetcher()).run(
            [str(dest)]
        )

        assert code == 1
        assert not dest.exists()
        assert (tmp_path / "bad.tar.gz.verify-failed").read_bytes() == PAYLOAD

    @pytest.mark.asyncio
    async def test_download_error_skips_verification(self, tmp_path, config, manifest):
        url = "https://example.org/good.tar.gz"
        dest = add_source(tmp_path, "good.tar.gz", url)
        workflow = GetWorkflow(config, manifest, fetcher=FakeFetcher(codes={url: 8}))

        code = await workflow.run([str(dest)])

        assert code == 8
        assert dest.exists()
        assert not (tmp_path / "good.tar.gz.verify-failed").exists()
        assert workflow.stats.checked == 0

    @pytest.mark.asyncio
    async def test_last_nonzero_code_wins(self, tmp_path, config, manifest):
        short = add_source(tmp_path, "short.tar.gz", "https://example.org/short")
        bad = add_source(tmp_path, "bad.tar.gz", "https://example.org/bad")
        good = add_source(tmp_path, "good.tar.gz", "https://example.org/good")
        workflow = GetWorkflow(config, manifest, fetcher=FakeFetcher())

        code = await workflow.run([str(short), str(bad), str(good)])

        assert code == 1
        assert workflow.stats.quarantined == 2
        assert good.read_bytes() == PAYLOAD
        assert (tmp_path / "short.tar.gz.verify-failed").exists()

    @pytest.mark.asyncio
    async def test_rerun_on_complete_file_is_idempotent(self, tmp_path, config, manifest):
        dest = add_source(tmp_path, "good.tar.gz", "https://example.org/good.tar.gz")

        for _ in range(2):
            workflow = GetWorkflow(config, manifest, fetcher=FakeFetcher())
            assert await workflow.run([str(dest)]) == 0
        assert dest.read_bytes() == PAYLOAD


class TestVerifyWorkflow:
    @pytest.mark.asyncio
    async def test_verify_does_not_quarantine(self, tmp_path, config, manifest):
        bad = tmp_path / "bad.tar.gz"
        bad.write_bytes(PAYLOAD)
        missing = tmp_path / "other.tar.gz"
        missing.write_bytes(PAYLOAD)

        code = await VerifyWorkflow(config, manifest).run([str(missing), str(bad)])

        assert code == 1
        assert bad.exists()

    @pytest.mark.asyncio
    async def test_all_ok_returns_zero(self, tmp_path, config, manifest):
        good = tmp_path / "good.tar.gz"
        good.write_bytes(PAYLOAD)
        workflow = VerifyWorkflow(config, manifest)

        assert await workflow.run([str(good)]) == 0
        assert workflow.stats.passed == 1
