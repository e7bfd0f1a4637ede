"""Tests for the fetch service orchestration."""

from __future__ import annotations

import asyncio
import hashlib
import logging

import pytest

from sracp.application.domain import (
    CredentialSource,
    DownloadedFile,
    Downloader,
    File,
    Hasher,
    Manifest,
    NameResolver,
    Resolution,
)
from sracp.application.exceptions import (
    DownloadError,
    ResolutionError,
    VerificationError,
)
from sracp.application.service import FetchService, is_plain_file_name, wanted_by_type
from sracp.infrastructure.hashing import Md5Hasher


class FakeResolver(NameResolver):
    def __init__(self, resolution=None, error=None):
        self.resolution = resolution
        self.error = error
        self.requests = []

    async def resolve(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.resolution


class FakeCredentials(CredentialSource):
    def __init__(self):
        self.locations = []

    async def read(self, location):
        self.locations.append(location)
        return b"ngc-bytes"


class FakeDownloader(Downloader):
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.destinations = []

    async def download(self, file, destination):
        self.destinations.append(destination)
        if file.name in self.failing:
            raise DownloadError(f"Issue copying {file.link}")
        destination.write_bytes(file.name.encode())
        return DownloadedFile(path=destination, md5=file.md5)


class FakeHasher(Hasher):
    def __init__(self, bad_md5=()):
        self.bad_md5 = set(bad_md5)
        self.verified = []

    async def verify(self, downloaded):
        if downloaded.md5 in self.bad_md5:
            raise VerificationError("Checksum mismatch")
        self.verified.append(downloaded.path)


def _manifest(accession, *names, md5=""):
    return Manifest(
        accession=accession,
        files={
            name: File(name=name, link=f"http://x/{accession}/{name}", md5=md5)
            for name in names
        },
    )


def _service(resolver, downloader=None, hasher=None, credentials=None):
    return FetchService(
        resolver=resolver,
        credentials=credentials or FakeCredentials(),
        downloader=downloader or FakeDownloader(),
        hasher=hasher or FakeHasher(),
        concurrent_downloads=2,
    )


def test_downloads_every_file_into_accession_directories(tmp_path) -> None:
    resolution = Resolution(
        manifests={
            "SRR1": _manifest("SRR1", "a.bam", "a.bam.bai"),
            "SRR2": _manifest("SRR2", "b.cram"),
        }
    )
    downloader = FakeDownloader()
    hasher = FakeHasher()

    summary = asyncio.run(
        _service(FakeResolver(resolution), downloader, hasher).run(
            ["SRR1", "SRR2"], tmp_path
        )
    )

    expected = {
        tmp_path / "SRR1" / "a.bam",
        tmp_path / "SRR1" / "a.bam.bai",
        tmp_path / "SRR2" / "b.cram",
    }
    assert set(summary.fetched) == expected
    assert summary.failed == []
    assert set(hasher.verified) == expected


def test_builds_request_and_reads_credential(tmp_path) -> None:
    resolver = FakeResolver(Resolution(manifests={"SRR1": _manifest("SRR1", "a.bam")}))
    credentials = FakeCredentials()

    asyncio.run(
        _service(resolver, credentials=credentials).run(
            ["SRR1", "SRR1"],
            tmp_path,
            endpoint="https://mirror.test",
            location="gs.us",
            ngc="prj.ngc",
        )
    )

    request = resolver.requests[0]
    assert request.accessions == frozenset({"SRR1"})
    assert request.endpoint == "https://mirror.test"
    assert request.location == "gs.us"
    assert request.credential == b"ngc-bytes"
    assert credentials.locations == ["prj.ngc"]


def test_no_ngc_sends_no_credential(tmp_path) -> None:
    resolver = FakeResolver(Resolution(manifests={"SRR1": _manifest("SRR1", "a.bam")}))
    credentials = FakeCredentials()

    asyncio.run(_service(resolver, credentials=credentials).run(["SRR1"], tmp_path))

    assert resolver.requests[0].credential is None
    assert credentials.locations == []


def test_type_filter(tmp_path) -> None:
    resolver = FakeResolver(
        Resolution(manifests={"SRR1": _manifest("SRR1", "a.bam", "a.bam.bai", "a.vcf")})
    )

    summary = asyncio.run(
        _service(resolver).run(["SRR1"], tmp_path, types=frozenset({"bam", "vcf"}))
    )

    assert sorted(path.name for path in summary.fetched) == ["a.bam", "a.vcf"]


@pytest.mark.parametrize(
    "name, types, wanted",
    [
        ("a.bam", None, True),
        ("a.bam", frozenset(), True),
        ("a.bam", frozenset({"bam"}), True),
        ("a.bam.bai", frozenset({"bam"}), False),
        ("README", frozenset({"bam"}), False),
    ],
)
def test_wanted_by_type(name, types, wanted) -> None:
    assert wanted_by_type(File(name=name, link="http://x"), types) is wanted


def test_one_failed_file_does_not_stop_the_others(tmp_path) -> None:
    resolution = Resolution(
        manifests={
            "SRR1": _manifest("SRR1", "a.bam", "b.bam"),
            "SRR2": _manifest("SRR2", "c.bam", md5="bad"),
        }
    )
    downloader = FakeDownloader(failing={"a.bam"})
    hasher = FakeHasher(bad_md5={"bad"})

    summary = asyncio.run(
        _service(FakeResolver(resolution), downloader, hasher).run(
            ["SRR1", "SRR2"], tmp_path
        )
    )

    assert summary.fetched == [tmp_path / "SRR1" / "b.bam"]
    assert sorted(summary.failed) == [
        tmp_path / "SRR1" / "a.bam",
        tmp_path / "SRR2" / "c.bam",
    ]


class VanishingDownloader(FakeDownloader):
    """Reports a download for `vanishing` names without leaving a file."""

    def __init__(self, vanishing=()):
        super().__init__()
        self.vanishing = set(vanishing)

    async def download(self, file, destination):
        downloaded = await super().download(file, destination)
        if file.name in self.vanishing:
            destination.unlink()
        return downloaded


def test_file_gone_before_check_does_not_stop_the_others(tmp_path) -> None:
    files = {
        name: File(
            name=name,
            link=f"http://x/SRR1/{name}",
            md5=hashlib.md5(name.encode()).hexdigest(),
        )
        for name in ("a.bam", "b.bam")
    }
    resolution = Resolution(manifests={"SRR1": Manifest("SRR1", files)})
    downloader = VanishingDownloader(vanishing={"a.bam"})

    summary = asyncio.run(
        _service(FakeResolver(resolution), downloader, Md5Hasher()).run(
            ["SRR1"], tmp_path
        )
    )

    assert summary.fetched == [tmp_path / "SRR1" / "b.bam"]
    assert summary.failed == [tmp_path / "SRR1" / "a.bam"]
    assert (tmp_path / "SRR1" / "b.bam.verified").exists()


@pytest.mark.parametrize(
    "name, plain",
    [
        ("a.bam", True),
        ("..a.bam", True),
        ("", False),
        (".", False),
        ("..", False),
        ("../a.bam", False),
        ("dir/a.bam", False),
        ("/a.bam", False),
    ],
)
def test_is_plain_file_name(name, plain) -> None:
    assert is_plain_file_name(name) is plain


def test_unsafe_file_names_are_skipped(tmp_path) -> None:
    resolution = Resolution(
        manifests={"SRR1": _manifest("SRR1", "../escape.bam", "..", ".", "", "a.bam")}
    )
    downloader = FakeDownloader()

    asyncio.run(_service(FakeResolver(resolution), downloader).run(["SRR1"], tmp_path))

    assert downloader.destinations == [tmp_path / "SRR1" / "a.bam"]


def test_diagnostics_are_reported(tmp_path, caplog) -> None:
    resolution = Resolution(
        manifests={"SRR1": _manifest("SRR1", "a.bam")},
        diagnostics=["issue with accession SRR2: no data"],
    )

    with caplog.at_level(logging.WARNING):
        asyncio.run(_service(FakeResolver(resolution)).run(["SRR1", "SRR2"], tmp_path))

    assert "issue with accession SRR2: no data" in caplog.text


def test_resolution_failure_propagates(tmp_path) -> None:
    downloader = FakeDownloader()
    resolver = FakeResolver(error=ResolutionError(["SRR1: 404\tgone"], []))

    with pytest.raises(ResolutionError):
        asyncio.run(_service(resolver, downloader).run(["SRR1"], tmp_path))

    assert downloader.destinations == []


def test_empty_manifest_downloads_nothing(tmp_path) -> None:
    resolution = Resolution(manifests={"SRR1": Manifest(accession="SRR1")})

    summary = asyncio.run(_service(FakeResolver(resolution)).run(["SRR1"], tmp_path))

    assert summary.fetched == []
    assert summary.failed == []
    assert (tmp_path / "SRR1").is_dir()
