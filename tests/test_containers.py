"""Tests for settings loading and dependency wiring."""

from __future__ import annotations

from sracp.application.service import FetchService
from sracp.infrastructure.api_client import HttpNameResolver
from sracp.infrastructure.containers import Container
from sracp.infrastructure.downloader import HttpDownloader
from sracp.infrastructure.hashing import Md5Hasher
from sracp.infrastructure.storage import HttpObjectReader
from sracp.settings import load_settings


def test_default_settings() -> None:
    settings = load_settings()

    assert settings.resolver.default_endpoint == (
        "https://www.ncbi.nlm.nih.gov/Traces/names/names.fcgi"
    )
    assert settings.resolver.protocol_version == "xc-1.0"
    assert settings.downloader.concurrent_downloads > 0


def test_environment_overrides_settings(monkeypatch) -> None:
    monkeypatch.setenv("SRACP_RESOLVER__default_endpoint", "https://mirror.test/names")
    monkeypatch.setenv("SRACP_DOWNLOADER__concurrent_downloads", "9")

    settings = load_settings()

    assert settings.resolver.default_endpoint == "https://mirror.test/names"
    assert settings.downloader.concurrent_downloads == 9


def test_container_wires_the_service() -> None:
    container = Container()
    container.cli_args.from_dict({"force_check": True})

    resolver = container.resolver()
    hasher = container.hasher()
    service = container.fetch_service()

    assert isinstance(resolver, HttpNameResolver)
    assert resolver.protocol_version == "xc-1.0"
    assert resolver.client is container.http_client()
    assert hasher.force_check is True
    assert isinstance(hasher, Md5Hasher)
    assert isinstance(service, FetchService)
    assert isinstance(service.pipeline.downloader, HttpDownloader)
    assert isinstance(service.pipeline.downloader.reader, HttpObjectReader)


def test_environment_override_keeps_sibling_settings(monkeypatch) -> None:
    monkeypatch.setenv("SRACP_RESOLVER__timeout", "5")

    settings = load_settings()

    assert settings.resolver.timeout == 5
    assert settings.resolver.protocol_version == "xc-1.0"
