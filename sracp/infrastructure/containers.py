"""
Dependency Injection container for sracp.

This container uses the `dependency-injector` library to wire together all
the components of the application, such as services and infrastructure adapters,
based on the application's configuration.
"""

from dependency_injector import containers, providers
import httpx

from ..application.domain import *
from ..application.service import FetchService
from ..settings import settings

from .api_client import HttpNameResolver
from .credentials import CredentialLoader
from .downloader import HttpDownloader
from .hashing import Md5Hasher
from .storage import HttpObjectReader


class Container(containers.DeclarativeContainer):
    """DI container for wiring the application components."""

    cli_args = providers.Configuration()

    config = providers.Object(settings)

    # The resolver relies on this client-wide timeout; downloads set their own.
    http_client = providers.Singleton(
        httpx.AsyncClient,
        timeout=config().resolver.timeout,
        follow_redirects=True,
    )

    resolver: providers.Factory[NameResolver] = providers.Factory(
        HttpNameResolver,
        client=http_client,
        default_endpoint=config().resolver.default_endpoint,
        protocol_version=config().resolver.protocol_version,
    )

    credentials: providers.Factory[CredentialSource] = providers.Factory(
        CredentialLoader,
        connect_timeout=config().credentials.s3_connect_timeout,
    )

    object_reader: providers.Factory[ObjectReader] = providers.Factory(
        HttpObjectReader,
        client=http_client,
        timeout=config().downloader.timeout,
    )

    downloader: providers.Factory[Downloader] = providers.Factory(
        HttpDownloader,
        reader=object_reader,
        chunk_size=config().downloader.chunk_size,
    )

    hasher: providers.Factory[Hasher] = providers.Factory(
        Md5Hasher,
        force_check=cli_args.force_check,
        chunk_size=config().hasher.chunk_size,
    )

    fetch_service = providers.Factory(
        FetchService,
        resolver=resolver,
        credentials=credentials,
        downloader=downloader,
        hasher=hasher,
        concurrent_downloads=config().downloader.concurrent_downloads,
    )
