"""
The core application service and pipeline, containing pure business logic.

This module defines the main orchestrator (FetchService) that resolves
accessions and downloads their files, and the pipeline (FilePipeline) that
handles the download and verification of a single file.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional

from tqdm.contrib.logging import logging_redirect_tqdm
from tqdm.asyncio import tqdm_asyncio

from .domain import *
from .exceptions import SracpError

logger = logging.getLogger(__name__)


def wanted_by_type(file: File, types: Optional[FrozenSet[str]]) -> bool:
    """Whether a file's extension is among `types`; everything when unset."""
    if not types:
        return True
    return Path(file.name).suffix.lstrip(".") in types


def is_plain_file_name(name: str) -> bool:
    """Whether `name` can be joined to a directory without leaving it."""
    if name in ("", ".", ".."):
        return False
    separators = [sep for sep in (os.sep, os.altsep) if sep]
    if any(sep in name for sep in separators):
        return False
    return Path(name).name == name


class FilePipeline:
    """Encapsulates the download and verification of a single file."""

    def __init__(self, downloader: Downloader, hasher: Hasher):
        """Initializes the pipeline with necessary dependencies (ports)."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.downloader = downloader
        self.hasher = hasher

    async def run(self, file: File, destination: Path) -> bool:
        """Executes the sequential steps for one file.

        Failures are logged rather than raised so that one bad file does not
        cancel its siblings.

        Args:
            file: The manifest entry to fetch.
            destination: Where the file should end up.

        Returns:
            True if the file is on disk and verified.
        """

        try:
            # Step 1: Download (File -> DownloadedFile)
            downloaded = await self.downloader.download(file, destination)

            # Step 2: Verify (DownloadedFile -> void)
            await self.hasher.verify(downloaded)
        except SracpError as e:
            self.logger.error(f"Issue fetching {destination}: {e}")
            return False

        return True


class FetchService:
    """Resolves accessions and downloads every file of their manifests."""

    def __init__(
        self,
        resolver: NameResolver,
        credentials: CredentialSource,
        downloader: Downloader,
        hasher: Hasher,
        concurrent_downloads: int,
    ):
        """Initializes the service and the reusable file pipeline."""
        self.resolver = resolver
        self.credentials = credentials
        self.concurrent_downloads = concurrent_downloads
        self.pipeline = FilePipeline(downloader, hasher)

    async def _run_pipeline_with_semaphore(
        self, file: File, destination: Path, semaphore: asyncio.Semaphore
    ) -> bool:
        """Wrapper to acquire a semaphore before running a pipeline."""
        async with semaphore:
            return await self.pipeline.run(file, destination)

    def _plan_downloads(
        self,
        resolution: Resolution,
        destination: Path,
        types: Optional[FrozenSet[str]],
    ) -> List[tuple]:
        """Creates one directory per accession and lists the files to fetch."""

        planned = []
        for accession, manifest in sorted(resolution.manifests.items()):
            accession_dir = destination / accession
            try:
                accession_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"Issue creating directory for {accession}: {e}")
                continue

            for name, file in sorted(manifest.files.items()):
                if not wanted_by_type(file, types):
                    continue
                if not is_plain_file_name(name):
                    logger.warning(
                        f"Skipping {name!r} of {accession}: not a plain file name"
                    )
                    continue
                planned.append((file, accession_dir / name))

        return planned

    async def resolve(
        self,
        accessions: Iterable[str],
        endpoint: str = "",
        location: str = "",
        ngc: str = "",
    ) -> Resolution:
        """Resolves accessions, reporting the partial failures to the user."""

        credential = await self.credentials.read(ngc) if ngc else None
        request = ResolveRequest(
            accessions=frozenset(accessions),
            endpoint=endpoint,
            location=location,
            credential=credential,
        )

        resolution = await self.resolver.resolve(request)
        for line in resolution.diagnostics:
            logger.warning(line)

        return resolution

    async def run(
        self,
        accessions: Iterable[str],
        destination: Path,
        endpoint: str = "",
        location: str = "",
        ngc: str = "",
        types: Optional[FrozenSet[str]] = None,
    ) -> FetchSummary:
        """Resolves the accessions and downloads their files."""

        logger.info(f"Starting fetch into {destination}")

        resolution = await self.resolve(accessions, endpoint, location, ngc)
        planned = self._plan_downloads(resolution, Path(destination), types)
        if not planned:
            logger.info("No files found to download.")
            return FetchSummary(fetched=[], failed=[])

        semaphore = asyncio.Semaphore(self.concurrent_downloads)
        tasks = [
            asyncio.create_task(
                self._run_pipeline_with_semaphore(file, path, semaphore)
            )
            for file, path in planned
        ]

        logger.info(
            f"Starting {len(tasks)} downloads with a concurrency "
            f"limit of {self.concurrent_downloads}..."
        )

        with logging_redirect_tqdm():
            outcomes = await tqdm_asyncio.gather(
                *tasks, desc="Overall Progress", unit="file"
            )

        summary = FetchSummary(
            fetched=[path for (_, path), ok in zip(planned, outcomes) if ok],
            failed=[path for (_, path), ok in zip(planned, outcomes) if not ok],
        )
        logger.info(
            f"All downloads completed: {len(summary.fetched)} fetched, "
            f"{len(summary.failed)} failed."
        )
        return summary
