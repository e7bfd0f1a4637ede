"""HTTP implementation of the Downloader port."""

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import Iterator

import httpx
from tqdm import tqdm

from ..application.domain import DownloadedFile, File, Downloader, ObjectReader
from ..application.exceptions import DownloadError, StorageError

from .decorators import retry_on_transient_error


def expected_size(file: File) -> int:
    """The size announced by the API, or 0 when it is not a plain integer."""
    size = file.size.strip()
    return int(size) if size.isdigit() else 0


@contextlib.contextmanager
def partial_file(destination: Path) -> Iterator[Path]:
    """
    Yields the '<name>.part' sibling of `destination` to write into.

    Whatever is left at that path when the block exits is removed, so only
    a complete file ever appears under the final name.
    """

    destination.parent.mkdir(parents=True, exist_ok=True)
    part_path = destination.parent / f"{destination.name}.part"
    try:
        yield part_path
    finally:
        part_path.unlink(missing_ok=True)


class HttpDownloader(Downloader):
    """Copies manifest files from their links to local paths."""

    def __init__(self, reader: ObjectReader, chunk_size: int):
        """Initializes the downloader adapter."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.reader = reader
        self.chunk_size = chunk_size

    async def _write_body(
        self, response: httpx.Response, target: Path, progress: tqdm
    ) -> int:
        """Streams the response body into `target`; returns the bytes written."""
        written = 0
        with open(target, "wb") as out_fh:
            async for chunk in response.aiter_bytes(self.chunk_size):
                await asyncio.to_thread(out_fh.write, chunk)
                written += len(chunk)
                progress.update(len(chunk))
        return written

    @retry_on_transient_error
    async def _fetch(self, file: File, destination: Path):
        """One attempt at copying `file` to `destination`."""

        size = expected_size(file)
        with partial_file(destination) as part_path:
            async with self.reader.open_range(file.link) as response:
                with tqdm(
                    total=size or None,
                    unit="B",
                    unit_scale=True,
                    desc=destination.name,
                ) as progress:
                    written = await self._write_body(response, part_path, progress)

            if size and written != size:
                raise DownloadError(
                    f"Size mismatch for {destination.name}: "
                    f"got {written} bytes, API listed {size}"
                )
            part_path.rename(destination)

    async def download(self, file: File, destination: Path) -> DownloadedFile:
        """
        Guarantee that the file exists, downloading only if necessary.

        An existing file at `destination` is trusted as-is; checking it is
        left to the Hasher.

        Args:
            file: The manifest entry to download.
            destination: The final desired path for the file.

        Returns:
            A DownloadedFile representing the file on disk.

        Raises:
            DownloadError: If the file cannot be fetched or written.
        """

        if destination.exists():
            self.logger.info(
                f"File {destination.name} already exists. Skipping download."
            )
            return DownloadedFile(path=destination, md5=file.md5)

        self.logger.info(f"Downloading {file.link} to {destination}...")
        try:
            await self._fetch(file, destination)
        except (StorageError, httpx.HTTPError, OSError) as e:
            raise DownloadError(
                f"Issue copying {file.link} to {destination}: {e}"
            ) from e
        self.logger.info(f"Finished downloading {destination.name}")

        return DownloadedFile(path=destination, md5=file.md5)
