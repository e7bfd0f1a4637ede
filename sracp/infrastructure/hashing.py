"""
Infrastructure adapter checking downloaded files against their manifest md5.
"""

import asyncio
import hashlib
import logging
from pathlib import Path

from ..application.domain import DownloadedFile, Hasher
from ..application.exceptions import VerificationError


class Md5Hasher(Hasher):
    """An adapter that implements the Hasher port using MD5."""

    def __init__(self, force_check: bool = False, chunk_size: int = 65536):
        """Initializes the hasher."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.force_check = force_check
        self.chunk_size = chunk_size

    async def _calculate_md5(self, file_path: Path) -> str:
        """Perform the blocking I/O work of hashing a file."""

        self.logger.info(f"Computing checksum for {file_path.name}...")

        hasher = hashlib.md5()

        def _read_and_hash():
            try:
                with open(file_path, "rb") as f:
                    while chunk := f.read(self.chunk_size):
                        hasher.update(chunk)
            except OSError as e:
                raise VerificationError(
                    f"could not read {file_path} to check it: {e}"
                ) from e
            return hasher.hexdigest()

        return await asyncio.to_thread(_read_and_hash)

    async def verify(self, downloaded: DownloadedFile):
        """
        Guarantee the file matches its md5, hashing only if necessary.

        This public method fulfills the Hasher port contract. Files listed
        without an md5 cannot be checked and are accepted as they are. A
        '.verified' marker file next to the download records a past
        success; 'force_check' ignores it.

        Args:
            downloaded: The file on disk and the checksum it should match.

        Raises:
            VerificationError: If the checksums differ or the file cannot
                be read.
        """

        if not downloaded.md5:
            self.logger.info(
                f"No md5 listed for {downloaded.path.name}. Skipping check."
            )
            return

        marker_path = downloaded.path.with_suffix(
            downloaded.path.suffix + ".verified"
        )

        if not self.force_check and marker_path.exists():
            self.logger.info(
                f"Checksum for {downloaded.path.name} already verified. Skipping."
            )
            return

        calculated_hash = await self._calculate_md5(downloaded.path)

        if calculated_hash != downloaded.md5.lower():
            raise VerificationError(
                f"Checksum mismatch for {downloaded.path.name}. "
                f"Expected {downloaded.md5}, got {calculated_hash}"
            )

        try:
            marker_path.touch()
        except OSError as e:
            self.logger.warning(
                f"Could not record check of {downloaded.path.name}: {e}"
            )
        self.logger.info(
            f"Checksum for {downloaded.path.name} verified successfully."
        )
