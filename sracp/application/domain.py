"""
This module defines the core domain models for the application.

These classes represent the pure, technology-agnostic entities and data
structures that the application's business logic operates on.
"""

import dataclasses
from datetime import datetime
from pathlib import Path

from abc import ABC, abstractmethod
from typing import AsyncContextManager, Dict, FrozenSet, List, Optional


# --- Domain Models ---

@dataclasses.dataclass(frozen=True)
class ResolveRequest:
    """A transient request to resolve a batch of accessions."""

    accessions: FrozenSet[str]
    endpoint: str = ""
    location: str = ""
    credential: Optional[bytes] = None


@dataclasses.dataclass(frozen=True)
class File:
    """A downloadable file listed for an accession."""

    name: str
    link: str
    size: str = ""
    modification_date: Optional[datetime] = None
    md5: str = ""
    expiration_date: Optional[datetime] = None
    service: str = ""


@dataclasses.dataclass(frozen=True)
class Manifest:
    """The reconciled file listing of one accession, keyed by file name."""

    accession: str
    files: Dict[str, File] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class Resolution:
    """
    The outcome of a successful name resolution.

    `diagnostics` lists the partial failures met along the way: accessions
    the API refused and files it listed without a name or link. They do not
    make the resolution fail but should be shown to the user.
    """

    manifests: Dict[str, Manifest]
    diagnostics: List[str] = dataclasses.field(default_factory=list)

    @property
    def message(self) -> str:
        return "".join(f"{line}\n" for line in self.diagnostics)


@dataclasses.dataclass(frozen=True)
class DownloadedFile:
    """A file on disk, together with the checksum it should match."""

    path: Path
    md5: str


@dataclasses.dataclass(frozen=True)
class FetchSummary:
    """The destinations of a fetch run, split by outcome."""

    fetched: List[Path]
    failed: List[Path]


# --- Ports (Interfaces) ---

class NameResolver(ABC):
    """A port for any service turning accessions into file manifests."""

    @abstractmethod
    async def resolve(self, request: ResolveRequest) -> Resolution:
        """Resolves accessions into manifests of downloadable files."""
        pass


class ObjectReader(ABC):
    """A port for reading objects behind plain or signed URLs."""

    @abstractmethod
    def open_range(self, url: str, byte_range: str = "") -> AsyncContextManager:
        """Opens a streamed GET, restricted to `byte_range` when given."""
        pass

    @abstractmethod
    async def read_range(self, url: str, byte_range: str = "") -> bytes:
        """Reads an object, or the `byte_range` part of it, into memory."""
        pass

    @abstractmethod
    async def head(self, url: str):
        """Fetches the headers of an object."""
        pass


class CredentialSource(ABC):
    """A port for loading the raw bytes of a credential file."""

    @abstractmethod
    async def read(self, location: str) -> bytes:
        """Reads the whole credential file found at `location`."""
        pass


class Downloader(ABC):
    """A port for any file downloader."""

    @abstractmethod
    async def download(self, file: File, destination: Path) -> DownloadedFile:
        """Downloads a single file to a destination path."""
        pass


class Hasher(ABC):
    """A port for hashing file contents."""

    @abstractmethod
    async def verify(self, downloaded: DownloadedFile):
        """
        Verifies the integrity of a downloaded file.
        Raises VerificationError on mismatch.
        """
        pass
