"""HTTP implementation of the ObjectReader port."""

import contextlib
from typing import AsyncIterator, Dict

import httpx

from ..application.domain import ObjectReader
from ..application.exceptions import (
    MethodNotSupportedError,
    ObjectNotFoundError,
    StorageServerError,
    UnauthorizedError,
    UnexpectedStatusError,
)

from .base_client import BaseClient

_READABLE_STATUSES = (httpx.codes.OK, httpx.codes.PARTIAL_CONTENT)


def raise_for_object_status(url: str, status_code: int):
    """
    Translates a failed object read into a StorageError subclass.

    Raises:
        UnauthorizedError: On 401 or 403.
        ObjectNotFoundError: On 404.
        MethodNotSupportedError: On 405.
        StorageServerError: On any 5xx.
        UnexpectedStatusError: On any other status but 200 and 206.
    """

    if status_code in _READABLE_STATUSES:
        return
    if status_code in (httpx.codes.UNAUTHORIZED, httpx.codes.FORBIDDEN):
        raise UnauthorizedError(url, status_code)
    if status_code == httpx.codes.NOT_FOUND:
        raise ObjectNotFoundError(url, status_code)
    if status_code == httpx.codes.METHOD_NOT_ALLOWED:
        raise MethodNotSupportedError(url, status_code)
    if status_code >= httpx.codes.INTERNAL_SERVER_ERROR:
        raise StorageServerError(url, status_code)
    raise UnexpectedStatusError(url, status_code)


class HttpObjectReader(BaseClient, ObjectReader):
    """
    Reads public or pre-signed objects over HTTP(S).

    The URL must grant GET permission by itself; no credentials are added.
    """

    def __init__(self, client: httpx.AsyncClient, timeout: float):
        """Initializes the reader adapter."""
        super().__init__(client)
        self.timeout = timeout

    @contextlib.asynccontextmanager
    async def open_range(
        self, url: str, byte_range: str = ""
    ) -> AsyncIterator[httpx.Response]:
        """
        Opens a streamed GET on an object.

        Args:
            url: Full URL of the object.
            byte_range: Value for the Range header, e.g. "bytes=0-1000" or
                "bytes=1000-". The whole object is read when empty.

        Yields:
            The response, with its body not yet consumed.

        Raises:
            StorageError: If the status is neither 200 nor 206.
        """

        headers: Dict[str, str] = {}
        if byte_range:
            headers["Range"] = byte_range

        async with self.client.stream(
            "GET", url, headers=headers, timeout=self.timeout
        ) as response:
            self.logger.debug(f"GET {url}: status code {response.status_code}")
            raise_for_object_status(url, response.status_code)
            yield response

    async def read_range(self, url: str, byte_range: str = "") -> bytes:
        """Reads an object, or a range of it, fully into memory."""
        async with self.open_range(url, byte_range) as response:
            return await response.aread()

    async def head(self, url: str) -> httpx.Response:
        """
        Fetches the headers of an object.

        Raises:
            StorageError: If the status is not a success.
        """

        response = await self.client.head(url, timeout=self.timeout)
        raise_for_object_status(url, response.status_code)
        return response
