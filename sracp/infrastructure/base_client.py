"""Base class for async HTTP clients."""

import logging
import httpx

from ..application.exceptions import ConfigurationError


class BaseClient:
    """A base client that holds the shared async client and a logger."""

    def __init__(self, client: httpx.AsyncClient):
        """
        Initializes the base client.

        Args:
            client: An instance of httpx.AsyncClient.
        """

        self.client = client
        self.logger = logging.getLogger(self.__class__.__name__)

    def _require_http_url(self, url: str, setting: str) -> str:
        """
        Checks that a configured URL is usable.

        Raises:
            ConfigurationError: If the URL is missing or is not http(s).
        """

        if not url or not url.lower().startswith(("http://", "https://")):
            raise ConfigurationError(
                f"Setting {setting} for {self.__class__.__name__} must be an "
                f"http(s) URL, got {url!r}. Please check your config files."
            )
        return url
