"""
Loading of the credential (ngc) file attached to resolution requests.

The file is either on local disk or in a private S3 bucket. S3 objects are
read through boto3 so the AWS credentials configured on the machine are
used; the object is addressed with a virtual-hosted style URL:
https://<bucket>.<region>.s3.amazonaws.com/<key>
"""

import asyncio
import logging
from pathlib import Path
from typing import Callable, Tuple
from urllib.parse import urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..application.domain import CredentialSource
from ..application.exceptions import CredentialError

_S3_HOST_SUFFIX = "s3.amazonaws.com"
_VIRTUAL_HOSTED_HINT = (
    "url did not point to a valid amazon s3 location or follow the "
    "virtual-hosted style of https://[bucket].[region].s3.amazonaws.com/[file]"
)


def parse_virtual_hosted_url(url: str) -> Tuple[str, str, str]:
    """
    Splits a virtual-hosted style S3 URL into bucket, region and key.

    Raises:
        CredentialError: If the URL is not in that form.
    """

    if _S3_HOST_SUFFIX not in url:
        raise CredentialError(f"{_VIRTUAL_HOSTED_HINT}: {url}")

    parsed = urlparse(url)
    sections = (parsed.hostname or "").split(".")
    key = parsed.path.lstrip("/")
    if len(sections) < 5 or not key:
        raise CredentialError(f"{_VIRTUAL_HOSTED_HINT}: {url}")

    return sections[0], sections[1], key


class CredentialLoader(CredentialSource):
    """Reads credential files from local paths or from S3."""

    def __init__(
        self,
        connect_timeout: float = 15,
        client_factory: Callable = boto3.client,
    ):
        """Initializes the loader."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.connect_timeout = connect_timeout
        self.client_factory = client_factory

    def _read_s3_object(self, url: str) -> bytes:
        """Perform the blocking S3 download of the whole object."""

        bucket, region, key = parse_virtual_hosted_url(url)
        self.logger.debug(f"bucket: {bucket}, region: {region}, key: {key}")

        s3 = self.client_factory(
            "s3",
            region_name=region,
            config=Config(connect_timeout=self.connect_timeout),
        )
        try:
            obj = s3.get_object(Bucket=bucket, Key=key)
            return obj["Body"].read()
        except (BotoCoreError, ClientError) as e:
            raise CredentialError(f"could not read {url} from S3: {e}") from e

    def _read_local_file(self, location: str) -> bytes:
        try:
            return Path(location).expanduser().read_bytes()
        except OSError as e:
            raise CredentialError(
                f"could not read credential file {location}: {e}"
            ) from e

    async def read(self, location: str) -> bytes:
        """
        Reads the whole credential file.

        Args:
            location: A local path, or an http(s) URL to an S3 object.

        Returns:
            The raw bytes of the file.

        Raises:
            CredentialError: If the file cannot be located or read.
        """

        if location.lower().startswith(("http://", "https://")):
            self.logger.info(f"Reading credential file from S3: {location}")
            return await asyncio.to_thread(self._read_s3_object, location)

        self.logger.info(f"Reading credential file {location}")
        return await asyncio.to_thread(self._read_local_file, location)
