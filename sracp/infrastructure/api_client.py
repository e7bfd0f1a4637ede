"""HTTP implementation of the NameResolver port."""

from typing import List, Tuple

import httpx

from ..application.domain import NameResolver, ResolveRequest, Resolution
from ..application.exceptions import (
    ContentTypeError,
    RequestBuildError,
    ResolverStatusError,
    TransportError,
)

from .base_client import BaseClient
from .reconciler import reconcile_response

_FORMAT = "json"
_CREDENTIAL_FIELD = "ngc"
_JSON_CONTENT_TYPE = "application/json"


class HttpNameResolver(BaseClient, NameResolver):
    """
    A resolver that posts accessions to the Name Resolver API.

    Each call is a single POST: there is no retry, and the only deadline is
    the one configured on the injected client.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        default_endpoint: str,
        protocol_version: str,
    ):
        """Initializes the resolver adapter."""
        super().__init__(client)
        self.default_endpoint = self._require_http_url(
            default_endpoint, "resolver.default_endpoint"
        )
        self.protocol_version = protocol_version

    def _multipart_parts(self, request: ResolveRequest) -> List[Tuple[str, tuple]]:
        """
        Lists the parts of the form body.

        Plain fields are given a None filename so httpx always encodes the
        body as multipart/form-data, with or without a credential file.
        """

        parts: List[Tuple[str, tuple]] = []
        if request.credential is not None:
            parts.append((
                _CREDENTIAL_FIELD,
                (_CREDENTIAL_FIELD, request.credential, "application/octet-stream"),
            ))

        fields = [("version", self.protocol_version), ("format", _FORMAT)]
        if request.location:
            fields.append(("location", request.location))
        fields.extend(("acc", accession) for accession in sorted(request.accessions))

        self.logger.debug(f"Multipart fields: {fields}")
        parts.extend((name, (None, value.encode("utf-8"))) for name, value in fields)
        return parts

    def _build_request(self, endpoint: str, request: ResolveRequest) -> httpx.Request:
        """
        Assembles the complete multipart POST before anything is sent.

        Raises:
            RequestBuildError: If a part cannot be written into the body.
        """

        try:
            http_request = self.client.build_request(
                "POST", endpoint, files=self._multipart_parts(request)
            )
            # Render the whole body now so an unwritable part fails here.
            http_request.read()
        except (OSError, TypeError, ValueError, httpx.InvalidURL, httpx.HTTPError) as e:
            raise RequestBuildError(
                f"could not write multipart body for Name Resolver API: {e}"
            ) from e

        return http_request

    async def _send(self, http_request: httpx.Request) -> httpx.Response:
        """
        Issues the request and checks the response envelope.

        Raises:
            TransportError: If the exchange itself fails.
            ResolverStatusError: If the status is not 200.
            ContentTypeError: If the body is not served as JSON.
        """

        try:
            response = await self.client.send(http_request)
        except httpx.HTTPError as e:
            raise TransportError(f"can't resolve accession names: {e}") from e

        if response.status_code != httpx.codes.OK:
            raise ResolverStatusError(response.status_code, response.reason_phrase)

        content_type = response.headers.get("Content-Type", "")
        if content_type != _JSON_CONTENT_TYPE:
            raise ContentTypeError(
                f"Name Resolver API gave incorrect Content-Type: {content_type}"
            )

        return response

    async def resolve(self, request: ResolveRequest) -> Resolution:
        """
        Resolves a batch of accessions into file manifests.

        This method serves as the public contract fulfillment for the
        NameResolver port.

        Args:
            request: The accessions to resolve, with an optional endpoint,
                location hint and credential file contents.

        Returns:
            The manifests of the accessions that resolved, along with the
            diagnostics for everything that did not.

        Raises:
            RequestBuildError: If the request body cannot be assembled.
            TransportError: If the POST cannot be completed.
            ProtocolError: If the response breaks the API contract.
            ResolutionError: If no accession resolved to a usable file.
        """

        endpoint = request.endpoint
        if not endpoint:
            endpoint = self.default_endpoint
            self.logger.debug(
                f"Name Resolver endpoint was empty, using default: {endpoint}"
            )

        self.logger.info(
            f"Resolving {len(request.accessions)} accessions via {endpoint}..."
        )

        http_request = self._build_request(endpoint, request)
        response = await self._send(http_request)
        self.logger.debug(f"Response body from API:\n{response.text}")

        resolution = reconcile_response(response.content)

        self.logger.info(
            f"Successfully resolved {len(resolution.manifests)} accessions."
        )

        return resolution
