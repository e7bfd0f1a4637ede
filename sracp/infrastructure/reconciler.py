"""
Decoding and reconciliation of Name Resolver API responses.

The API reports problems per accession and per file rather than failing the
whole batch. This module turns such a response into a `Resolution`: one
`Manifest` per accession that resolved, plus a diagnostic trail describing
everything that was dropped along the way. Only a response that yields no
downloadable file at all is an error.
"""

import logging
from typing import Dict, List, Union

from pydantic import ValidationError

from ..application.domain import File, Manifest, Resolution
from ..application.exceptions import (
    ResolutionError,
    ResolverError,
    UndecodableResponseError,
)

from .api_models import PayloadBatch, WireFile, WirePayload

logger = logging.getLogger(__name__)

_STATUS_OK = 200


def decode_payloads(raw: Union[bytes, str]) -> List[WirePayload]:
    """
    Decode a response body into the list of per-accession payloads.

    The body is expected to be a JSON array, and `null` counts as an empty
    one. Otherwise it is read as the single error object the API sends for
    a failed request.

    Raises:
        ResolverError: If the body is the API's single error object.
        UndecodableResponseError: If the body matches neither shape.
    """

    try:
        return PayloadBatch.validate_json(raw) or []
    except ValidationError:
        logger.debug("Response is not a payload array, trying error object")

    try:
        error_payload = WirePayload.model_validate_json(raw)
    except ValidationError as e:
        raise UndecodableResponseError(
            "fatal error when trying to read response from Name Resolver API"
        ) from e

    raise ResolverError(error_payload.status, error_payload.message)


def _to_domain(wire: WireFile) -> File:
    return File(
        name=wire.name,
        link=wire.link,
        size=wire.size,
        modification_date=wire.modification_date,
        md5=wire.md5,
        expiration_date=wire.expiration_date,
        service=wire.service,
    )


def reconcile(payloads: List[WirePayload]) -> Resolution:
    """
    Fold per-accession payloads into manifests.

    Payloads are processed in response order. A payload whose status is not
    200 only adds a diagnostic line; files already collected for the same
    accession from an earlier payload are kept. Payloads sharing an
    accession are merged, a later file replacing an earlier one of the same
    name. Files without a link or a name are dropped with a diagnostic line.

    Raises:
        ResolutionError: If no accession ends up with a downloadable file.
    """

    diagnostics: List[str] = []
    failures: List[str] = []
    files_by_accession: Dict[str, Dict[str, File]] = {}

    for payload in payloads:
        accession = payload.accession
        if payload.status != _STATUS_OK:
            diagnostics.append(
                f"issue with accession {accession}: {payload.message}"
            )
            failures.append(f"{accession}: {payload.status}\t{payload.message}")
            continue

        files = files_by_accession.setdefault(accession, {})
        if not payload.files:
            diagnostics.append(
                f"issue with accession {accession}: API returned no files"
            )

        for wire in payload.files:
            if not wire.link:
                diagnostics.append(
                    f"issue with accession {accession}: "
                    f"API returned no link for {wire.name}"
                )
                continue
            if not wire.name:
                diagnostics.append(
                    f"issue with accession {accession}: "
                    f"API returned no name for file {wire.link}"
                )
                continue
            files[wire.name] = _to_domain(wire)

    if not any(files_by_accession.values()):
        raise ResolutionError(failures, diagnostics)

    manifests = {
        accession: Manifest(accession=accession, files=files)
        for accession, files in files_by_accession.items()
    }
    return Resolution(manifests=manifests, diagnostics=diagnostics)


def reconcile_response(raw: Union[bytes, str]) -> Resolution:
    """Decode a response body and reconcile it in one step."""
    return reconcile(decode_payloads(raw))
