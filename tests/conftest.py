from __future__ import annotations

import pytest


@pytest.fixture
def payload_factory():
    """Builds one array entry of a resolver response."""

    def _payload(accession, status=200, message="ok", files=None):
        return {
            "accession": accession,
            "status": status,
            "message": message,
            "files": files or [],
        }

    return _payload
