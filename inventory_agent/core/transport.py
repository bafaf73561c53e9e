"""
Attribute transport.

The publisher only needs write(path, content). The HTTP implementation PUTs
the bytes to a guest attributes style endpoint; retries and auth are left to
the endpoint.
"""

from __future__ import annotations

from typing import Optional, Protocol

import requests

from inventory_agent.core.errors import TransportError


class AttributeTransport(Protocol):
    def write(self, path: str, content: bytes) -> None:
        """Store content under path, raising TransportError on failure."""


class HttpAttributeTransport:
    headers = {"Metadata-Flavor": "Google"}

    def __init__(self, timeout: float = 10, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def write(self, path: str, content: bytes) -> None:
        try:
            response = self.session.put(
                path,
                data=content,
                headers=self.headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"PUT {path}: {e}") from e

        if not response.ok:
            raise TransportError(
                f"PUT {path}: status={response.status_code} response={response.text.strip()}"
            )

    def close(self) -> None:
        self.session.close()
