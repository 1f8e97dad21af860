"""GCE metadata server lookup for the default project id.

Cloud Run, GKE and Compute Engine expose the project id on a link-local
metadata endpoint.  The lookup is attempted once at initialization, bounded
by a short timeout, and never retried; any failure yields ``None`` so the
caller can fall back to a sentinel.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from gcplog.config import MetadataSettings

logger = logging.getLogger(__name__)


class ProjectIdResolver(Protocol):
    def resolve(self) -> str | None:
        """Return the default project id, or None if it cannot be determined."""


class MetadataService:
    """Reads the project id from the metadata server."""

    def __init__(
        self,
        settings: MetadataSettings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = settings or MetadataSettings.load()
        self._transport = transport

    def resolve(self) -> str | None:
        try:
            with httpx.Client(
                transport=self._transport, timeout=self._settings.timeout_seconds
            ) as client:
                response = client.get(
                    self._settings.url, headers={"Metadata-Flavor": "Google"}
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Metadata server unavailable at %s: %s", self._settings.host, e)
            return None

        project_id = response.text.strip()
        if not project_id:
            logger.warning("Metadata server returned an empty project id")
            return None
        return project_id


class StaticResolver:
    """Resolver that always answers with a fixed value (or None)."""

    def __init__(self, project_id: str | None) -> None:
        self._project_id = project_id

    def resolve(self) -> str | None:
        return self._project_id
