"""
Endpoint registry: the saved endpoint profiles and the current selection.

The registry owns the endpoint list; durability is delegated to an
EndpointStore. The selection is kept as an id and resolved against the
owned list on every read, so deleting an endpoint can never leave a stale
reference behind.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Protocol

from modelcurl.config import COPY_SUFFIX, Endpoint
from modelcurl.core import ModelCurlError

logger = logging.getLogger(__name__)


class EndpointValidationError(ModelCurlError):
    """An endpoint is missing required fields and was not saved."""
    pass


class EndpointStore(Protocol):
    """Persistence collaborator for endpoint profiles."""

    def get_saved_endpoints(self) -> list[Endpoint]: ...

    def save_endpoint(self, endpoint: Endpoint) -> None: ...

    def delete_endpoint(self, endpoint_id: str) -> None: ...


def generate_endpoint_id() -> str:
    return f"endpoint-{uuid.uuid4().hex}"


def normalize_endpoint(endpoint: Endpoint) -> Endpoint:
    """
    Validate and clean an endpoint before it is persisted.

    - name and url are required
    - trailing slashes are stripped from url
    - headers with a blank name are dropped (duplicates are kept)

    Raises:
        EndpointValidationError: if a required field is blank
    """
    missing = [f for f in ("name", "url") if not getattr(endpoint, f).strip()]
    if missing:
        raise EndpointValidationError(
            f"Please fill in all required fields: {', '.join(missing)}"
        )

    return endpoint.model_copy(update={
        "name": endpoint.name.strip(),
        "url": endpoint.url.strip().rstrip("/"),
        "api_key": endpoint.api_key or None,
        "headers": [(k, v) for k, v in endpoint.headers if k.strip()],
        "model": endpoint.model.strip(),
    })


class EndpointRegistry:
    """
    Manages saved endpoints and which one is selected.

    Every mutation writes through the store and then reloads, so callers
    only ever observe post-mutation snapshots.
    """

    def __init__(self, store: EndpointStore):
        self.store = store
        self._endpoints: list[Endpoint] = []
        self._selected_id: Optional[str] = None

    def list(self) -> list[Endpoint]:
        """Return saved endpoints in storage order."""
        return list(self._endpoints)

    def get(self, endpoint_id: Optional[str]) -> Optional[Endpoint]:
        """Look up an endpoint by id."""
        if endpoint_id is None:
            return None
        for endpoint in self._endpoints:
            if endpoint.id == endpoint_id:
                return endpoint
        return None

    def find_by_name(self, name: str) -> Optional[Endpoint]:
        """Look up the first endpoint with this name."""
        for endpoint in self._endpoints:
            if endpoint.name == name:
                return endpoint
        return None

    @property
    def selected(self) -> Optional[Endpoint]:
        """The selected endpoint, resolved by id against the current list."""
        return self.get(self._selected_id)

    def select(self, endpoint: Optional[Endpoint]) -> None:
        """Change the selection. In memory only; never persisted."""
        self._selected_id = endpoint.id if endpoint is not None else None

    async def load(self) -> list[Endpoint]:
        """
        Reload endpoints from the store.

        If the list is non-empty and nothing (or an id no longer stored) is
        selected, the first entry is selected. A selection that still
        resolves is left alone.
        """
        self._endpoints = list(self.store.get_saved_endpoints())
        if self._endpoints and self.selected is None:
            self._selected_id = self._endpoints[0].id
        return self.list()

    async def save(self, endpoint: Endpoint) -> Endpoint:
        """
        Validate, normalize and upsert an endpoint by id.

        A fresh id is generated when the endpoint has none.

        Raises:
            EndpointValidationError: nothing is written
        """
        cleaned = normalize_endpoint(endpoint)
        if not cleaned.id:
            cleaned = cleaned.model_copy(update={"id": generate_endpoint_id()})

        self.store.save_endpoint(cleaned)
        logger.info(f"Saved endpoint '{cleaned.name}' ({cleaned.id})")
        await self.load()
        return cleaned

    async def delete(self, endpoint_id: str) -> None:
        """
        Delete an endpoint. If it was selected, select the first remaining
        endpoint (or nothing when the list is empty).
        """
        was_selected = self._selected_id == endpoint_id
        self.store.delete_endpoint(endpoint_id)
        logger.info(f"Deleted endpoint {endpoint_id}")
        if was_selected:
            self._selected_id = None
        await self.load()

    async def duplicate(self, endpoint: Endpoint) -> Endpoint:
        """Save a copy of endpoint under a new id, named '<name> (copy)'."""
        copy = endpoint.model_copy(update={
            "id": generate_endpoint_id(),
            "name": f"{endpoint.name}{COPY_SUFFIX}",
            "headers": list(endpoint.headers),
        })
        return await self.save(copy)
