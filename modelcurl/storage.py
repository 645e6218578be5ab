"""
JSON file persistence for endpoints and request history.

Files live in the config directory (MODELCURL_CONFIG_DIR, default
~/.config/modelcurl):

    endpoints.json   list of endpoint profiles, upserted by id
    history.json     list of completed requests
"""

import json
import logging
import tempfile
from pathlib import Path
from typing import Optional

from modelcurl.config import (
    ENDPOINTS_FILENAME,
    HISTORY_FILENAME,
    Endpoint,
    RequestHistoryItem,
    get_config_dir,
)

logger = logging.getLogger(__name__)


def _read_json_list(path: Path) -> list:
    if not path.exists():
        return []
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON list in {path}")
    return data


def _write_json_list(path: Path, items: list) -> None:
    """Write via a sibling temp file and rename, so readers never see a partial file."""
    text = json.dumps(items, indent=2)
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}.", suffix=".tmp",
        delete=False,
    ) as f:
        f.write(text)
    Path(f.name).replace(path)


class JsonEndpointStore:
    """Endpoint persistence backed by endpoints.json."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.path = Path(config_dir or get_config_dir()) / ENDPOINTS_FILENAME

    def get_saved_endpoints(self) -> list[Endpoint]:
        return [Endpoint.model_validate(item) for item in _read_json_list(self.path)]

    def save_endpoint(self, endpoint: Endpoint) -> None:
        """Replace the endpoint with the same id, or append it."""
        endpoints = self.get_saved_endpoints()
        for idx, existing in enumerate(endpoints):
            if existing.id == endpoint.id:
                endpoints[idx] = endpoint
                break
        else:
            endpoints.append(endpoint)
        _write_json_list(self.path, [e.to_storage() for e in endpoints])

    def delete_endpoint(self, endpoint_id: str) -> None:
        endpoints = [e for e in self.get_saved_endpoints() if e.id != endpoint_id]
        _write_json_list(self.path, [e.to_storage() for e in endpoints])


class MemoryEndpointStore:
    """In-process endpoint store (tests, throwaway sessions)."""

    def __init__(self, endpoints: Optional[list[Endpoint]] = None):
        self._endpoints: list[Endpoint] = list(endpoints or [])

    def get_saved_endpoints(self) -> list[Endpoint]:
        return [e.model_copy(deep=True) for e in self._endpoints]

    def save_endpoint(self, endpoint: Endpoint) -> None:
        for idx, existing in enumerate(self._endpoints):
            if existing.id == endpoint.id:
                self._endpoints[idx] = endpoint
                return
        self._endpoints.append(endpoint)

    def delete_endpoint(self, endpoint_id: str) -> None:
        self._endpoints = [e for e in self._endpoints if e.id != endpoint_id]


class JsonHistoryStore:
    """Request history backed by history.json (newest last)."""

    def __init__(self, config_dir: Optional[Path] = None, max_items: int = 500):
        self.path = Path(config_dir or get_config_dir()) / HISTORY_FILENAME
        self.max_items = max_items

    def get_request_history(self) -> list[RequestHistoryItem]:
        return [RequestHistoryItem.model_validate(item) for item in _read_json_list(self.path)]

    def add_history_item(self, item: RequestHistoryItem) -> None:
        items = self.get_request_history()
        items.append(item)
        items = items[-self.max_items:]
        _write_json_list(self.path, [i.model_dump(mode="json") for i in items])
        logger.debug(f"History now holds {len(items)} item(s)")

    def clear_history(self) -> None:
        _write_json_list(self.path, [])
