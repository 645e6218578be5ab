"""
Global state for the modelcurl application.

This module holds mutable state that is shared across handlers and UI.
Keeping it separate avoids circular import issues.
"""

from typing import Optional

from modelcurl.adapters import HttpTransport
from modelcurl.config import Endpoint, GenerationRequest
from modelcurl.registry import EndpointRegistry
from modelcurl.session import RequestSession
from modelcurl.storage import JsonEndpointStore, JsonHistoryStore


# These will be initialized when the app starts
registry: Optional[EndpointRegistry] = None
session: Optional[RequestSession] = None
history: Optional[JsonHistoryStore] = None

# Last dispatched exchange, for export
last_endpoint: Optional[Endpoint] = None
last_request: Optional[GenerationRequest] = None


def initialize(
    registry_: Optional[EndpointRegistry] = None,
    session_: Optional[RequestSession] = None,
) -> None:
    """Create the registry and session (file-backed unless given)."""
    global registry, session, history, last_endpoint, last_request
    registry = registry_ or EndpointRegistry(JsonEndpointStore())
    if session_ is None:
        history = JsonHistoryStore()
        session_ = RequestSession(HttpTransport(), history=history)
    session = session_
    last_endpoint = None
    last_request = None


def remember_exchange(endpoint: Endpoint, request: GenerationRequest) -> None:
    """Record the exchange being sent so it can be exported later."""
    global last_endpoint, last_request
    last_endpoint = endpoint
    last_request = request
