# hypermap_id/auth/client.py
"""
Hypermap ID Auth: Node Auth Client

HTTP client for a node's registration/auth endpoints.

Endpoints:
    GET  /info                      → NodeInfo (404 on a node without a keyfile)
    POST /generate-networking-info  → {name, networking_key, routing}
    POST /boot                      → "<base64 keyfile>"
    POST /login                     → status < 400 is success
    POST /import-keyfile            → status < 400 is success

Any other status >= 400 raises ServerRejectedError; connection failures
raise NetworkUnreachableError.

Usage:
    async with NodeAuthClient("http://localhost:8080") as client:
        info = await client.info()
        net = await client.generate_networking_info()
        keyfile = await client.boot(boot_request)

Updated: 2025-01-20
Version: 0.1.0
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

import httpx

from .boot import BootRequest, LoginRequest, ImportKeyfileRequest, Keyfile, RpcProviderConfig
from ..errors import ServerRejectedError, NetworkUnreachableError


logger = logging.getLogger("hypermap-id")

JSON_HEADERS = {"Content-Type": "application/json"}


# =============================================================================
# HTTP Transport
# =============================================================================

@dataclass
class HTTPResponse:
    """Status and raw body."""
    status: int
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return self.status < 400

    @property
    def text(self) -> str:
        return self.body.decode(errors="replace")

    def json(self) -> Any:
        return json.loads(self.body)


class HTTPTransport(ABC):
    """Abstract HTTP transport for node calls."""

    @abstractmethod
    async def get(self, url: str, headers: Dict[str, str]) -> HTTPResponse:
        """Send GET request."""
        pass

    @abstractmethod
    async def post(self, url: str, data: bytes, headers: Dict[str, str]) -> HTTPResponse:
        """Send POST request."""
        pass

    async def aclose(self) -> None:
        pass


class HttpxTransport(HTTPTransport):
    """httpx.AsyncClient transport. Keeps cookies between calls."""

    def __init__(self, timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        self._own_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _send(self, method: str, url: str, **kwargs) -> HTTPResponse:
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise NetworkUnreachableError(f"{method} {url} failed: {e}") from e
        return HTTPResponse(status=resp.status_code, body=resp.content)

    async def get(self, url: str, headers: Dict[str, str]) -> HTTPResponse:
        return await self._send("GET", url, headers=headers)

    async def post(self, url: str, data: bytes, headers: Dict[str, str]) -> HTTPResponse:
        return await self._send("POST", url, content=data, headers=headers)

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()


class MockHTTPTransport(HTTPTransport):
    """Mock HTTP transport for testing."""

    def __init__(self):
        self.requests: List[Dict[str, Any]] = []
        self._response_queue: List[HTTPResponse] = []

    def queue_response(self, body: Any, status: int = 200) -> None:
        """Queue a response; non-bytes bodies are JSON-encoded."""
        if not isinstance(body, bytes):
            body = json.dumps(body).encode()
        self._response_queue.append(HTTPResponse(status=status, body=body))

    def _next(self, method: str, url: str, data: Optional[bytes], headers: Dict[str, str]) -> HTTPResponse:
        self.requests.append({
            "method": method,
            "url": url,
            "data": data,
            "headers": headers,
        })
        if self._response_queue:
            return self._response_queue.pop(0)
        return HTTPResponse(status=200, body=b"null")

    async def get(self, url: str, headers: Dict[str, str]) -> HTTPResponse:
        return self._next("GET", url, None, headers)

    async def post(self, url: str, data: bytes, headers: Dict[str, str]) -> HTTPResponse:
        return self._next("POST", url, data, headers)


# =============================================================================
# Responses
# =============================================================================

@dataclass
class NodeInfo:
    """GET /info."""
    name: Optional[str] = None
    allowed_routers: Optional[List[str]] = None
    initial_cache_sources: List[str] = field(default_factory=list)
    initial_base_l2_providers: List[RpcProviderConfig] = field(default_factory=list)
    uses_direct_networking: bool = False
    hns_ip_address: Optional[str] = None
    detected_ip_address: Optional[str] = None

    @property
    def has_keyfile(self) -> bool:
        return self.name is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> NodeInfo:
        return cls(
            name=data.get("name"),
            allowed_routers=data.get("allowed_routers"),
            initial_cache_sources=list(data.get("initial_cache_sources") or []),
            initial_base_l2_providers=[
                RpcProviderConfig.from_json(p) for p in data.get("initial_base_l2_providers") or []
            ],
            uses_direct_networking=bool(data.get("uses_direct_networking", False)),
            hns_ip_address=data.get("hns_ip_address"),
            detected_ip_address=data.get("detected_ip_address"),
        )


# =============================================================================
# Client
# =============================================================================

class NodeAuthClient:
    """
    Client for a node's auth endpoints.

    Args:
        base_url: Node URL, e.g. "http://localhost:8080"
        transport: HTTP transport (default: httpx)
    """

    def __init__(self, base_url: str, transport: Optional[HTTPTransport] = None):
        self.base_url = base_url.rstrip("/")
        self._transport = transport or HttpxTransport()

    async def __aenter__(self) -> NodeAuthClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._transport.aclose()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def _post(self, path: str, body: Optional[Dict[str, Any]] = None) -> HTTPResponse:
        data = json.dumps(body).encode() if body is not None else b""
        resp = await self._transport.post(self._url(path), data, dict(JSON_HEADERS))
        logger.debug(f"POST {path} -> {resp.status}")
        if not resp.ok:
            raise ServerRejectedError(resp.status, resp.text, path)
        return resp

    def _json(self, resp: HTTPResponse, path: str) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise ServerRejectedError(resp.status, f"invalid JSON: {resp.text}", path) from e

    # =========================================================================
    # Public API
    # =========================================================================

    async def info(self) -> NodeInfo:
        """
        Node state and defaults.

        A node without a keyfile answers 404 with a valid body; that is
        returned as NodeInfo with `name` unset.
        """
        resp = await self._transport.get(self._url("/info"), {})
        if not resp.ok and resp.status != 404:
            raise ServerRejectedError(resp.status, resp.text, "/info")
        return NodeInfo.from_dict(self._json(resp, "/info"))

    async def generate_networking_info(self) -> Dict[str, Any]:
        """
        Ask the node for its networking key and routing defaults.

        Pass the result to NetworkingConfig.from_networking_info().
        """
        resp = await self._post("/generate-networking-info")
        return self._json(resp, "/generate-networking-info")

    async def boot(self, request: BootRequest) -> Keyfile:
        """
        Boot the node with a signed Boot message.

        Returns:
            Keyfile for the booted name
        """
        resp = await self._post("/boot", request.to_json())
        data = self._json(resp, "/boot")
        if not isinstance(data, str):
            raise ServerRejectedError(resp.status, f"expected base64 keyfile, got {resp.text[:80]}", "/boot")
        logger.info(f"booted {request.message.username}")
        return Keyfile(name=request.message.username, data=data)

    async def login(self, request: LoginRequest) -> None:
        """
        Unlock an already-booted node.

        Raises:
            ServerRejectedError: Wrong password or node refused
        """
        await self._post("/login", request.to_json())
        logger.info("login accepted")

    async def import_keyfile(self, keyfile: Keyfile, password_hash: str) -> None:
        """Boot from an existing keyfile."""
        request = ImportKeyfileRequest(keyfile=keyfile.data, password_hash=password_hash)
        await self._post("/import-keyfile", request.to_json())
        logger.info(f"imported keyfile for {keyfile.name}")
