"""
Inventory gateway

Sits between browsers and the private inventory backend:

    OPTIONS /api/inventory               -> 204 CORS preflight, never forwarded
    GET     /api/inventory?sheetName=X   -> GET  <backend>?sheetName=X
    POST    /api/inventory               -> POST <backend> (body forwarded as-is)
    anything else on /api/inventory      -> 405
    other paths                          -> static assets

Each request makes at most one backend call and is never retried. The
backend's status and body are relayed unchanged, with
Access-Control-Allow-Origin forced to '*'.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit, parse_qs

import httpx

from ._http import header_bytes
from .config import GATEWAY_SECRET_HEADER, GatewayConfig
from .errors import (
    BadRequest,
    ConfigurationError,
    InventoryError,
    UpstreamUnavailable,
    error_envelope,
)


logger = logging.getLogger(__name__)


# ============================================================
# HEADERS
# ============================================================

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, POST, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type',
    'Access-Control-Max-Age': '86400',
}

ALLOWED_METHODS = 'GET, POST, OPTIONS'

# Never copied to the backend request. httpx sets Host and Content-Length
# for the forwarded body; the rest describe the inbound connection only.
# Accept-Encoding is left to httpx because the relayed body is decoded.
# Inbound copies of the gateway secret header are never trusted.
DROPPED_REQUEST_HEADERS = {
    'host',
    'content-length',
    'connection',
    'keep-alive',
    'transfer-encoding',
    'te',
    'trailer',
    'upgrade',
    'proxy-connection',
    'proxy-authorization',
    'proxy-authenticate',
    'accept-encoding',
    GATEWAY_SECRET_HEADER.lower(),
}


def forward_headers(headers) -> dict:
    """
    Copy inbound headers minus framing and hop-by-hop headers.

    http.server decodes header bytes as latin-1; re-encoding them the same
    way forwards non-ASCII values byte for byte.
    """
    if headers is None:
        return {}
    return {
        header_bytes(name): header_bytes(value)
        for name, value in headers.items()
        if name.lower() not in DROPPED_REQUEST_HEADERS
    }


@dataclass
class GatewayResponse:
    """Response to send back to the browser"""
    status: int
    headers: dict = field(default_factory=dict)
    body: bytes = b''

    def json(self):
        return json.loads(self.body)


def json_response(status: int, payload: dict, headers: Optional[dict] = None) -> GatewayResponse:
    response_headers = {
        'Content-Type': 'application/json',
        'Access-Control-Allow-Origin': '*',
    }
    if headers:
        response_headers.update(headers)
    return GatewayResponse(status, response_headers, json.dumps(payload).encode())


# ============================================================
# GATEWAY
# ============================================================

class Gateway:
    """
    Public entry point for the inventory API.

    Usage:
        gateway = Gateway(GatewayConfig.from_env())
        response = gateway.handle('GET', '/api/inventory?sheetName=Breakfast', headers)
    """

    def __init__(self, config: GatewayConfig, client: Optional[httpx.Client] = None, assets=None):
        self.config = config
        self.assets = assets
        self.client = client or httpx.Client(
            timeout=config.upstream_timeout,
            follow_redirects=True
        )

    def is_api_path(self, path: str) -> bool:
        prefix = self.config.api_prefix.rstrip('/')
        return path == prefix or path.startswith(prefix + '/')

    def handle(self, method: str, path: str, headers=None, body: bytes = b'') -> GatewayResponse:
        """
        Handle one inbound request.

        Args:
            method: HTTP method
            path: request path including the query string
            headers: inbound headers (any mapping with items())
            body: raw request body

        Returns:
            GatewayResponse; transport and configuration failures come back
            as JSON error envelopes, never as exceptions
        """
        method = method.upper()
        parts = urlsplit(path)

        if not self.is_api_path(parts.path):
            return self._serve_static(method, parts.path)

        if method == 'OPTIONS':
            return GatewayResponse(204, dict(CORS_HEADERS))

        try:
            if method == 'GET':
                return self._forward_get(parts.query, headers)
            if method == 'POST':
                return self._forward_post(body, headers)
        except InventoryError as e:
            logger.warning("%s %s failed: %s", method, parts.path, e.message)
            return json_response(e.status, e.to_dict())

        return json_response(
            405,
            error_envelope(f'method {method} not allowed', 'bad_request'),
            {'Allow': ALLOWED_METHODS}
        )

    def _serve_static(self, method: str, path: str) -> GatewayResponse:
        if self.assets is None:
            logger.error("No static assets configured for %s", path)
            return json_response(500, error_envelope('static assets are not configured', 'configuration'))
        status, headers, body = self.assets.handle(method, path)
        return GatewayResponse(status, headers, body)

    def _forward_get(self, query: str, headers) -> GatewayResponse:
        sheet_name = parse_qs(query).get('sheetName', [''])[0]
        if not sheet_name:
            raise BadRequest('missing required query parameter: sheetName')
        return self._forward('GET', headers, params={'sheetName': sheet_name})

    def _forward_post(self, body: bytes, headers) -> GatewayResponse:
        return self._forward('POST', headers, content=body or b'')

    def _backend_headers(self, headers) -> dict:
        forwarded = forward_headers(headers)
        if self.config.backend_secret:
            forwarded[header_bytes(GATEWAY_SECRET_HEADER)] = header_bytes(self.config.backend_secret)
        return forwarded

    def _forward(self, method: str, headers, params=None, content=None) -> GatewayResponse:
        """Make the single backend call and relay its status and body"""
        if not self.config.backend_url:
            raise ConfigurationError('backend URL is not configured (INVENTORY_BACKEND_URL)')

        try:
            upstream = self.client.request(
                method,
                self.config.backend_url,
                params=params,
                headers=self._backend_headers(headers),
                content=content
            )
        except httpx.InvalidURL as e:
            raise ConfigurationError(f'invalid backend URL: {e}')
        except httpx.RequestError as e:
            raise UpstreamUnavailable(f'{type(e).__name__}: {e}' if str(e) else type(e).__name__)

        logger.info("%s backend -> %s", method, upstream.status_code)

        return GatewayResponse(
            upstream.status_code,
            {
                'Content-Type': upstream.headers.get('Content-Type', 'application/json'),
                'Access-Control-Allow-Origin': '*',
            },
            upstream.content
        )

    def close(self):
        self.client.close()
