"""
/api/backend.py - Private inventory backend

Vercel Serverless Function (meant to run as a separate, non-public project)

GET  /api/backend?sheetName=Breakfast
     -> {"data": [{"row": 2, "name": "Eggs", "quantity": 12}, ...],
         "updated_at": "2024-03-05T09:30:00"}

POST /api/backend
Body: {"sheetName": "Breakfast", "row": 4, "newQuantity": 7}
     -> {"success": true, "message": "Updated Breakfast row 4 quantity to 7"}

Errors: {"error": true, "kind": "...", "message": "..."} with 400/403/404/500.

This endpoint must only be reachable through the gateway (/api/inventory).
Deploying this repo as one project routes /api/backend publicly too, so set
the same INVENTORY_BACKEND_SECRET on the gateway and the backend: the
gateway sends it as X-Inventory-Gateway-Secret and every other caller gets
403. Without the secret the backend accepts any caller.
"""

from http.server import BaseHTTPRequestHandler
import hmac
import json
import logging
from typing import Optional
from urllib.parse import urlparse, parse_qs

from ._http import header_bytes, read_content_length
from .config import GATEWAY_SECRET_HEADER, BackendConfig, backend_secret_from_env
from .errors import (
    BadRequest,
    Forbidden,
    InventoryError,
    MISSING_PARAMS_MESSAGE,
    error_envelope,
)
from .service import InventoryService
from .sheets import GoogleSheetsStore


logger = logging.getLogger(__name__)

_service = None
_secret = None
_secret_loaded = False


def get_secret() -> Optional[str]:
    """Read INVENTORY_BACKEND_SECRET once per process"""
    global _secret, _secret_loaded
    if not _secret_loaded:
        _secret = backend_secret_from_env()
        _secret_loaded = True
    return _secret


def get_service() -> InventoryService:
    """Build the Sheets-backed service once per process"""
    global _service
    if _service is None:
        config = BackendConfig.from_env()
        store = GoogleSheetsStore(config.spreadsheet_id, config.credentials_info())
        _service = InventoryService(store)
    return _service


# ============================================================
# REQUEST HANDLING
# ============================================================

def handle_get(service_factory, query: str) -> tuple[int, dict]:
    """
    List one category.

    Args:
        service_factory: callable returning the InventoryService
        query: raw query string of the request

    Returns:
        (status, JSON payload)
    """
    params = parse_qs(query)
    sheet_name = params.get('sheetName', [''])[0]

    try:
        if not sheet_name:
            return 400, error_envelope(MISSING_PARAMS_MESSAGE, 'bad_request', updated_at=None)
        snapshot = service_factory().list_inventory(sheet_name)
        return 200, snapshot.to_dict()
    except InventoryError as e:
        logger.info("GET %r failed: %s", sheet_name, e.message)
        payload = e.to_dict()
        payload['updated_at'] = None
        return e.status, payload
    except Exception as e:
        logger.exception("GET %r failed", sheet_name)
        return 500, error_envelope(str(e), updated_at=None)


def handle_post(service_factory, body: bytes) -> tuple[int, dict]:
    """Update one quantity cell; returns (status, JSON payload)"""
    try:
        return 200, service_factory().update_quantity(body)
    except InventoryError as e:
        logger.info("POST failed: %s", e.message)
        return e.status, e.to_dict()
    except Exception as e:
        logger.exception("POST failed")
        return 500, error_envelope(str(e))


def check_gateway_secret(expected: Optional[str], presented: Optional[str]) -> None:
    """
    Reject requests that do not carry the gateway's shared secret.

    With no secret configured every caller is accepted, which is only
    appropriate when the backend is not publicly routable (local dev).

    Raises:
        Forbidden: the secret is configured and missing or wrong
    """
    if not expected:
        return
    # http.server hands header values over latin-1 decoded
    presented_bytes = (presented or '').encode('latin-1', errors='replace')
    if not hmac.compare_digest(presented_bytes, header_bytes(expected)):
        raise Forbidden('request did not come through the inventory gateway')


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler"""

    # Tests and the dev server inject a service and secret here
    service = None
    secret = None

    def _service(self) -> InventoryService:
        return self.service if self.service is not None else get_service()

    def _send_json(self, status: int, payload: dict):
        body = json.dumps(payload).encode()
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _reject(self, error: InventoryError):
        logger.warning("%s %s rejected: %s", self.command, self.path, error.message)
        self.close_connection = True
        self._send_json(error.status, error.to_dict())

    def _check_gateway(self) -> bool:
        expected = self.secret if self.secret is not None else get_secret()
        try:
            check_gateway_secret(expected, self.headers.get(GATEWAY_SECRET_HEADER))
        except Forbidden as e:
            self._reject(e)
            return False
        return True

    def do_GET(self):
        """GET /api/backend?sheetName=... - Read a category"""
        if not self._check_gateway():
            return
        status, payload = handle_get(self._service, urlparse(self.path).query)
        self._send_json(status, payload)

    def do_POST(self):
        """POST /api/backend - Update a quantity"""
        try:
            content_length = read_content_length(self.headers.get('Content-Length'))
        except BadRequest as e:
            self._reject(e)
            return
        body = self.rfile.read(content_length) if content_length else b''
        if not self._check_gateway():
            return
        status, payload = handle_post(self._service, body)
        self._send_json(status, payload)

    def _method_not_allowed(self):
        self._send_json(405, error_envelope(f'method {self.command} not allowed', 'bad_request'))

    do_PUT = _method_not_allowed
    do_PATCH = _method_not_allowed
    do_DELETE = _method_not_allowed

    def log_message(self, format, *args):
        logger.info("%s - %s", self.address_string(), format % args)
