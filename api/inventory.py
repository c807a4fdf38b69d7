"""
/api/inventory.py - Public inventory API (gateway to the private backend)

Vercel Serverless Function

GET     /api/inventory?sheetName=Breakfast
POST    /api/inventory   Body: {"sheetName": "Breakfast", "row": 4, "newQuantity": 7}
OPTIONS /api/inventory   CORS preflight

Requests are checked and forwarded to INVENTORY_BACKEND_URL; the backend URL
never reaches the browser.
"""

from http.server import BaseHTTPRequestHandler
import logging

from ._http import read_content_length
from .assets import DirectoryAssets
from .config import GatewayConfig
from .errors import InventoryError
from .gateway import Gateway, GatewayResponse, json_response


logger = logging.getLogger(__name__)

_gateway = None


def get_gateway() -> Gateway:
    """Build the gateway from the environment once per process"""
    global _gateway
    if _gateway is None:
        config = GatewayConfig.from_env()
        assets = DirectoryAssets(config.assets_dir) if config.assets_dir else None
        _gateway = Gateway(config, assets=assets)
    return _gateway


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler"""

    # Tests and the dev server inject a gateway here
    gateway = None

    def _send(self, response: GatewayResponse):
        self.send_response(response.status)
        for name, value in response.headers.items():
            self.send_header(name, value)
        if response.status != 204:
            self.send_header('Content-Length', str(len(response.body)))
        self.end_headers()
        if response.body and self.command != 'HEAD':
            self.wfile.write(response.body)

    def _reject(self, error: InventoryError):
        logger.warning("%s %s rejected: %s", self.command, self.path, error.message)
        self.close_connection = True
        self._send(json_response(error.status, error.to_dict()))

    def _dispatch(self):
        try:
            content_length = read_content_length(self.headers.get('Content-Length'))
        except InventoryError as e:
            # Body framing is unknown, so the connection cannot be reused
            self._reject(e)
            return
        body = self.rfile.read(content_length) if content_length else b''

        try:
            gateway = self.gateway if self.gateway is not None else get_gateway()
        except InventoryError as e:
            self._reject(e)
            return

        self._send(gateway.handle(self.command, self.path, self.headers, body))

    do_GET = _dispatch
    do_POST = _dispatch
    do_OPTIONS = _dispatch
    do_PUT = _dispatch
    do_PATCH = _dispatch
    do_DELETE = _dispatch
    do_HEAD = _dispatch

    def log_message(self, format, *args):
        logger.info("%s - %s", self.address_string(), format % args)
