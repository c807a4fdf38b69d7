"""
Local development server

Runs the public gateway and the private backend side by side:

    python -m api.dev --port 3000 --backend-port 3001 --assets public

The backend reads GOOGLE_SHEETS_SPREADSHEET_ID and the GCP_* credentials
from the environment. The gateway forwards to the local backend unless
INVENTORY_BACKEND_URL is set.
"""

import argparse
import logging
import os
import threading
from dataclasses import replace
from http.server import ThreadingHTTPServer

from . import backend, inventory
from .assets import DirectoryAssets
from .config import GatewayConfig
from .gateway import Gateway


logger = logging.getLogger(__name__)


def build_servers(host: str, port: int, backend_port: int, assets_dir=None):
    """Create (gateway_server, backend_server), not yet serving"""
    backend_server = ThreadingHTTPServer((host, backend_port), backend.handler)

    config = GatewayConfig.from_env()
    if not config.backend_url:
        bound_port = backend_server.server_address[1]
        config = replace(config, backend_url=f'http://{host}:{bound_port}/api/backend')
    assets_dir = assets_dir or config.assets_dir
    if assets_dir:
        config = replace(config, assets_dir=assets_dir)

    gateway_handler = type('GatewayHandler', (inventory.handler,), {
        'gateway': Gateway(config, assets=DirectoryAssets(assets_dir) if assets_dir else None)
    })
    gateway_server = ThreadingHTTPServer((host, port), gateway_handler)
    return gateway_server, backend_server


def main(argv=None):
    parser = argparse.ArgumentParser(description='Run the inventory gateway and backend locally')
    parser.add_argument('--host', default='127.0.0.1')
    parser.add_argument('--port', type=int, default=int(os.environ.get('PORT', 3000)))
    parser.add_argument('--backend-port', type=int, default=3001)
    parser.add_argument('--assets', default=None, help='directory served for non-API paths')
    parser.add_argument('--log-level', default=os.environ.get('LOG_LEVEL', 'INFO'))
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    gateway_server, backend_server = build_servers(args.host, args.port, args.backend_port, args.assets)
    threading.Thread(target=backend_server.serve_forever, daemon=True).start()

    logger.info("Backend listening on %s:%s", *backend_server.server_address[:2])
    logger.info("Gateway listening on %s:%s", *gateway_server.server_address[:2])
    try:
        gateway_server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        gateway_server.server_close()
        backend_server.shutdown()
        backend_server.server_close()


if __name__ == '__main__':
    main()
