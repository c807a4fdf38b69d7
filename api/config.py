"""
Configuration for the gateway and the inventory backend

Settings are read from the environment once, by the from_env()
constructors, and then passed explicitly to Gateway / GoogleSheetsStore.
Nothing reads os.environ while a request is being handled.
"""

import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError


DEFAULT_API_PREFIX = '/api/inventory'

# Set by the gateway on every backend call; the backend rejects requests
# without it whenever INVENTORY_BACKEND_SECRET is configured
GATEWAY_SECRET_HEADER = 'X-Inventory-Gateway-Secret'


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f'invalid timeout value: {value!r}')


@dataclass(frozen=True)
class GatewayConfig:
    """Settings for the public gateway"""
    backend_url: Optional[str] = None
    api_prefix: str = DEFAULT_API_PREFIX
    assets_dir: Optional[str] = None
    # None means no client-side timeout; the hosting platform's limit applies
    upstream_timeout: Optional[float] = None
    backend_secret: Optional[str] = None

    @classmethod
    def from_env(cls, environ=None) -> 'GatewayConfig':
        """
        Build the gateway settings from environment variables:

        - INVENTORY_BACKEND_URL: private backend endpoint (required to forward)
        - INVENTORY_API_PREFIX: path served by the gateway (default /api/inventory)
        - STATIC_ASSETS_DIR: directory for non-API paths
        - INVENTORY_UPSTREAM_TIMEOUT: seconds, unset for no timeout
        - INVENTORY_BACKEND_SECRET: shared secret sent to the backend
        """
        env = os.environ if environ is None else environ
        return cls(
            backend_url=(env.get('INVENTORY_BACKEND_URL') or '').strip() or None,
            api_prefix=env.get('INVENTORY_API_PREFIX') or DEFAULT_API_PREFIX,
            assets_dir=env.get('STATIC_ASSETS_DIR') or None,
            upstream_timeout=_optional_float(env.get('INVENTORY_UPSTREAM_TIMEOUT')),
            backend_secret=env.get('INVENTORY_BACKEND_SECRET') or None
        )


@dataclass(frozen=True)
class BackendConfig:
    """Google Sheets settings for the inventory backend"""
    spreadsheet_id: str
    project_id: Optional[str] = None
    client_email: Optional[str] = None
    private_key: str = ''

    @classmethod
    def from_env(cls, environ=None) -> 'BackendConfig':
        env = os.environ if environ is None else environ
        spreadsheet_id = env.get('GOOGLE_SHEETS_SPREADSHEET_ID')
        if not spreadsheet_id:
            raise ConfigurationError('GOOGLE_SHEETS_SPREADSHEET_ID is not set')

        return cls(
            spreadsheet_id=spreadsheet_id,
            project_id=env.get('GCP_PROJECT_ID'),
            client_email=env.get('GCP_CLIENT_EMAIL'),
            # Keys pasted into env dashboards keep literal \n sequences
            private_key=env.get('GCP_PRIVATE_KEY', '').replace('\\n', '\n')
        )

    def credentials_info(self) -> dict:
        """Service account info dict for google.oauth2"""
        return {
            'type': 'service_account',
            'project_id': self.project_id,
            'private_key': self.private_key,
            'client_email': self.client_email,
            'token_uri': 'https://oauth2.googleapis.com/token',
        }


def backend_secret_from_env(environ=None) -> Optional[str]:
    """Shared secret the backend expects from the gateway, or None when unset"""
    env = os.environ if environ is None else environ
    return env.get('INVENTORY_BACKEND_SECRET') or None
