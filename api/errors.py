"""
Inventory API errors

Every failure carries an explicit kind tag alongside the human-readable
message, so callers can branch on `kind` while older clients that only look
at `error` and `message` keep working.
"""


class InventoryError(Exception):
    """Base error, rendered as a JSON envelope at the handler edge"""

    kind = 'internal'
    status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {
            'error': True,
            'kind': self.kind,
            'message': self.message
        }


class BadRequest(InventoryError):
    """Malformed or missing client input"""

    kind = 'bad_request'
    status = 400


class InvalidRange(BadRequest):
    """Row outside the current bounds of the sheet"""

    kind = 'invalid_range'

    def __init__(self, row):
        super().__init__(f'invalid row {row}')
        self.row = row


class NotFound(InventoryError):
    """Named sheet (category) does not exist"""

    kind = 'not_found'
    status = 404

    def __init__(self, sheet_name: str):
        super().__init__(f'sheet "{sheet_name}" not found')
        self.sheet_name = sheet_name


class UpstreamUnavailable(InventoryError):
    """The gateway could not reach the backend at the transport level"""

    kind = 'upstream_unavailable'
    status = 502

    def __init__(self, detail: str):
        super().__init__(f'backend unavailable: {detail}')


class Forbidden(InventoryError):
    """Request did not come through the gateway"""

    kind = 'forbidden'
    status = 403


class ConfigurationError(InventoryError):
    """A required setting is missing"""

    kind = 'configuration'
    status = 500


PARSE_ERROR_MESSAGE = 'cannot parse request body'
MISSING_PARAMS_MESSAGE = 'missing or malformed parameters (sheetName, row, newQuantity)'


def error_envelope(message: str, kind: str = 'internal', **extra) -> dict:
    """Build an error envelope for failures that have no exception object"""
    payload = {'error': True, 'kind': kind, 'message': message}
    payload.update(extra)
    return payload
