"""
Static assets for non-API paths (the inventory page, its scripts and styles)
"""

import mimetypes
from pathlib import Path


class DirectoryAssets:
    """Serve files from a directory, index.html for directory paths"""

    def __init__(self, root, index: str = 'index.html'):
        self.root = Path(root).resolve()
        self.index = index

    def _resolve(self, path: str):
        relative = path.lstrip('/')
        target = (self.root / relative).resolve()
        if target != self.root and self.root not in target.parents:
            return None
        if target.is_dir():
            target = target / self.index
        return target if target.is_file() else None

    def handle(self, method: str, path: str) -> tuple[int, dict, bytes]:
        """
        Look up a static file.

        Returns:
            (status, headers, body)
        """
        if method not in ('GET', 'HEAD'):
            return 405, {'Allow': 'GET, HEAD', 'Content-Type': 'text/plain; charset=utf-8'}, b'Method Not Allowed'

        target = self._resolve(path)
        if target is None:
            return 404, {'Content-Type': 'text/plain; charset=utf-8'}, b'Not Found'

        content_type, _ = mimetypes.guess_type(target.name)
        body = target.read_bytes()
        headers = {'Content-Type': content_type or 'application/octet-stream'}
        return 200, headers, b'' if method == 'HEAD' else body
