"""Path utilities (URI to file path composition)."""

from __future__ import annotations
from pathlib import Path
from urllib.parse import unquote, urlsplit

__all__ = ["uri_scheme", "compose_path"]


def uri_scheme(uri: str) -> str:
    """Return the lower-cased URI scheme, '' for plain relative paths.

    Single-letter schemes are drive letters of Windows absolute paths.
    """
    scheme = urlsplit(uri).scheme.lower()
    if len(scheme) == 1:
        return ""
    return scheme


def compose_path(base_dir: Path, uri: str) -> Path:
    """Resolve a (percent-encoded) file URI or path against ``base_dir``.

    Absolute paths are kept as is. Nothing is checked on disk.
    """
    if uri_scheme(uri) == "file":
        uri = urlsplit(uri).path
    decoded = unquote(uri)
    p = Path(decoded)
    if p.is_absolute():
        return p
    return Path(base_dir) / p
