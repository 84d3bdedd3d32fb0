"""Utility functions and helpers for the routerctl application."""
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from ..config import Config

REDACTED = "[REDACTED]"


def redact_sensitive_data(data: Any) -> Any:
    """Recursively redact sensitive data from dictionaries and lists.

    Args:
        data: Input data that might contain sensitive information

    Returns:
        Data with sensitive values redacted
    """
    if isinstance(data, dict):
        return {
            k: REDACTED if any(
                redact_key.lower() in str(k).lower()
                for redact_key in Config.REDACT_KEYS
            ) else redact_sensitive_data(v)
            for k, v in data.items()
        }
    elif isinstance(data, (list, tuple)):
        return [redact_sensitive_data(item) for item in data]
    return data


# One "key: value" line of a YAML (or JSON) document
_KEY_VALUE_RE = re.compile(
    r"""^(?P<prefix>[ \t]*(?:-[ \t]+)?["']?(?P<key>[A-Za-z0-9_.-]+)["']?[ \t]*:[ \t]*)"""
    r"""(?P<value>[^\s#|>].*?)(?P<suffix>,?)[ \t]*$""",
    re.MULTILINE,
)


def redact_text(text: str) -> str:
    """Redact the values of sensitive keys in a serialized YAML or JSON document.

    Only the value of a line whose key is one of ``Config.REDACT_KEYS`` is replaced;
    the rest of the document is left byte for byte.
    """
    redact_keys = {key.lower() for key in Config.REDACT_KEYS}

    def _replace(match: "re.Match") -> str:
        if match.group("key").lower() not in redact_keys:
            return match.group(0)
        return f"{match.group('prefix')}{REDACTED}{match.group('suffix')}"

    return _KEY_VALUE_RE.sub(_replace, text)


def atomic_write_text(path: Path, text: str, mode: int = 0o644) -> None:
    """Write text to a file atomically using a temporary file in the same directory.

    Args:
        path: Destination file path
        text: Text content to write
        mode: File permissions (octal)
    """
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
