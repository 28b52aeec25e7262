"""Secret / payload redaction for safe logging.

Before any request or response is written to debug output the
:func:`redact` function must be applied.  It enforces the following rules:

* **Credential headers and keys** (``X-Appwrite-Key``, anything named like
  a key, secret, token or session) are masked, showing only the last four
  characters of the configured API key.
* **Binary values** (raw ``bytes`` and long non-printable strings, such as
  multipart file bodies) are replaced with ``<binary:N_bytes>``.
* The full **API key is never present** in the output, wherever it appears.
"""

from __future__ import annotations

import copy
from typing import Any

# If any of these appear in a key name (case-insensitive), the value is
# redacted.
_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "key",
    "secret",
    "token",
    "password",
    "session",
    "cookie",
    "authorization",
    "jwt",
})

# A string longer than this that looks like raw bytes is treated as binary.
_BINARY_LENGTH_THRESHOLD = 256


def _mask_secret(value: str, secret: str | None) -> str:
    """Replace every occurrence of *secret* in *value* with a placeholder."""
    if not secret or secret not in value:
        return value
    suffix = secret[-4:] if len(secret) >= 4 else "****"
    placeholder = f"<redacted:...{suffix}>"
    if secret in placeholder:
        placeholder = "<redacted>"
    return value.replace(secret, placeholder)


def _looks_binary(value: str) -> bool:
    """Heuristic: return True if *value* appears to be raw binary data."""
    if len(value) < _BINARY_LENGTH_THRESHOLD:
        return False
    non_printable = sum(
        1
        for ch in value[:512]
        if not ch.isprintable() and ch not in ("\n", "\r", "\t")
    )
    return non_printable > len(value[:512]) * 0.1


def _redact_value(value: Any, secret: str | None) -> Any:
    if isinstance(value, dict):
        return _redact_dict(value, secret)
    if isinstance(value, (list, tuple)):
        return [_redact_value(item, secret) for item in value]
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    if isinstance(value, str):
        if _looks_binary(value):
            return f"<binary:{len(value.encode('utf-8'))}_bytes>"
        return _mask_secret(value, secret)
    return value


def _redact_dict(d: dict, secret: str | None) -> dict:
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            if isinstance(value, str) and secret and secret in value:
                result[key] = _mask_secret(value, secret)
            else:
                result[key] = "<redacted>"
        else:
            result[key] = _redact_value(value, secret)
    return result


def redact(payload: dict, secret: str | None = None) -> dict:
    """Return a deep copy of *payload* with sensitive data redacted.

    Parameters
    ----------
    payload:
        The dictionary to sanitize (request headers, form fields, a
        response body, or a dump combining them).
    secret:
        The configured API key.  Any occurrence of this exact string
        anywhere in the payload is replaced.

    Returns
    -------
    dict
        A new dictionary; the original *payload* is never mutated.

    Examples
    --------
    >>> redact({"X-Appwrite-Key": "standard_abc123"}, "standard_abc123")
    {'X-Appwrite-Key': '<redacted:...c123>'}
    """
    safe = copy.deepcopy(payload)
    return _redact_dict(safe, secret)
