"""Form-style URL encoding and request-target parsing."""

from __future__ import annotations

_UNRESERVED = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~"
)
_HEX_DIGITS = "0123456789ABCDEF"
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def url_encode(text: str) -> str:
    """Percent-encode ``text``; spaces become '+', hex digits are upper case."""
    parts: list[str] = []
    for byte in text.encode(_ENCODING, _ERRORS):
        if byte in _UNRESERVED:
            parts.append(chr(byte))
        elif byte == 0x20:
            parts.append("+")
        else:
            parts.append("%" + _HEX_DIGITS[byte >> 4] + _HEX_DIGITS[byte & 0x0F])
    return "".join(parts)


def url_decode(text: str) -> str:
    """Undo :func:`url_encode`; raises ValueError on a malformed escape."""
    raw = text.encode(_ENCODING, _ERRORS)
    out = bytearray()
    pos = 0
    while pos < len(raw):
        byte = raw[pos]
        if byte == ord("+"):
            out.append(0x20)
            pos += 1
        elif byte == ord("%"):
            digits = raw[pos + 1 : pos + 3]
            if len(digits) != 2:
                raise ValueError(f"truncated escape at offset {pos} in {text!r}")
            try:
                out.append(int(digits.decode("ascii"), 16))
            except (UnicodeDecodeError, ValueError):
                raise ValueError(
                    f"invalid escape %{digits!r} at offset {pos}"
                ) from None
            if not all(chr(d) in "0123456789abcdefABCDEF" for d in digits):
                raise ValueError(f"invalid escape at offset {pos}")
            pos += 3
        else:
            out.append(byte)
            pos += 1
    return out.decode(_ENCODING, _ERRORS)


def parse_target(target: str) -> tuple[str, dict[str, str]]:
    """Split a request target into its path and decoded query parameters.

    Pairs without '=' are ignored; a repeated key keeps its last value.
    """
    path, sep, query = target.partition("?")
    params: dict[str, str] = {}
    if not sep:
        return path, params
    for pair in query.split("&"):
        key, eq, value = pair.partition("=")
        if eq:
            params[url_decode(key)] = url_decode(value)
    return path, params