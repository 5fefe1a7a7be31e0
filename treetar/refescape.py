"""Escape arbitrary strings for use in ostree refs.

Refs only allow a restricted set of characters: ASCII alphanumerics plus
``/``, ``-`` and ``_``.  Any other character is written as ``_XX_`` with
its code point in uppercase hexadecimal, and ``_`` itself becomes ``__``.
An empty path component is not valid, so ``//`` is written as ``/_2F_``.
"""

from __future__ import annotations

import string

_ASCII_ALNUM = frozenset(string.ascii_letters + string.digits)
_HEXDIGITS = frozenset(string.hexdigits)


def _is_ascii_alnum(c: str) -> bool:
    return c in _ASCII_ALNUM


def escape_for_ref(s: str) -> str:
    """Escape a single string so that it is a valid ref fragment."""
    if not s:
        raise ValueError("Invalid empty string for ref")
    if "\0" in s:
        raise ValueError("Invalid embedded NUL in string for ostree ref")
    out: list[str] = []
    previous_alnum = False
    last = len(s) - 1
    for position, c in enumerate(s):
        has_next = position < last
        current_alnum = _is_ascii_alnum(c)
        if current_alnum:
            out.append(c)
        elif c == "/" and previous_alnum and has_next:
            out.append(c)
        elif c == "-":
            out.append(c)
        elif c == "_":
            out.append("__")
        else:
            out.append(f"_{ord(c):02X}_")
        previous_alnum = current_alnum
    return "".join(out)


def prefix_escape_for_ref(prefix: str, s: str) -> str:
    """Escape ``s`` and join it to ``prefix`` with a ``/``."""
    return f"{prefix}/{escape_for_ref(s)}"


def _decode_codepoint(digits: str) -> str:
    body = digits[1:] if digits.startswith("+") and len(digits) > 1 else digits
    if not body or not all(d in _HEXDIGITS for d in body):
        raise ValueError(f"Invalid hexadecimal escape {digits!r}")
    value = int(body, 16)
    if value > 0xFFFFFFFF:
        raise ValueError(f"Escape value out of range {digits!r}")
    if value > 0x10FFFF or 0xD800 <= value <= 0xDFFF:
        raise ValueError(f"Invalid character code {value:#x}")
    return chr(value)


def unescape_for_ref(s: str) -> str:
    """Reverse the effect of :func:`escape_for_ref`."""
    out: list[str] = []
    chars = iter(s)
    for c in chars:
        if _is_ascii_alnum(c) or c in "-/":
            out.append(c)
        elif c == "_":
            following = next(chars, None)
            if following is None:
                continue
            if following == "_":
                out.append("_")
                continue
            digits = [following]
            for d in chars:
                if d == "_":
                    break
                digits.append(d)
            out.append(_decode_codepoint("".join(digits)))
        else:
            raise ValueError(f"Invalid character {c}")
    return "".join(out)


def unprefix_unescape_ref(prefix: str, ostree_ref: str) -> str:
    """Remove ``prefix/`` from a ref and return the unescaped remainder."""
    if not ostree_ref.startswith(prefix) or not ostree_ref[len(prefix):].startswith("/"):
        raise ValueError(
            f"ref does not match expected prefix {ostree_ref}/: {prefix}"
        )
    return unescape_for_ref(ostree_ref[len(prefix) + 1:])