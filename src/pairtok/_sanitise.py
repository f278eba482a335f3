"""
Helpers for showing raw token bytes in logs and vocabulary listings.
"""

import unicodedata


def render_bytes(b: bytes) -> str:
    """
    Decode bytes as UTF-8 for display.

    Invalid UTF-8 (common for tokens that cut a multi-byte character) becomes
    the replacement character, and control characters such as newlines are
    shown as ``\\uXXXX`` escapes so each token stays on one line.
    """
    text = b.decode("utf-8", errors="replace")
    # every control category code (Cc, Cf, Cn, ...) starts with "C"
    return "".join(
        f"\\u{ord(c):04x}" if unicodedata.category(c)[0] == "C" else c for c in text
    )
