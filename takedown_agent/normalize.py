from __future__ import annotations

import re

from .errors import InvalidInput

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")


def normalize(raw_url: str) -> str:
    """Reduce a user-supplied URL or domain to a bare lowercase hostname."""
    value = (raw_url or "").strip()
    value = _SCHEME_RE.sub("", value)
    value = re.split(r"[/?#]", value, maxsplit=1)[0]
    # user:pass@host:port
    value = value.rsplit("@", 1)[-1]
    value = value.split(":", 1)[0]
    value = value.rstrip(".").lower()

    if not value:
        raise InvalidInput("Please provide a URL.")

    try:
        hostname = value.encode("idna").decode("ascii")
    except UnicodeError:
        raise InvalidInput(f"Could not extract a hostname from {raw_url!r}.")

    labels = hostname.split(".")
    if len(labels) < 2 or len(hostname) > 253 or not all(_LABEL_RE.match(l) for l in labels):
        raise InvalidInput(f"Could not extract a hostname from {raw_url!r}.")

    return hostname
