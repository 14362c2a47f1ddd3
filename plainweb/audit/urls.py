# plainweb/audit/urls.py
import hashlib
import re
from urllib.parse import urlparse, urlunparse, parse_qsl, urlencode

from ..errors import InvalidURL

CANONICAL_SCHEME = "https"
DEFAULT_PORTS = {"http": 80, "https": 443}
TRACKING_PARAMS = {"gclid", "fbclid", "mc_cid", "mc_eid", "ref", "_ga", "msclkid"}
SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


def _is_tracking(key: str) -> bool:
    k = key.lower()
    return k.startswith("utm_") or k in TRACKING_PARAMS


def normalize_url(raw: str) -> str:
    """
    Canonicalize a user-supplied URL into a stable identity.

    - scheme forced to https (a missing scheme is assumed)
    - host and path lower-cased, default ports dropped
    - fragment removed, tracking query params removed, remaining params sorted
    - trailing slash removed except for the root path

    Raises InvalidURL when the input cannot be parsed as a web URL.
    """
    u = (raw or "").strip() if isinstance(raw, str) else ""
    if not u:
        raise InvalidURL("Provide a valid URL")

    if not SCHEME_RE.match(u):
        u = f"{CANONICAL_SCHEME}://{u}"

    try:
        parsed = urlparse(u)
        port = parsed.port
    except ValueError as e:
        raise InvalidURL(f"Unparseable URL {raw!r}: {e}") from e

    if parsed.scheme.lower() not in DEFAULT_PORTS:
        raise InvalidURL(f"Unsupported scheme {parsed.scheme!r} in {raw!r}")

    host = (parsed.hostname or "").lower().rstrip(".")
    if not host or any(c.isspace() for c in host):
        raise InvalidURL(f"Missing or invalid host in {raw!r}")

    # IPv6 literals keep their brackets
    netloc = f"[{host}]" if ":" in host else host
    if port is not None and port != DEFAULT_PORTS.get(parsed.scheme.lower()):
        netloc = f"{netloc}:{port}"

    path = parsed.path.lower() or "/"
    if len(path) > 1:
        path = path.rstrip("/") or "/"

    q = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True) if not _is_tracking(k)]
    query = urlencode(sorted(q))

    return urlunparse((CANONICAL_SCHEME, netloc, path, "", query, ""))


def url_key(normalized: str) -> str:
    """Stable store key for a normalized URL (sha256 hex digest)."""
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def audit_target(raw: str) -> str:
    """The URL handed to the audit engine: user input with a scheme, case untouched."""
    u = (raw or "").strip()
    if not SCHEME_RE.match(u):
        u = f"{CANONICAL_SCHEME}://{u}"
    return u.split("#", 1)[0]
