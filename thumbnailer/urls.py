import re
from urllib.parse import quote, unquote, urlsplit, urlunsplit

from .errors import InvalidUrl

_ALLOWED_PREFIXES = ("http://", "https://")
_DEFAULT_PORTS = {"http": 80, "https": 443}

# Browsers drop these anywhere in the input
_TAB_OR_NEWLINE = re.compile(r"[\t\n\r]")

# Characters that may never appear in a hostname, after percent-decoding
_FORBIDDEN_HOST_CHARS = re.compile(r"[\x00-\x20#%/:<>?@\[\\\]^|\x7f]")

# Everything printable that the WHATWG percent-encode sets leave alone.
# quote() always keeps A-Za-z0-9 and -._~ on top of these.
_USERINFO_SAFE = "!$%&'()*+,"
_PATH_SAFE = _USERINFO_SAFE + "/:;=@[\\]^|"
_QUERY_SAFE = _PATH_SAFE.replace("'", "") + "?`{}"
_FRAGMENT_SAFE = _PATH_SAFE + "#?{}"


def normalize_url(raw: str | None) -> str:
    """
    Turn user input into a canonical absolute http(s) URL, serialized the
    way a browser's URL parser would.

    - Adds `https://` when no http/https scheme is given
    - Treats `\\` as `/` before the query, ignores extra slashes after the scheme
    - Lowercases scheme and host, punycodes international labels
    - Drops default ports, resolves `.` / `..` path segments, turns an empty path into "/"
    - Percent-encodes unsafe characters, keeps existing escapes

    Raises InvalidUrl when no usable host can be extracted.

    >>> normalize_url("example.com")
    'https://example.com/'
    >>> normalize_url("https:///example.com/a/../b")
    'https://example.com/b'
    """
    candidate = _TAB_OR_NEWLINE.sub("", (raw or "").strip())
    if not candidate.lower().startswith(_ALLOWED_PREFIXES):
        candidate = "https://" + candidate

    scheme, rest = candidate.split(":", 1)
    candidate = f"{scheme}://{_authority_and_path(rest)}"

    try:
        parts = urlsplit(candidate)
        host = parts.hostname
        port = parts.port
    except ValueError as e:
        raise InvalidUrl(raw, str(e)) from e

    if not host:
        raise InvalidUrl(raw, "missing host")

    scheme = parts.scheme.lower()
    netloc = _userinfo(parts) + _encode_host(raw, host)
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc += f":{port}"

    path = quote(_remove_dot_segments(parts.path or "/"), safe=_PATH_SAFE)
    query = quote(parts.query, safe=_QUERY_SAFE)
    fragment = quote(parts.fragment, safe=_FRAGMENT_SAFE)
    return urlunsplit((scheme, netloc, path, query, fragment))


def _authority_and_path(rest: str) -> str:
    # Backslashes only count as slashes before the query or fragment starts
    cut = len(rest)
    for marker in "?#":
        idx = rest.find(marker)
        if idx != -1:
            cut = min(cut, idx)

    head = rest[:cut].replace("\\", "/").lstrip("/")
    return head + rest[cut:]


def _remove_dot_segments(path: str) -> str:
    """RFC 3986 section 5.2.4, for an absolute path."""
    segments = path.split("/")[1:]
    output: list[str] = []

    for i, segment in enumerate(segments):
        last = i == len(segments) - 1
        if segment == ".":
            if last:
                output.append("")
        elif segment == "..":
            if output:
                output.pop()
            if last:
                output.append("")
        else:
            output.append(segment)

    return "/" + "/".join(output)


def _encode_host(raw: str | None, host: str) -> str:
    # IPv6 literal: urlsplit strips the brackets
    if ":" in host:
        return f"[{host}]"

    host = unquote(host).lower()
    if _FORBIDDEN_HOST_CHARS.search(host):
        raise InvalidUrl(raw, f"forbidden character in host {host!r}")

    # Label by label: ASCII labels pass as they are (no DNS length rules),
    # only international labels go through IDNA.
    labels = []
    for label in host.split("."):
        if label.isascii():
            labels.append(label)
            continue
        try:
            labels.append(label.encode("idna").decode("ascii"))
        except UnicodeError as e:
            raise InvalidUrl(raw, f"bad host label {label!r}") from e

    return ".".join(labels)


def _userinfo(parts) -> str:
    username = quote(parts.username or "", safe=_USERINFO_SAFE)
    password = quote(parts.password or "", safe=_USERINFO_SAFE)

    if password:
        return f"{username}:{password}@"
    if username:
        return f"{username}@"
    return ""
