import re


_UNSAFE_SCHEMES = ("javascript:", "vbscript:", "data:text/html")
_IGNORED_CHARS_RE = re.compile(r"[\x00-\x20]")


def sanitize_url(url: str | None) -> str | None:
    """Replace script-carrying URLs with `#`. Everything else passes through."""
    if not url:
        return url
    normalized = _IGNORED_CHARS_RE.sub("", url).lower()
    if normalized.startswith(_UNSAFE_SCHEMES):
        return "#"
    return url
