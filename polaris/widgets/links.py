"""Quick links dock widget."""

from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlparse

from polaris.protocols import ValidationError
from polaris.types import EntityKind, Record, seed_record
from polaris.validation import is_valid_url, reject_unknown, require_int, sanitize_string

from .base import Widget

LINK_FIELDS = ("url", "title", "favicon_url", "position")
MAX_TITLE_LENGTH = 255

# Dropped when turning a domain into a title
COMMON_TLDS = frozenset({"com", "org", "net", "io", "co", "dev", "app", "ai"})


def normalize_url(url: str) -> str:
    """Trim and default the scheme to https."""
    trimmed = url.strip()
    if not trimmed.startswith(("http://", "https://")):
        return f"https://{trimmed}"
    return trimmed


def extract_domain(url: str) -> str:
    """Hostname without a leading ``www.``; empty for invalid URLs."""
    if not is_valid_url(url):
        return ""
    hostname = urlparse(url.strip()).hostname or ""
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname


def title_from_url(url: str) -> str:
    """Readable title from the domain, e.g. ``docs.google.com`` -> ``Docs Google``."""
    domain = extract_domain(url)
    if not domain:
        return ""
    parts = [p for p in domain.split(".") if p.lower() not in COMMON_TLDS]
    return " ".join(p[:1].upper() + p[1:].lower() for p in parts if p) or domain


def favicon_url(url: str) -> str:
    domain = extract_domain(url)
    if not domain:
        return ""
    return f"https://www.google.com/s2/favicons?domain={quote(domain)}&sz=32"


def _url(value: Any, field_name: str = "url") -> str:
    if not is_valid_url(value):
        raise ValidationError("Please enter a valid URL", field_name)
    return value.strip()


def _favicon(value: Any) -> Optional[str]:
    if value in (None, ""):
        return None
    return _url(value, "favicon_url")


def validate_link(data: Dict[str, Any]) -> Dict[str, Any]:
    reject_unknown(data, LINK_FIELDS)
    if not data.get("url"):
        raise ValidationError("Please enter a URL", "url")
    return {
        "url": _url(data["url"]),
        "title": sanitize_string(data.get("title"), "Title", MAX_TITLE_LENGTH),
        "favicon_url": _favicon(data.get("favicon_url")),
        "position": require_int(data.get("position", 0), "position", min_val=0),
    }


def validate_link_update(data: Dict[str, Any]) -> Dict[str, Any]:
    reject_unknown(data, LINK_FIELDS)
    cleaned: Dict[str, Any] = {}
    if "url" in data:
        cleaned["url"] = _url(data["url"])
    if "title" in data:
        cleaned["title"] = sanitize_string(data["title"], "Title", MAX_TITLE_LENGTH)
    if "favicon_url" in data:
        cleaned["favicon_url"] = _favicon(data["favicon_url"])
    if "position" in data:
        cleaned["position"] = require_int(data["position"], "position", min_val=0)
    return cleaned


def default_links() -> List[Record]:
    demo = [
        ("https://github.com", "GitHub"),
        ("https://linkedin.com", "LinkedIn"),
        ("https://stackoverflow.com", "Stack Overflow"),
        ("https://dev.to", "DEV"),
    ]
    return [
        seed_record(
            "link",
            position + 1,
            {"url": url, "title": title, "favicon_url": favicon_url(url), "position": position},
        )
        for position, (url, title) in enumerate(demo)
    ]


LINKS = EntityKind(
    name="quick link",
    plural="quick links",
    cache_key="polaris-local-quick-links",
    table="quick_links",
    field_names=LINK_FIELDS,
    seed=default_links,
    validate_create=validate_link,
    validate_update=validate_link_update,
    order_by="position",
    ascending=True,
)


class LinksWidget(Widget):
    """Bookmarks shown in a dock, ordered by ``position``."""

    KIND = LINKS

    def add(self, url: str, title: Optional[str] = None) -> Optional[Record]:
        """Add a link at the end of the dock.

        The scheme defaults to https; the title and favicon are derived from
        the domain unless a title is given.
        """
        if not url or not url.strip():
            self.engine.reject("create", ValidationError("Please enter a URL", "url"))
            return None

        normalized = normalize_url(url)
        if not is_valid_url(normalized):
            self.engine.reject("create", ValidationError("Please enter a valid URL", "url"))
            return None

        next_position = len(self.items)
        return self.engine.create(
            {
                "url": normalized,
                "title": title or title_from_url(normalized),
                "favicon_url": favicon_url(normalized) or None,
                "position": next_position,
            }
        )

    def retitle(self, link_id: str, title: str) -> Optional[Record]:
        return self.engine.update(link_id, {"title": title})

    def remove(self, link_id: str) -> bool:
        return self.engine.delete(link_id)

    def links(self) -> List[Record]:
        """Links in dock order."""
        return sorted(self.items, key=lambda link: link.get("position", 0))
