import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from collections.abc import Iterable, Mapping

from .errors import HurleyError, InvalidHeaderError, InvalidMethodError

# RFC 9110 token characters
_METHOD_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

DEFAULT_TIMEOUT_S = 30.0
MAX_REDIRECTS = 10


def normalize_method(method: str) -> str:
    candidate = method.strip().upper()
    if not candidate or not _METHOD_RE.match(candidate):
        raise InvalidMethodError(method)
    return candidate


def merge_headers(base: Mapping[str, str], overrides: Mapping[str, str] | None) -> dict[str, str]:
    """Layer ``overrides`` on ``base``; header names compare case-insensitively."""
    merged = dict(base)
    for key, value in (overrides or {}).items():
        for existing in [k for k in merged if k.lower() == key.lower()]:
            del merged[existing]
        merged[key] = value
    return merged


@dataclass(frozen=True)
class HttpRequest:
    url: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    body: str | None = None
    timeout_s: float = DEFAULT_TIMEOUT_S
    follow_redirects: bool = True

    def with_method(self, method: str) -> "HttpRequest":
        return replace(self, method=normalize_method(method))

    def with_header(self, key: str, value: str) -> "HttpRequest":
        return replace(self, headers=merge_headers(self.headers, {key: value}))

    def with_headers(self, headers: Mapping[str, str] | None) -> "HttpRequest":
        return replace(self, headers=merge_headers(self.headers, headers))

    def with_headers_from_strings(self, headers: Iterable[str]) -> "HttpRequest":
        parsed = {}
        for header in headers:
            key, sep, value = header.partition(":")
            if not sep:
                raise InvalidHeaderError(header)
            parsed[key.strip()] = value.strip()
        return self.with_headers(parsed)

    def with_body(self, body: str | None) -> "HttpRequest":
        return replace(self, body=body)

    def with_body_from_file(self, path: str | Path) -> "HttpRequest":
        try:
            return replace(self, body=Path(path).read_text(encoding="utf-8"))
        except OSError as e:
            raise HurleyError(f"File read error: {path}: {e}") from e

    def with_timeout(self, timeout_s: float) -> "HttpRequest":
        return replace(self, timeout_s=timeout_s)

    def with_follow_redirects(self, follow: bool) -> "HttpRequest":
        return replace(self, follow_redirects=follow)
