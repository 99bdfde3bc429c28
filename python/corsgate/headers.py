"""Header composition primitives and header application.

Each configure_* function is a pure function of (Policy, RequestView) that
returns zero or more HeaderDirective values, possibly nested in lists.
apply_headers() flattens the groups depth-first and writes them to a
MutableHeaders sink:
- Vary directives merge into the existing Vary header
- Other directives with a truthy value overwrite the header (unless
  overwrite=False and the header is already set)
- Directives with a falsy value are skipped (disallowed origin ends up here)
"""

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from starlette.datastructures import MutableHeaders

from corsgate.policy import WILDCARD, OriginRule, Policy, RequestView, is_disabled_origin

ALLOW_ORIGIN = "Access-Control-Allow-Origin"
ALLOW_CREDENTIALS = "Access-Control-Allow-Credentials"
ALLOW_METHODS = "Access-Control-Allow-Methods"
ALLOW_HEADERS = "Access-Control-Allow-Headers"
MAX_AGE = "Access-Control-Max-Age"
EXPOSE_HEADERS = "Access-Control-Expose-Headers"
VARY = "Vary"
CONTENT_LENGTH = "Content-Length"

# RFC 7230 token characters
_FIELD_NAME = re.compile(r"^[!#$%&'*+.^_`|~0-9A-Za-z-]+$")


@dataclass(frozen=True)
class HeaderDirective:
    """A single header to set (or, with a falsy value, to leave unset)."""

    key: str
    value: str | bool | None

    @property
    def is_vary(self) -> bool:
        return self.key.lower() == "vary"


DirectiveGroup = HeaderDirective | None | list["DirectiveGroup"]


def is_origin_allowed(origin: str | None, allowed: OriginRule) -> bool:
    """Test a request origin against an origin rule.

    Sequences are OR-combined and short-circuit on the first match. Strings
    compare for exact equality, patterns use re.search, anything else is
    judged by its truthiness.
    """
    if isinstance(allowed, (list, tuple)):
        return any(is_origin_allowed(origin, rule) for rule in allowed)
    if isinstance(allowed, str):
        return origin == allowed
    if isinstance(allowed, re.Pattern):
        return origin is not None and allowed.search(origin) is not None
    return bool(allowed)


def configure_origin(policy: Policy, request: RequestView) -> list[DirectiveGroup]:
    """Access-Control-Allow-Origin plus Vary: Origin when the value depends on the request."""
    origin = policy.origin

    if is_disabled_origin(origin) or origin == WILDCARD:
        return [HeaderDirective(ALLOW_ORIGIN, WILDCARD)]

    if isinstance(origin, str):
        return [HeaderDirective(ALLOW_ORIGIN, origin), HeaderDirective(VARY, "Origin")]

    allowed = is_origin_allowed(request.origin, origin)
    return [
        HeaderDirective(ALLOW_ORIGIN, request.origin if allowed else False),
        HeaderDirective(VARY, "Origin"),
    ]


def configure_methods(policy: Policy) -> HeaderDirective:
    return HeaderDirective(ALLOW_METHODS, ",".join(policy.methods))


def configure_credentials(policy: Policy) -> HeaderDirective | None:
    if policy.credentials is True:
        return HeaderDirective(ALLOW_CREDENTIALS, "true")
    return None


def configure_allowed_headers(policy: Policy, request: RequestView) -> list[DirectiveGroup]:
    """Explicit allow-list, or a reflection of Access-Control-Request-Headers."""
    directives: list[DirectiveGroup] = []

    if policy.allowed_headers is None:
        value = request.request_headers
        directives.append(HeaderDirective(VARY, "Access-Control-Request-Headers"))
    else:
        value = ",".join(policy.allowed_headers)

    if value:
        directives.append(HeaderDirective(ALLOW_HEADERS, value))

    return directives


def configure_max_age(policy: Policy) -> HeaderDirective | None:
    """Access-Control-Max-Age for numbers (including 0) and non-empty strings."""
    max_age = policy.max_age
    if isinstance(max_age, bool) or max_age is None:
        return None
    value = str(max_age)
    if not value:
        return None
    return HeaderDirective(MAX_AGE, value)


def configure_exposed_headers(policy: Policy) -> HeaderDirective | None:
    value = ",".join(policy.exposed_headers)
    if value:
        return HeaderDirective(EXPOSE_HEADERS, value)
    return None


def flatten(groups: Iterable[DirectiveGroup]) -> Iterator[HeaderDirective]:
    """Yield directives depth-first in order, skipping None entries."""
    for group in groups:
        if group is None:
            continue
        if isinstance(group, list):
            yield from flatten(group)
        else:
            yield group


def _vary_tokens(value: str) -> list[str]:
    return [token.strip() for token in value.split(",") if token.strip()]


def merge_vary(existing: str | None, field: str) -> str:
    """Merge field names into a Vary header value.

    Tokens already present (case-insensitive) are not repeated. "*" absorbs
    everything: an existing "*" stays "*", and adding "*" yields "*".

    Raises:
        ValueError: If field is not a valid header field-name list.
    """
    additions = _vary_tokens(field)
    for token in additions:
        if token != WILDCARD and not _FIELD_NAME.match(token):
            raise ValueError(f"Invalid Vary field name: {token!r}")

    current = _vary_tokens(existing or "")
    if WILDCARD in current:
        return WILDCARD
    if WILDCARD in additions:
        return WILDCARD

    seen = {token.lower() for token in current}
    for token in additions:
        if token.lower() not in seen:
            seen.add(token.lower())
            current.append(token)

    return ", ".join(current)


def append_vary(headers: MutableHeaders, field: str) -> None:
    """Merge field into the Vary header of a response, folding repeated Vary lines."""
    existing = ", ".join(headers.getlist("vary")) or None
    headers["Vary"] = merge_vary(existing, field)


def apply_headers(
    groups: Iterable[DirectiveGroup], headers: MutableHeaders, overwrite: bool = True
) -> None:
    """Write directives to a response header sink.

    With overwrite=False a header already present on the sink is left as is,
    so values set by the application win. Vary is merged either way.
    """
    for directive in flatten(groups):
        if directive.is_vary:
            if directive.value:
                append_vary(headers, str(directive.value))
        elif directive.value:
            if overwrite or directive.key not in headers:
                headers[directive.key] = str(directive.value)
