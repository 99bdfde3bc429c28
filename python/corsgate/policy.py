"""CORS policy data model.

Types:
- CorsOptions: Declarative configuration as supplied by the host (fields may be UNSET)
- Policy: Fully resolved, per-request policy consumed by the header composer
- RequestView: The slice of an inbound request the composer needs

Origin rules:
- "*": wildcard, any origin
- other str: fixed origin, emitted verbatim
- re.Pattern: origin reflected when the pattern matches (re.search)
- list/tuple of rules: OR-combined, first match wins
- True: reflect whatever origin the request carries

Policies and request views are built fresh for every request and never cached.
"""

import math
import re
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, fields
from types import MappingProxyType
from typing import Any

from starlette.datastructures import Headers
from starlette.types import Scope

WILDCARD = "*"

OriginRule = str | bool | re.Pattern[str] | Sequence["OriginRule"]
OriginResolver = Callable[[str | None], "OriginRule | None | Awaitable[OriginRule | None]"]


class _Unset:
    """Marker for options the caller did not supply."""

    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()

DEFAULT_OPTIONS: Mapping[str, Any] = MappingProxyType(
    {
        "origin": WILDCARD,
        "methods": ("GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"),
        "preflight_continue": False,
        "options_success_status": 204,
    }
)

# camelCase keys accepted in mapping-style options ("headers" is handled separately)
_OPTION_ALIASES = {
    "allowedHeaders": "allowed_headers",
    "exposedHeaders": "exposed_headers",
    "maxAge": "max_age",
    "preflightContinue": "preflight_continue",
    "optionsSuccessStatus": "options_success_status",
}


@dataclass(frozen=True)
class CorsOptions:
    """Declarative CORS configuration.

    Any field left UNSET falls back to DEFAULT_OPTIONS. An explicitly falsy
    origin (None, False, "" or 0) disables CORS handling for the request.

    Attributes:
        origin: An origin rule or an OriginResolver called with the raw Origin header.
        methods: Methods allowed on preflight, as a list or comma-separated string.
        allowed_headers: Allowed request headers; unset/None reflects the request.
        exposed_headers: Response headers the browser may read.
        credentials: Emit Access-Control-Allow-Credentials when True.
        max_age: Preflight cache lifetime in seconds.
        preflight_continue: Pass preflight requests on to the wrapped app.
        options_success_status: Status used when answering a preflight directly.
    """

    origin: OriginRule | OriginResolver | None = UNSET
    methods: str | Sequence[str] = UNSET
    allowed_headers: str | Sequence[str] | None = UNSET
    exposed_headers: str | Sequence[str] | None = UNSET
    credentials: bool = UNSET
    max_age: int | str | None = UNSET
    preflight_continue: bool = UNSET
    options_success_status: int = UNSET

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "CorsOptions":
        """Build options from a mapping with snake_case or camelCase keys.

        Unknown keys are ignored. "headers" is only used when the allowed
        headers are otherwise missing, None or "".

        Raises:
            TypeError: If options is not a mapping.
        """
        if not isinstance(options, Mapping):
            raise TypeError(f"CORS options must be a mapping, got {type(options).__name__}")

        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        legacy_headers = UNSET
        for key, value in options.items():
            if key == "headers":
                legacy_headers = value
                continue
            name = _OPTION_ALIASES.get(key, key)
            if name in known:
                values[name] = value

        allowed = values.get("allowed_headers")
        if legacy_headers is not UNSET and (allowed is None or allowed == ""):
            values["allowed_headers"] = legacy_headers
        return cls(**values)

    def merged(self) -> dict[str, Any]:
        """Shallow-merge these options over DEFAULT_OPTIONS into a fresh dict."""
        result = dict(DEFAULT_OPTIONS)
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not UNSET:
                result[f.name] = value
        return result


def split_list(value: str | Sequence[str] | None) -> tuple[str, ...]:
    """Normalize a comma-separated string or a sequence into a tuple of tokens."""
    if value is None or value is UNSET:
        return ()
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    return tuple(str(item) for item in value)


def is_disabled_origin(origin: Any) -> bool:
    """True when an origin value means "no CORS handling for this request".

    None, False, "", numeric zero and NaN. Sequences never disable, so an
    empty list is a rule that matches nothing.
    """
    if origin is None or origin is False or origin is UNSET or origin == "":
        return True
    if isinstance(origin, (int, float)) and not isinstance(origin, bool):
        return origin == 0 or math.isnan(origin)
    return False


@dataclass(frozen=True)
class Policy:
    """Concrete CORS policy for a single request.

    Attributes:
        origin: Resolved origin rule; never a callable.
        methods: Allowed methods, in configured order.
        allowed_headers: Explicit allow-list, or None to reflect the request.
        exposed_headers: Headers exposed on actual responses.
        credentials: Whether credentials are allowed.
        max_age: Preflight max-age (int seconds or numeric-like string), or None.
        preflight_continue: Whether preflight requests continue downstream.
        options_success_status: Preflight response status.
    """

    origin: OriginRule
    methods: tuple[str, ...] = DEFAULT_OPTIONS["methods"]
    allowed_headers: tuple[str, ...] | None = None
    exposed_headers: tuple[str, ...] = ()
    credentials: bool = False
    max_age: int | str | None = None
    preflight_continue: bool = False
    options_success_status: int = 204

    @classmethod
    def from_options(cls, options: Mapping[str, Any], origin: OriginRule) -> "Policy":
        """Build a policy from merged options and an already-resolved origin rule."""
        allowed = options.get("allowed_headers")
        if allowed is None or allowed == "":
            allowed_headers = None
        else:
            allowed_headers = split_list(allowed)

        max_age = options.get("max_age")
        if isinstance(max_age, bool):
            max_age = None

        return cls(
            origin=normalize_origin_rule(origin),
            methods=split_list(options.get("methods")),
            allowed_headers=allowed_headers,
            exposed_headers=split_list(options.get("exposed_headers")),
            credentials=options.get("credentials") is True,
            max_age=max_age,
            preflight_continue=bool(options.get("preflight_continue")),
            options_success_status=int(options["options_success_status"]),
        )


def normalize_origin_rule(rule: Any) -> OriginRule:
    """Freeze list rules into tuples so the policy stays immutable.

    Raises:
        TypeError: If the rule (or a nested rule) is not a valid origin rule.
    """
    if isinstance(rule, (str, bool, re.Pattern)) or rule is None:
        return rule
    if isinstance(rule, (list, tuple)):
        return tuple(normalize_origin_rule(item) for item in rule)
    raise TypeError(f"Unsupported origin rule type: {type(rule).__name__}")


@dataclass(frozen=True)
class RequestView:
    """Read-only projection of the inbound request.

    Attributes:
        method: Uppercased request method.
        origin: Value of the Origin header, if any.
        request_headers: Value of Access-Control-Request-Headers, if any.
    """

    method: str
    origin: str | None = None
    request_headers: str | None = None

    @property
    def is_preflight(self) -> bool:
        return self.method == "OPTIONS"

    @classmethod
    def from_scope(cls, scope: Scope) -> "RequestView":
        headers = Headers(scope=scope)
        return cls(
            method=str(scope.get("method", "")).upper(),
            origin=headers.get("origin"),
            request_headers=headers.get("access-control-request-headers"),
        )
