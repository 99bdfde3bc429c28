"""Per-request CORS policy resolution.

Resolution order:
1. Options: a static CorsOptions/mapping, or a callback invoked with the request
2. Merge over DEFAULT_OPTIONS into a fresh dict
3. Origin: a static rule, or a callback invoked with the raw Origin header

A falsy origin at step 3 (static or resolved) means CORS is disabled for this
request and resolve_policy() returns None. Callbacks may be plain functions or
coroutine functions; each is invoked at most once per request. Exceptions they
raise propagate unchanged.
"""

import inspect
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from starlette.requests import Request

from corsgate.errors import ConfigResolutionError, OriginResolutionError
from corsgate.policy import (
    CorsOptions,
    OriginRule,
    Policy,
    is_disabled_origin,
    normalize_origin_rule,
)

OptionsCallback = Callable[[Request], Any]
OptionsSource = CorsOptions | Mapping[str, Any] | OptionsCallback | None


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def is_options_callback(source: Any) -> bool:
    return callable(source) and not isinstance(source, (CorsOptions, Mapping))


def coerce_options(value: Any) -> CorsOptions:
    """Turn a static options value into CorsOptions.

    None means "use the defaults".

    Raises:
        ConfigResolutionError: If value is neither CorsOptions, a mapping nor None.
    """
    if value is None:
        return CorsOptions()
    if isinstance(value, CorsOptions):
        return value
    if isinstance(value, Mapping):
        return CorsOptions.from_mapping(value)
    raise ConfigResolutionError(
        f"CORS options must be CorsOptions or a mapping, got {type(value).__name__}"
    )


async def resolve_options(source: OptionsSource, request: Request) -> CorsOptions:
    """Resolve the options source for a request."""
    if is_options_callback(source):
        value = await _maybe_await(source(request))
        return coerce_options(value)
    return coerce_options(source)


async def resolve_origin(
    resolver: Callable[[str | None], OriginRule | None | Awaitable[OriginRule | None]],
    request_origin: str | None,
) -> OriginRule | None:
    """Invoke an origin callback with the raw Origin header.

    Returns:
        The resolved rule, or None when the callback produced a falsy value.

    Raises:
        OriginResolutionError: If the callback produced something that is not an origin rule.
    """
    value = await _maybe_await(resolver(request_origin))
    if is_disabled_origin(value):
        return None
    if callable(value):
        raise OriginResolutionError("Origin callback returned another callable")
    try:
        return normalize_origin_rule(value)
    except TypeError as exc:
        raise OriginResolutionError(str(exc)) from exc


async def resolve_policy(
    source: OptionsSource, request: Request, request_origin: str | None
) -> Policy | None:
    """Resolve a concrete Policy for one request.

    Args:
        source: Static options or an options callback.
        request: The inbound request, handed to the options callback.
        request_origin: Raw Origin header, handed to the origin callback.

    Returns:
        The resolved Policy, or None when CORS is disabled for this request.

    Raises:
        ConfigResolutionError: If the options cannot be turned into a policy.
        OriginResolutionError: If the origin callback result is unusable.
    """
    options = (await resolve_options(source, request)).merged()

    origin = options.get("origin")
    if is_disabled_origin(origin):
        return None

    if callable(origin):
        origin = await resolve_origin(origin, request_origin)
        if origin is None:
            return None

    try:
        return Policy.from_options(options, origin)
    except (TypeError, ValueError) as exc:
        raise ConfigResolutionError(f"Invalid CORS options: {exc}") from exc
