"""Pure ASGI CORS middleware.

Per request:
1. Resolve the policy (options callback and origin callback, if any)
2. No policy (falsy origin): pass through with no CORS headers
3. Preflight (OPTIONS): apply headers, then answer directly or continue
4. Actual request: continue, injecting headers on http.response.start;
   CORS headers the application set itself are kept, Vary is merged

Not a BaseHTTPMiddleware: streaming responses are never buffered. Resolution
errors are logged and re-raised unchanged; no headers are applied for them.
"""

from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from corsgate.dispatch import PlanAction, ResponsePlan, build_plan
from corsgate.headers import ALLOW_ORIGIN, apply_headers
from corsgate.logging import clear_request_context, get_logger, set_request_context
from corsgate.policy import RequestView
from corsgate.resolver import OptionsSource, coerce_options, is_options_callback, resolve_policy

logger = get_logger(__name__)


class CORSMiddleware:
    """Pure ASGI middleware negotiating Access-Control-* response headers.

    Args:
        app: The ASGI application.
        options: Static CorsOptions or mapping, an options callback taking the
            request, or None for the defaults.
    """

    def __init__(self, app: ASGIApp, options: OptionsSource = None):
        self.app = app
        if is_options_callback(options):
            self.options: OptionsSource = options
        else:
            self.options = coerce_options(options)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        view = RequestView.from_scope(scope)
        set_request_context(method=view.method, path=scope.get("path"), origin=view.origin)
        try:
            await self._handle(view, scope, receive, send)
        finally:
            clear_request_context()

    async def _handle(self, view: RequestView, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            policy = await resolve_policy(self.options, Request(scope), view.origin)
        except Exception as e:
            logger.warning("cors_resolution_failed", error=str(e), error_type=type(e).__name__)
            raise

        if policy is None:
            logger.debug("cors_disabled_for_request")
            await self.app(scope, receive, send)
            return

        plan = build_plan(policy, view)
        if view.origin is not None and _origin_rejected(plan):
            logger.debug("cors_origin_rejected")

        if plan.action is PlanAction.RESPOND:
            response = Response(status_code=plan.status_code)
            apply_headers(plan.directives, response.headers)
            logger.debug("cors_preflight_handled", status_code=plan.status_code)
            await response(scope, receive, send)
            return

        if view.is_preflight:
            logger.debug("cors_preflight_continued")

        await self.app(scope, receive, _decorating_send(send, plan))


def _origin_rejected(plan: ResponsePlan) -> bool:
    return any(d.key == ALLOW_ORIGIN and not d.value for d in plan.directives)


def _decorating_send(send: Send, plan: ResponsePlan) -> Send:
    """Wrap send to add the plan's headers to the response start message."""

    async def send_with_cors(message: Message) -> None:
        if message["type"] == "http.response.start":
            message.setdefault("headers", [])
            apply_headers(plan.directives, MutableHeaders(scope=message), overwrite=False)
        await send(message)

    return send_with_cors
