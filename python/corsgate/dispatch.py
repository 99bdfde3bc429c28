"""Request-path dispatch: preflight vs. actual request.

A request is a preflight when its method is OPTIONS. The resulting
ResponsePlan lists the directives to apply (in order) and what to do next:
- CONTINUE: hand the request to the wrapped app with the headers applied
- RESPOND: answer directly with status_code and an empty body
"""

from dataclasses import dataclass
from enum import Enum

from corsgate.headers import (
    CONTENT_LENGTH,
    HeaderDirective,
    configure_allowed_headers,
    configure_credentials,
    configure_exposed_headers,
    configure_max_age,
    configure_methods,
    configure_origin,
    flatten,
)
from corsgate.policy import Policy, RequestView


class PlanAction(str, Enum):
    CONTINUE = "continue"
    RESPOND = "respond"


@dataclass(frozen=True)
class ResponsePlan:
    """Ordered header directives plus the terminal action.

    Attributes:
        directives: Flattened directives, in application order.
        action: What the middleware does after applying the directives.
        status_code: Response status for RESPOND plans, None otherwise.
    """

    directives: tuple[HeaderDirective, ...]
    action: PlanAction
    status_code: int | None = None


def build_preflight_plan(policy: Policy, request: RequestView) -> ResponsePlan:
    groups = [
        configure_origin(policy, request),
        configure_credentials(policy),
        configure_methods(policy),
        configure_allowed_headers(policy, request),
        configure_max_age(policy),
        configure_exposed_headers(policy),
    ]

    if policy.preflight_continue:
        return ResponsePlan(directives=tuple(flatten(groups)), action=PlanAction.CONTINUE)

    # Some clients wait for a body on an empty 204 unless told otherwise
    groups.append(HeaderDirective(CONTENT_LENGTH, "0"))
    return ResponsePlan(
        directives=tuple(flatten(groups)),
        action=PlanAction.RESPOND,
        status_code=policy.options_success_status,
    )


def build_actual_plan(policy: Policy, request: RequestView) -> ResponsePlan:
    groups = [
        configure_origin(policy, request),
        configure_credentials(policy),
        configure_exposed_headers(policy),
    ]
    return ResponsePlan(directives=tuple(flatten(groups)), action=PlanAction.CONTINUE)


def build_plan(policy: Policy, request: RequestView) -> ResponsePlan:
    """Classify the request and compose its response plan."""
    if request.is_preflight:
        return build_preflight_plan(policy, request)
    return build_actual_plan(policy, request)
