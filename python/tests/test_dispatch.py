"""Tests for preflight / actual request plans.

Covers:
- Directive order on both paths
- RESPOND vs CONTINUE terminal actions
- Content-Length: 0 on answered preflights
- Identical inputs produce identical plans
"""

from corsgate.dispatch import PlanAction, build_plan
from corsgate.policy import Policy, RequestView

FULL_POLICY = Policy(
    origin=("http://a.com",),
    methods=("GET", "POST"),
    allowed_headers=("X-Foo",),
    exposed_headers=("X-Total",),
    credentials=True,
    max_age=600,
)


def _keys(plan) -> list[str]:
    return [d.key for d in plan.directives]


class TestPreflightPlan:
    def test_directive_order(self):
        plan = build_plan(FULL_POLICY, RequestView(method="OPTIONS", origin="http://a.com"))
        assert _keys(plan) == [
            "Access-Control-Allow-Origin",
            "Vary",
            "Access-Control-Allow-Credentials",
            "Access-Control-Allow-Methods",
            "Access-Control-Allow-Headers",
            "Access-Control-Max-Age",
            "Access-Control-Expose-Headers",
            "Content-Length",
        ]

    def test_responds_with_success_status(self):
        policy = Policy(origin="*", options_success_status=200)
        plan = build_plan(policy, RequestView(method="OPTIONS"))
        assert plan.action is PlanAction.RESPOND
        assert plan.status_code == 200
        assert plan.directives[-1].key == "Content-Length"
        assert plan.directives[-1].value == "0"

    def test_preflight_continue(self):
        policy = Policy(origin="*", preflight_continue=True)
        plan = build_plan(policy, RequestView(method="OPTIONS"))
        assert plan.action is PlanAction.CONTINUE
        assert plan.status_code is None
        assert "Content-Length" not in _keys(plan)
        assert "Access-Control-Allow-Methods" in _keys(plan)


class TestActualPlan:
    def test_directive_order_and_continue(self):
        plan = build_plan(FULL_POLICY, RequestView(method="POST", origin="http://a.com"))
        assert plan.action is PlanAction.CONTINUE
        assert _keys(plan) == [
            "Access-Control-Allow-Origin",
            "Vary",
            "Access-Control-Allow-Credentials",
            "Access-Control-Expose-Headers",
        ]

    def test_preflight_only_headers_absent(self):
        plan = build_plan(FULL_POLICY, RequestView(method="GET", origin="http://a.com"))
        keys = _keys(plan)
        assert "Access-Control-Allow-Methods" not in keys
        assert "Access-Control-Allow-Headers" not in keys
        assert "Access-Control-Max-Age" not in keys


def test_identical_inputs_give_identical_plans():
    view = RequestView(method="OPTIONS", origin="http://a.com", request_headers="X-Foo")
    assert build_plan(FULL_POLICY, view) == build_plan(FULL_POLICY, view)
