"""BDD tests for role-gated navigation."""

from pytest_bdd import given, parsers, scenarios, then, when

from dining.access.gate import Allow, Defer, Redirect, RoleResolution, decide_for_route
from dining.identity.profile import Role

scenarios("features/access_gate.feature")


@given(parsers.cfparse('a signed-in "{role}"'), target_fixture="resolution")
def _(role):
    return RoleResolution(role=Role(role), user_id="user-001")


@given("a visitor who is not signed in", target_fixture="resolution")
def _():
    return RoleResolution()


@given("the role is still loading", target_fixture="resolution")
def _():
    return RoleResolution(loading=True)


@when(parsers.cfparse('they open "{route}"'), target_fixture="decision")
def _(resolution, route):
    return decide_for_route(resolution, route)


@then("they are allowed in")
def _(decision):
    assert isinstance(decision, Allow)


@then(parsers.cfparse('they are redirected to "{target}"'))
def _(decision, target):
    assert decision == Redirect(target)


@then("the decision is deferred")
def _(decision):
    assert isinstance(decision, Defer)
