"""Tests for access gate decisions."""

import pytest

from dining.access.gate import (
    ROUTE_REQUIREMENTS,
    Allow,
    Defer,
    Redirect,
    RoleResolution,
    decide,
    decide_for_route,
)
from dining.identity.profile import Role

ANONYMOUS = RoleResolution()
LOADING = RoleResolution(loading=True)
CUSTOMER = RoleResolution(role=Role.CUSTOMER, user_id="u-customer")
STAFF = RoleResolution(role=Role.STAFF, user_id="u-staff")
ADMIN = RoleResolution(role=Role.ADMIN, user_id="u-admin")


class TestDecide:
    @pytest.mark.parametrize("required", [Role.CUSTOMER, Role.STAFF, Role.ADMIN])
    def test_anonymous_goes_to_sign_in(self, required):
        assert decide(ANONYMOUS, required) == Redirect("/auth")

    def test_staff_on_admin_route_goes_to_staff_board(self):
        assert decide(STAFF, Role.ADMIN) == Redirect("/staff")

    @pytest.mark.parametrize("required", [Role.STAFF, Role.ADMIN])
    def test_customer_on_privileged_route_goes_home(self, required):
        assert decide(CUSTOMER, required) == Redirect("/")

    @pytest.mark.parametrize(
        "resolution,required",
        [(CUSTOMER, Role.CUSTOMER), (STAFF, Role.STAFF), (ADMIN, Role.ADMIN)],
    )
    def test_exact_match_allowed(self, resolution, required):
        assert decide(resolution, required) == Allow()

    @pytest.mark.parametrize("resolution", [ANONYMOUS, CUSTOMER, STAFF, ADMIN])
    def test_no_requirement_allowed(self, resolution):
        assert decide(resolution, None) == Allow()

    @pytest.mark.parametrize("resolution,required", [(ADMIN, Role.STAFF), (ADMIN, Role.CUSTOMER), (STAFF, Role.CUSTOMER)])
    def test_other_mismatches_go_home(self, resolution, required):
        assert decide(resolution, required) == Redirect("/")

    @pytest.mark.parametrize("required", [None, Role.CUSTOMER, Role.ADMIN])
    def test_pending_resolution_defers(self, required):
        assert decide(LOADING, required) == Defer()

    def test_role_set_requirement(self):
        roles = {Role.STAFF, Role.ADMIN}
        assert decide(STAFF, roles) == Allow()
        assert decide(ADMIN, roles) == Allow()
        assert decide(CUSTOMER, roles) == Redirect("/")
        assert decide(ANONYMOUS, roles) == Redirect("/auth")

    def test_string_requirement(self):
        assert decide(ADMIN, "admin") == Allow()


class TestRoutes:
    def test_route_table(self):
        assert ROUTE_REQUIREMENTS["/order-history"] == Role.CUSTOMER
        assert ROUTE_REQUIREMENTS["/staff"] == Role.STAFF
        for route in ("/admin", "/menu-management", "/customer-management", "/system-settings", "/orders-management"):
            assert ROUTE_REQUIREMENTS[route] == Role.ADMIN

    def test_public_route(self):
        assert decide_for_route(ANONYMOUS, "/menu") == Allow()

    def test_staff_on_admin_route(self):
        assert decide_for_route(STAFF, "/system-settings") == Redirect("/staff")

    def test_admin_on_staff_route(self):
        assert decide_for_route(ADMIN, "/staff") == Redirect("/")
