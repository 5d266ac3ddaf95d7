"""
Tests for the centralized access policy.
"""
import pytest

from auth import Identity
from errors import AuthError, ForbiddenError
from policy import enforce, evaluate

ADMIN = Identity(id="a1", email="admin@alumni.edu", role="admin")
USER = Identity(id="u1", email="rohan@gmail.com", role="user")


class TestEvaluate:
    def test_public_allows_anonymous(self):
        assert evaluate("campaign.list", None).allowed

    def test_authenticated_rule(self):
        assert evaluate("notification.list", USER).allowed
        denied = evaluate("notification.list", None)
        assert not denied.allowed
        assert denied.status_code == 401

    def test_admin_rule(self):
        assert evaluate("campaign.create", ADMIN).allowed
        denied = evaluate("campaign.create", USER)
        assert (denied.allowed, denied.status_code) == (False, 403)
        assert evaluate("campaign.create", None).status_code == 401

    def test_owner_rule(self):
        assert evaluate("alumni.update", USER, {"email": "ROHAN@gmail.com"}).allowed
        assert not evaluate("alumni.update", USER, {"email": "someone@gmail.com"}).allowed
        assert not evaluate("alumni.update", USER).allowed
        assert evaluate("alumni.update", ADMIN, {"email": "someone@gmail.com"}).allowed
        assert evaluate("donation.list_by_alumni", USER, {"alumniId": "u1"}).allowed

    def test_unknown_operation_denied(self):
        denied = evaluate("campaign.launch_rocket", ADMIN)
        assert (denied.allowed, denied.status_code) == (False, 403)


class TestEnforce:
    def test_raises_auth_error_for_anonymous(self):
        with pytest.raises(AuthError):
            enforce("feedback.approve", None)

    def test_raises_forbidden_for_non_admin(self):
        with pytest.raises(ForbiddenError):
            enforce("feedback.approve", USER)

    def test_passes_for_admin(self):
        enforce("feedback.approve", ADMIN)
