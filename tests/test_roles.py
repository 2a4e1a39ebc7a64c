"""Tests for the role enum and authorization policy."""

import pytest

from judgeflow.errors import ForbiddenError
from judgeflow.roles import (
    QUORUM_SIGNER_ROLES,
    REQUIRED_CERTIFICATION_ROLES,
    Action,
    Role,
    is_authorized_for,
    require,
)


class TestRoleParse:

    def test_parses_case_insensitively(self):
        assert Role.parse("board") is Role.BOARD
        assert Role.parse(" Tally_Master ") is Role.TALLY_MASTER

    def test_passes_enum_through(self):
        assert Role.parse(Role.AUDITOR) is Role.AUDITOR

    def test_unknown_role_is_forbidden(self):
        with pytest.raises(ForbiddenError) as exc:
            Role.parse("JANITOR")
        assert exc.value.details["role"] == "JANITOR"


class TestPolicy:

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.BOARD])
    def test_privileged_roles_view_winners(self, role):
        assert is_authorized_for(Action.VIEW_WINNERS, role)

    @pytest.mark.parametrize("role", [Role.JUDGE, Role.AUDITOR, Role.TALLY_MASTER, Role.CONTESTANT])
    def test_other_roles_do_not_view_winners(self, role):
        assert not is_authorized_for(Action.VIEW_WINNERS, role)

    def test_only_board_and_admin_create_quorum_requests(self):
        allowed = {r for r in Role if is_authorized_for(Action.CREATE_QUORUM_REQUEST, r)}
        assert allowed == {Role.ADMIN, Role.BOARD}

    def test_signers_are_the_three_slot_roles(self):
        allowed = {r for r in Role if is_authorized_for(Action.SIGN_QUORUM_REQUEST, r)}
        assert allowed == set(QUORUM_SIGNER_ROLES)

    def test_judge_cannot_certify_category(self):
        assert not is_authorized_for(Action.CERTIFY_CATEGORY, Role.JUDGE)

    def test_unknown_role_string_is_never_authorized(self):
        assert not is_authorized_for(Action.SIGN_WINNERS, "NOBODY")

    def test_required_roles_order(self):
        assert REQUIRED_CERTIFICATION_ROLES == (
            Role.JUDGE, Role.TALLY_MASTER, Role.AUDITOR, Role.BOARD,
        )


class TestRequire:

    def test_returns_parsed_role(self):
        assert require(Action.CERTIFY_TOTALS, "tally_master") is Role.TALLY_MASTER

    def test_raises_with_custom_message(self):
        with pytest.raises(ForbiddenError, match="Only the Tally Master"):
            require(Action.CERTIFY_TOTALS, Role.AUDITOR, "Only the Tally Master or Admin can certify totals")

    def test_error_is_structured(self):
        with pytest.raises(ForbiddenError) as exc:
            require(Action.CREATE_QUORUM_REQUEST, Role.JUDGE)
        payload = exc.value.to_dict()
        assert payload["kind"] == "FORBIDDEN"
        assert payload["details"] == {"role": "JUDGE", "action": "CREATE_QUORUM_REQUEST"}
