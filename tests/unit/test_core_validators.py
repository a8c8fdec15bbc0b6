import pytest

from cognito_keycloak.core import validators
from cognito_keycloak.core.errors import InternalError, NotFoundError, ValidationError
from cognito_keycloak.core.lookups import check_user_pool, find_group_or_fail, find_user_or_fail
from cognito_keycloak.core.keycloak import GroupService, UserService


class TestRequireIdentifier:
    def test_returns_value(self):
        assert validators.require_username("alice") == "alice"

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing_value_uses_cognito_wording(self, value):
        with pytest.raises(ValidationError, match="Value at 'username' failed to satisfy constraint: Member must not be null"):
            validators.require_username(value)

    def test_non_string_rejected(self):
        with pytest.raises(ValidationError, match="Member must be a string"):
            validators.require_group_name(12)

    def test_error_code(self):
        with pytest.raises(ValidationError) as excinfo:
            validators.require_user_pool_id(None)
        assert excinfo.value.code == "InvalidParameterException"
        assert excinfo.value.status == 400


class TestPagination:
    def test_default_limit(self):
        assert validators.page_limit(None) == 60

    @pytest.mark.parametrize("limit", [0, -1, 61, "10", True, 1.5])
    def test_invalid_limit(self, limit):
        with pytest.raises(ValidationError):
            validators.page_limit(limit)

    def test_token_round_trip(self):
        assert validators.parse_pagination_token(None) == 0
        assert validators.parse_pagination_token("") == 0
        assert validators.parse_pagination_token("120") == 120

    @pytest.mark.parametrize("token", ["abc", "-5", "1.5", "١٢", 10])
    def test_invalid_token(self, token):
        with pytest.raises(ValidationError, match="Invalid pagination token."):
            validators.parse_pagination_token(token)

    def test_next_token_only_on_full_page(self):
        assert validators.next_token(0, 10, 10) == "10"
        assert validators.next_token(20, 10, 10) == "30"
        assert validators.next_token(0, 10, 9) is None
        assert validators.next_token(0, 10, 0) is None


class TestLookups:
    def test_find_user_or_fail(self, keycloak):
        alice = keycloak.add_user("alice")
        keycloak.add_user("alice2")
        assert find_user_or_fail(UserService(keycloak), "local_pool", "Alice")["id"] == alice["id"]

    def test_missing_user(self, keycloak):
        with pytest.raises(NotFoundError) as excinfo:
            find_user_or_fail(UserService(keycloak), "local_pool", "ghost")
        assert excinfo.value.code == "UserNotFoundException"
        assert excinfo.value.message == "User does not exist."

    def test_ambiguous_user_is_internal_error(self, monkeypatch, keycloak):
        users = UserService(keycloak)
        monkeypatch.setattr(users, "find_by_exact_username", lambda realm, name: [{"id": "1"}, {"id": "2"}])
        with pytest.raises(InternalError, match="ambiguous"):
            find_user_or_fail(users, "local_pool", "alice")

    def test_group_lookup_requires_exact_name(self, keycloak):
        keycloak.add_group("admins-extended")
        with pytest.raises(NotFoundError, match="Group not found."):
            find_group_or_fail(GroupService(keycloak), "local_pool", "admins")

        admins = keycloak.add_group("admins")
        assert find_group_or_fail(GroupService(keycloak), "local_pool", "admins")["id"] == admins["id"]


class TestCheckUserPool:
    def test_same_or_absent_pool_passes(self):
        check_user_pool("local_pool", "local_pool")
        check_user_pool("local_pool", None)
        check_user_pool("local_pool", "")

    def test_other_pool_is_not_found(self):
        with pytest.raises(NotFoundError, match="User pool other does not exist."):
            check_user_pool("local_pool", "other")
