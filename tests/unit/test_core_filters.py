from cognito_keycloak.core.filters import FilterClause, matches, parse_filter, to_query_params


def test_exact_email_filter():
    clauses = parse_filter('email = "alice@example.com"')
    assert clauses == [FilterClause("email", "=", "alice@example.com")]
    assert to_query_params(clauses) == {"email": "alice@example.com", "exact": True}


def test_prefix_username_filter_uses_search():
    clauses = parse_filter('username ^= "ali"')
    assert clauses[0].is_exact is False
    assert to_query_params(clauses) == {"search": "ali"}


def test_mixed_operators_search_by_prefix():
    params = to_query_params(parse_filter('username = "alice" and email ^= "alice@"'))
    assert params == {"search": "alice@"}


def test_prefix_match_requires_leading_value():
    clauses = parse_filter('username ^= "ge"')
    assert matches(clauses, {"username": "george"})
    assert matches(clauses, {"username": "GEORGE"})
    assert not matches(clauses, {"username": "page0"})
    assert not matches(clauses, {})


def test_all_clauses_must_match():
    clauses = parse_filter('username = "alice" and email ^= "alice@"')
    assert matches(clauses, {"username": "alice", "email": "alice@example.com"})
    assert not matches(clauses, {"username": "alice", "email": "bob@example.com"})
    assert not matches(clauses, {"username": "alicia", "email": "alice@example.com"})


def test_no_clauses_match_everything():
    assert matches([], {"username": "anyone"})


def test_first_clause_per_field_wins():
    clauses = parse_filter('email = "first@example.com" email = "second@example.com"')
    assert [clause.value for clause in clauses] == ["first@example.com"]


def test_unsupported_attributes_are_ignored():
    assert parse_filter('phone_number = "+15550100"') == []
    assert parse_filter('given_name = "Alice"') == []
    assert to_query_params([]) == {}


def test_empty_filter():
    assert parse_filter(None) == []
    assert parse_filter("") == []
