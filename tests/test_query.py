from __future__ import annotations

from core.query import Query, parse_query


def test_parse_query_with_email() -> None:
    assert parse_query("Age18[123;bob;0001;bob@example.com]") == Query(
        "Age18", "123", "bob", "0001", "bob@example.com"
    )


def test_parse_query_without_email() -> None:
    query = parse_query("Age18[123;bob;0001]")
    assert query is not None
    assert query.email is None
    assert query.discord_discriminator == "0001"


def test_parse_query_rejects_malformed_input() -> None:
    assert parse_query("garbage input") is None
    assert parse_query("Age18[abc;bob;0001]") is None
    assert parse_query("Age18[123;bob;01]") is None
    assert parse_query("Age18[123;bob;0001] trailing") is None
