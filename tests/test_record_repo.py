"""Tests for Stream record queries."""

from datetime import datetime

import pytest

from streamlog.database.record_repo import query_records
from streamlog.database.schema import StreamRecord


def _ids(records):
    return [record["ID"] for record in records]


def test_newest_first_by_default(seeded_session):
    assert _ids(query_records(seeded_session, {})) == [3, 2, 1]


def test_record_shape(seeded_session):
    record = query_records(seeded_session, {"record": "2"})[0]

    assert list(record) == [
        "ID",
        "site_id",
        "blog_id",
        "object_id",
        "author",
        "author_role",
        "summary",
        "created",
        "connector",
        "context",
        "action",
        "ip",
        "author_meta",
        "stream_meta",
    ]
    assert record["created"] == "2015-01-02 12:00:00"
    assert record["author"] == 2
    assert record["author_meta"] == {"user_login": "editor1", "user_email": "editor1@example.com"}
    assert record["stream_meta"] == {"user_agent": ["curl/8.0"], "tag": ["a", "b"]}


def test_record_without_meta_has_empty_author_meta(seeded_session):
    record = query_records(seeded_session, {"record": 1})[0]

    assert record["author_meta"] == {}
    assert record["stream_meta"] == {}


@pytest.mark.parametrize(
    "args,expected",
    [
        ({"author": "1"}, [3, 1]),
        ({"author__in": "2"}, [2]),
        ({"author__not_in": ["1"]}, [2]),
        ({"author_role": "editor"}, [2]),
        ({"author_role__not_in": "editor"}, [3, 1]),
        ({"connector__in": "posts,users"}, [3, 2, 1]),
        ({"connector": "users"}, [2]),
        ({"context__in": ["page", "sessions"]}, [3, 2]),
        ({"action": "created"}, [3]),
        ({"action__not_in": "login,created"}, [1]),
        ({"ip": "10.0.0.2"}, [2]),
        ({"ip__in": "10.0.0.1, 10.0.0.3"}, [3, 1]),
        ({"record__in": "1,3"}, [3, 1]),
        ({"record__not_in": "1"}, [3, 2]),
    ],
)
def test_column_filters(seeded_session, args, expected):
    assert _ids(query_records(seeded_session, args)) == expected


@pytest.mark.parametrize(
    "args,expected",
    [
        ({"date": "2015-01-02"}, [2]),
        ({"date_from": "2015-01-02"}, [3, 2]),
        ({"date_to": "2015-01-02"}, [2, 1]),
        ({"date_after": "2015-01-01T12:00:00"}, [3, 2]),
        ({"date_before": "2015-01-02T00:00:00"}, [1]),
        ({"date_after": "2015-01-02T11:00:00Z", "date_before": "2015-01-03"}, [2]),
    ],
)
def test_date_filters(seeded_session, args, expected):
    assert _ids(query_records(seeded_session, args)) == expected


def test_search_defaults_to_summary(seeded_session):
    assert _ids(query_records(seeded_session, {"search": "Hello"})) == [3]


def test_search_on_other_field(seeded_session):
    assert _ids(query_records(seeded_session, {"search": "10.0.0.2", "search_field": "ip"})) == [2]


def test_search_treats_wildcards_literally(seeded_session):
    seeded_session.add(
        StreamRecord(
            ID=4,
            created=datetime(2015, 1, 4, 8, 0, 0),
            summary="Discount set to 50% off",
            connector="posts",
            context="post",
            action="updated",
        )
    )
    seeded_session.flush()

    assert _ids(query_records(seeded_session, {"search": "50%"})) == [4]
    assert _ids(query_records(seeded_session, {"search": "%"})) == [4]
    assert query_records(seeded_session, {"search": "Post_updated"}) == []


def test_day_filters_include_the_last_second_of_the_day(seeded_session):
    seeded_session.add(
        StreamRecord(
            ID=4,
            created=datetime(2015, 1, 2, 23, 59, 59, 500000),
            summary="Late edit",
            connector="posts",
            context="post",
            action="updated",
        )
    )
    seeded_session.flush()

    assert _ids(query_records(seeded_session, {"date": "2015-01-02"})) == [4, 2]
    assert _ids(query_records(seeded_session, {"date_to": "2015-01-02"})) == [4, 2, 1]
    assert _ids(query_records(seeded_session, {"date_from": "2015-01-03"})) == [3]


def test_unsupported_search_field(seeded_session):
    with pytest.raises(ValueError, match="search_field"):
        query_records(seeded_session, {"search": "x", "search_field": "password"})


def test_non_integer_author_is_rejected(seeded_session):
    with pytest.raises(ValueError, match="author"):
        query_records(seeded_session, {"author": "admin"})


def test_paging(seeded_session):
    assert _ids(query_records(seeded_session, {"records_per_page": "1", "paged": "2"})) == [2]
    assert _ids(query_records(seeded_session, {"records_per_page": 2})) == [3, 2]
    assert _ids(query_records(seeded_session, {"records_per_page": -1})) == [3, 2, 1]


def test_order_and_orderby(seeded_session):
    assert _ids(query_records(seeded_session, {"order": "asc"})) == [1, 2, 3]
    assert _ids(query_records(seeded_session, {"orderby": "ip", "order": "ASC"})) == [1, 2, 3]
    assert _ids(query_records(seeded_session, {"orderby": "connector", "order": "asc"})) == [3, 1, 2]


def test_unknown_orderby_falls_back_to_date(seeded_session):
    assert _ids(query_records(seeded_session, {"orderby": "nonsense"})) == [3, 2, 1]


def test_fields_limit_top_level_keys(seeded_session):
    records = query_records(seeded_session, {"fields": "created"})

    assert [list(record) for record in records] == [["created"]] * 3


def test_dotted_fields_keep_their_root(seeded_session):
    record = query_records(seeded_session, {"fields": "author_meta.user_login,ip", "record": 2})[0]

    assert record == {"ip": "10.0.0.2", "author_meta": {"user_login": "editor1", "user_email": "editor1@example.com"}}


def test_unknown_arguments_are_ignored(seeded_session):
    assert _ids(query_records(seeded_session, {"format": "csv", "whatever": "1"})) == [3, 2, 1]


def test_empty_table_returns_empty_list(session):
    assert query_records(session, {"records_per_page": 1, "fields": "created"}) == []
