"""CLI behavior tests for `streamlog query`."""

import json

import pytest

from streamlog import cli
from streamlog.config.loader import DEFAULT_FIELDS


class RecordingStore:
    def __init__(self, records):
        self.records = records
        self.calls = []

    def query(self, args):
        self.calls.append(dict(args))
        return self.records


def test_csv_output_has_one_line_per_record(stream_db, capsys):
    cli.main(["--db", stream_db, "query", "--format=csv", "--fields=created,ip"])

    lines = capsys.readouterr().out.strip().split("\n")
    assert lines == [
        "2015-01-03 09:00:00,10.0.0.3",
        "2015-01-02 12:00:00,10.0.0.2",
        "2015-01-01 10:00:00,10.0.0.1",
    ]


def test_count_output(stream_db, capsys):
    cli.main(["--db", stream_db, "query", "--format", "count"])

    assert capsys.readouterr().out == "3\n"


def test_json_output_with_filters(stream_db, capsys):
    cli.main(["--db", stream_db, "query", "--format=json", "--author=2", "--fields=created,author_meta.user_login"])

    decoded = json.loads(capsys.readouterr().out)
    assert len(decoded) == 1
    assert decoded[0] == {
        "created": "2015-01-02 12:00:00",
        "author_meta.user_login": "editor1",
        "author_meta.user_email": "editor1@example.com",
    }


def test_default_table_output(stream_db, capsys):
    cli.main(["--db", stream_db, "query", "--records_per_page", "2"])

    lines = capsys.readouterr().out.rstrip("\n").split("\n")
    assert lines[0].split() == DEFAULT_FIELDS
    assert len(lines) == 4
    assert "editor1" in lines[3]


def test_unknown_format_prints_nothing_and_succeeds(stream_db, capsys):
    cli.main(["--db", stream_db, "query", "--format=xml"])

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""


def test_empty_format_prints_nothing(stream_db, capsys):
    cli.main(["--db", stream_db, "query", "--format="])

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""


def test_empty_format_with_strict_format_fails(stream_db, capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--db", stream_db, "query", "--format=", "--strict-format"])

    assert exc_info.value.code == 1
    assert "Unknown format ''" in capsys.readouterr().err


def test_strict_format_fails(stream_db, capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--db", stream_db, "query", "--format=xml", "--strict-format"])

    assert exc_info.value.code == 1
    assert "Unknown format 'xml'" in capsys.readouterr().err


def test_disconnected_store_aborts_before_main_query(monkeypatch, capsys):
    store = RecordingStore([])
    monkeypatch.setattr(cli, "SqlRecordStore", lambda _url: store)

    with pytest.raises(SystemExit) as exc_info:
        cli.main(["query", "--format=json"])

    captured = capsys.readouterr()
    assert exc_info.value.code == 1
    assert captured.out == ""
    assert "Error: SITE IS DISCONNECTED" in captured.err
    assert store.calls == [{"records_per_page": 1, "fields": "created"}]


def test_empty_database_is_disconnected(empty_db, capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--db", empty_db, "query"])

    assert exc_info.value.code == 1
    assert capsys.readouterr().out == ""


def test_missing_database_is_disconnected_and_left_absent(tmp_path, capsys):
    path = tmp_path / "nope.db"

    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--db", str(path), "query"])

    assert exc_info.value.code == 1
    assert "SITE IS DISCONNECTED" in capsys.readouterr().err
    assert not path.exists()


def test_default_store_is_not_created_in_working_directory(tmp_path, capsys):
    with pytest.raises(SystemExit):
        cli.main(["query"])

    assert not (tmp_path / "stream.db").exists()


def test_filters_are_forwarded_verbatim(monkeypatch, capsys):
    store = RecordingStore([{"created": "2015-01-01 00:00:00"}])
    monkeypatch.setattr(cli, "SqlRecordStore", lambda _url: store)

    cli.main([
        "query",
        "--author=1",
        "--action",
        "login",
        "--records_per_page=50",
        "--fields=created",
        "--format=count",
        "--author_role__not_in=administrator",
    ])

    assert store.calls[1] == {
        "fields": "created",
        "author": "1",
        "action": "login",
        "records_per_page": "50",
        "author_role__not_in": "administrator",
    }
    assert capsys.readouterr().out == "1\n"


def test_config_file_sets_store_and_fields(tmp_path, stream_db, capsys):
    config_path = tmp_path / "custom.yaml"
    config_path.write_text(
        f"store:\n  url: {stream_db}\nquery:\n  default_fields: [ID, action]\n",
        encoding="utf-8",
    )

    cli.main(["--config", str(config_path), "query", "--records_per_page=1"])

    lines = capsys.readouterr().out.strip().split("\n")
    assert lines[0].split() == ["ID", "action"]
    assert lines[2].split() == ["3", "created"]


def test_missing_config_file(capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--config", "nope.yaml", "query"])

    assert exc_info.value.code == 1
    assert "Config file not found" in capsys.readouterr().err


def test_parse_filter_args():
    assert cli._parse_filter_args(["--a=1", "--b", "2", "--flag", "--c=x=y"]) == {
        "a": "1",
        "b": "2",
        "flag": "true",
        "c": "x=y",
    }
    with pytest.raises(ValueError):
        cli._parse_filter_args(["stray"])


def test_stray_argument_is_a_usage_error(capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["query", "stray"])

    assert exc_info.value.code == 2


def test_no_command_prints_help(capsys):
    cli.main([])

    assert "usage: streamlog" in capsys.readouterr().out
