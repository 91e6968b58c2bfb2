import pytest
from pydantic import ValidationError

from hurley.dataset import Dataset, DatasetEntry
from hurley.errors import DatasetError


def test_parse_json_array():
    dataset = Dataset.from_json('[{"method": "GET"}, {"method": "POST"}]')
    assert len(dataset) == 2
    assert dataset.entries[0].method == "GET"
    assert dataset.entries[1].method == "POST"


def test_parse_single_object():
    dataset = Dataset.from_json('{"method": "POST", "path": "/api"}')
    assert len(dataset) == 1
    assert dataset.entries[0].path == "/api"


def test_parse_ndjson_skips_blank_lines():
    dataset = Dataset.from_json('{"method": "GET"}\n\n{"method": "POST"}\n')
    assert [e.method for e in dataset.entries] == ["GET", "POST"]


def test_bad_ndjson_line():
    with pytest.raises(DatasetError, match="Failed to parse line"):
        Dataset.from_json('{"method": "GET"}\nnot json')


def test_default_method():
    dataset = Dataset.from_json("[{}]")
    assert dataset.entries[0].method == "GET"


def test_empty_content_is_an_error():
    with pytest.raises(DatasetError, match="Empty dataset"):
        Dataset.from_json("")


def test_empty_array_yields_empty_dataset():
    assert Dataset.from_json("[]").is_empty()


def test_simple_dataset():
    dataset = Dataset.simple(5)
    assert len(dataset) == 5
    assert all(e == DatasetEntry() for e in dataset.entries)


def test_body_serialization():
    entry = DatasetEntry(method="POST", body={"key": "value"})
    assert entry.body_string() == '{"key":"value"}'
    assert DatasetEntry(body="raw text").body_string() == "raw text"
    assert DatasetEntry().body_string() is None


def test_entries_are_immutable():
    entry = DatasetEntry()
    with pytest.raises(ValidationError):
        entry.method = "POST"


def test_from_file(tmp_path):
    path = tmp_path / "data.json"
    path.write_text('[{"path": "/a", "headers": {"X-Id": "1"}}]', encoding="utf-8")
    dataset = Dataset.from_file(path)
    assert dataset.entries[0].headers == {"X-Id": "1"}


def test_from_missing_file(tmp_path):
    with pytest.raises(DatasetError):
        Dataset.from_file(tmp_path / "missing.json")
