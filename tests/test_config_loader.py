"""Tests for YAML configuration loading."""

import pytest

from musicdb.config import loader
from musicdb.config.loader import (
    get_database_url,
    get_default_page_size,
    get_list_timeout,
    load_config,
)


def test_missing_default_file_uses_built_in_defaults(tmp_path, monkeypatch):
    monkeypatch.setattr(loader, "DEFAULT_CONFIG_PATH", tmp_path / "absent.yaml")
    config = load_config()
    assert get_database_url(config) == "sqlite:///musicdb.sqlite"
    assert get_list_timeout(config) == 3.0
    assert get_default_page_size(config) == 20


def test_missing_explicit_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_user_values_merge_over_defaults(tmp_path):
    path = tmp_path / "musicdb.config.yaml"
    path.write_text(
        "storage:\n"
        "  database_url: postgresql://music@localhost/musicdb\n"
        "query:\n"
        "  list_timeout_seconds: 5\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert get_database_url(config) == "postgresql://music@localhost/musicdb"
    assert get_list_timeout(config) == 5.0
    assert get_default_page_size(config) == 20


def test_empty_file_is_all_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == loader.BASE_CONFIG


@pytest.mark.parametrize("content", ["- just\n- a list\n", "storage: sqlite\n"])
def test_malformed_config_is_rejected(tmp_path, content):
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_non_positive_timeout_is_rejected():
    with pytest.raises(ValueError):
        get_list_timeout({"query": {"list_timeout_seconds": 0}})
