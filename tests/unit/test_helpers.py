"""Unit tests for helper utilities"""
from datetime import datetime

import pytest
from gherkinsheet.utils.helpers import (
    collect_feature_files,
    ensure_suffix,
    numbered,
    resolve_output_path,
    sanitize_sheet_name,
    timestamp,
    unique_sheet_name,
)


def test_sheet_names():
    assert sanitize_sheet_name("login flow (v2)") == "login_flow_v2_"
    assert sanitize_sheet_name("") == "Sheet"
    assert len(sanitize_sheet_name("x" * 40)) == 31

    used = set()
    assert unique_sheet_name("login", used) == "login"
    assert unique_sheet_name("login", used) == "login_2"
    assert unique_sheet_name("login", used) == "login_3"


def test_numbered():
    assert numbered(["one", "two"]) == "1. one\n2. two"
    assert numbered([]) == ""


def test_timestamp_and_suffix(tmp_path):
    assert timestamp(datetime(2024, 1, 2, 3, 4, 5)) == "20240102_030405"
    assert ensure_suffix(tmp_path / "out", ".xlsx").name == "out.xlsx"
    assert ensure_suffix(tmp_path / "out.XLSX", ".xlsx").name == "out.XLSX"


def test_collect_feature_files(tmp_path):
    (tmp_path / "b.feature").write_text("", encoding="utf-8")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "a.feature").write_text("", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("", encoding="utf-8")

    assert [p.name for p in collect_feature_files(tmp_path)] == ["b.feature", "a.feature"]
    assert collect_feature_files(tmp_path / "b.feature") == [tmp_path / "b.feature"]
    with pytest.raises(FileNotFoundError):
        collect_feature_files(tmp_path / "missing")


def test_resolve_output_path(tmp_path):
    plain = resolve_output_path(tmp_path / "out", "login", ".feature", use_timestamp=False)
    assert plain == tmp_path / "out" / "login.feature"
    assert plain.parent.is_dir()

    plain.write_text("", encoding="utf-8")
    assert resolve_output_path(tmp_path / "out", "login", ".feature",
                               use_timestamp=False, overwrite=True) == plain

    renamed = resolve_output_path(tmp_path / "out", "login", ".feature", use_timestamp=False)
    assert renamed != plain
    assert renamed.name.startswith("login-") and renamed.suffix == ".feature"

    stamped = resolve_output_path(tmp_path, "login", ".xlsx")
    assert stamped.name.startswith("login-") and stamped.suffix == ".xlsx"

    assert resolve_output_path(tmp_path, "x", ".xlsx", requested=str(tmp_path / "mine")).name == "mine.xlsx"
