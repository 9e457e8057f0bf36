import json
import os
import stat

import pytest

from quickoption.errors import OptionExportError, OptionImportError
from quickoption.parser import option_file


def test_decode_bytes_accepts_utf8_with_bom():
    text, encoding = option_file.decode_bytes("\ufeff[]".encode("utf-8"))
    assert text == "[]"
    assert encoding == "utf-8"


def test_decode_bytes_falls_back_to_chardet(monkeypatch):
    raw = '[{"Information": {"Text": "café"}}]'.encode("cp1252")
    monkeypatch.setattr(option_file.chardet, "detect", lambda data: {"encoding": "Windows-1252"})

    text, encoding = option_file.decode_bytes(raw)

    assert "café" in text
    assert encoding == "windows-1252"


def test_decode_bytes_without_guess_fails(monkeypatch):
    monkeypatch.setattr(option_file.chardet, "detect", lambda data: {"encoding": None})
    with pytest.raises(OptionImportError):
        option_file.decode_bytes(b"\xff\xfe\xfa")


def test_parse_option_array_reports_bad_item_index():
    with pytest.raises(OptionImportError) as excinfo:
        option_file.parse_option_array('[{}, {}, "x"]')
    assert "item 2" in str(excinfo.value)


def test_parse_option_array_chains_json_errors():
    with pytest.raises(OptionImportError) as excinfo:
        option_file.parse_option_array("[{]")
    assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)


def test_serialize_rejects_nan():
    with pytest.raises(OptionExportError):
        option_file.serialize_option_array([{"Numeric": float("nan")}])


def test_write_option_file_replaces_contents(tmp_path):
    target = tmp_path / "out.json"
    target.write_text("old", encoding="utf-8")

    option_file.write_option_file(target, [{"A": 1}])

    assert json.loads(target.read_text(encoding="utf-8")) == [{"A": 1}]
    assert [p.name for p in tmp_path.iterdir()] == ["out.json"]


@pytest.mark.parametrize("text", ['[{"Numeric": 1e400}]', '[{"Numeric": -1e400}]'])
def test_parse_option_array_rejects_floats_that_overflow(text):
    with pytest.raises(OptionImportError) as excinfo:
        option_file.parse_option_array(text)
    assert "out of range" in str(excinfo.value)


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_write_option_file_keeps_existing_permissions(tmp_path):
    target = tmp_path / "out.json"
    target.write_text("old", encoding="utf-8")
    os.chmod(target, 0o644)

    option_file.write_option_file(target, [{"A": 1}])

    assert stat.S_IMODE(target.stat().st_mode) == 0o644


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_write_option_file_new_file_follows_umask(tmp_path):
    target = tmp_path / "new.json"
    umask = os.umask(0o022)
    try:
        option_file.write_option_file(target, [])
    finally:
        os.umask(umask)

    assert stat.S_IMODE(target.stat().st_mode) == 0o644
