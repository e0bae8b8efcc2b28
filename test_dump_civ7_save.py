import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent / "tools"))
import dump_civ7_save  # noqa: E402
from civ7save.data import SaveFile  # noqa: E402


def _describe(path):
    raw = path.read_bytes()
    return dump_civ7_save.describe_save(SaveFile.from_bytes(raw, path=path), raw)


def test_describe_save(save_path):
    info = _describe(save_path)
    assert info["path"] == str(save_path)
    assert info["chunk_size"] == 0x10000
    assert info["chunks"][0] == 0x10000
    assert sum(info["chunks"]) + 4 * len(info["chunks"]) + info["header_size"] + info["footer_size"] == info[
        "file_size"
    ]
    assert [p["slot"] for p in info["players"]] == [1, 2, 5]
    assert info["players"][0]["gold"]["value"] == 200
    assert info["players"][2]["influence"]["value"] == 30
    json.dumps(info)


def test_summary_lists_players(save_path):
    text = dump_civ7_save.summarise_save(_describe(save_path))
    assert "AUGUSTUS" in text
    assert "TECUMSEH" in text
    assert "gold 1500 @0x" in text


def test_hexdump_uses_the_save_already_parsed(monkeypatch, capsys, save_path):
    def no_reload(_path):
        raise AssertionError("save parsed twice")

    monkeypatch.setattr(SaveFile, "load", no_reload)
    monkeypatch.setattr(sys, "argv", ["dump_civ7_save.py", str(save_path), "--hexdump", "8"])
    dump_civ7_save.main()
    out = capsys.readouterr().out
    assert "AUGUSTUS gold treasury:" in out
    assert "TECUMSEH accumulated influence:" in out


def test_unreadable_save_exits_with_error(monkeypatch, capsys, tmp_path):
    bogus = tmp_path / "bogus.Civ7Save"
    bogus.write_bytes(b"NOPE" + bytes(16))
    monkeypatch.setattr(sys, "argv", ["dump_civ7_save.py", str(bogus), "--hexdump", "8"])
    with pytest.raises(SystemExit) as excinfo:
        dump_civ7_save.main()
    assert excinfo.value.code == 2
    assert "[ERR]" in capsys.readouterr().err


def test_hexdump_slice():
    dump = dump_civ7_save.hexdump_slice(b"ABCD\x00\x01", 0, 6)
    assert dump.startswith("0x00000000  41 42 43 44 00 01")
    assert dump.endswith("|ABCD..|")
