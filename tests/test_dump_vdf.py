import pytest

import dump_vdf
from lsi.vdf_parser import parse


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    # Keep the root logger untouched between tests
    monkeypatch.setattr(dump_vdf, "setup_logging", lambda: None)


def test_format_tree_indents_sections():
    document = parse(b'"AppState" { "appid" "440" "UserConfig" { "language" "english" } }')
    assert dump_vdf.format_tree(document.root) == [
        "[AppState]",
        "    [UserConfig]",
        "        'language' = 'english'",
        "    'appid' = '440'",
    ]


def test_dump_file(tmp_path, capsys):
    path = tmp_path / "loginusers.vdf"
    path.write_bytes(b'"users" { "7656" { "AccountName" "gaben" } }')
    assert dump_vdf.main([str(path)]) == 0
    out = capsys.readouterr().out
    assert "[users]" in out
    assert "'AccountName' = 'gaben'" in out


def test_dump_reports_parse_errors(tmp_path, capsys):
    path = tmp_path / "broken.vdf"
    path.write_bytes(b'"users" { "7656" ')
    assert dump_vdf.main([str(path)]) == 1
    assert "Error: vdf:" in capsys.readouterr().err


def test_dump_missing_file(tmp_path, capsys):
    assert dump_vdf.main([str(tmp_path / "missing.vdf")]) == 1


def test_list_libraries(tmp_path, capsys):
    steam_root = tmp_path / "Steam"
    (steam_root / "steamapps").mkdir(parents=True)
    (steam_root / "steamapps" / "libraryfolders.vdf").write_text('"LibraryFolders" { "1" "/mnt/games" }')
    assert dump_vdf.main(["--libraries", "--steam-path", str(steam_root)]) == 0
    out = capsys.readouterr().out
    assert f"Steam Root: {steam_root}" in out
    assert " - /mnt/games" in out
