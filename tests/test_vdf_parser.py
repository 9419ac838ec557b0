import logging

import pytest

from lsi.vdf_errors import (
    VdfParseError,
    IllegalCharacterError,
    InvalidEscapeError,
    QuotingError,
    SectionError,
    CommentError,
)
from lsi.vdf_node import VdfNode
from lsi.vdf_parser import (
    VdfParser,
    ByteCursor,
    TokenAccumulator,
    ParserFlags,
    ParserState,
    handle_newline,
    handle_block_comment,
    parse,
    load,
)

LIBRARY_FOLDERS = rb'''
// Written by the Steam client
"LibraryFolders"
{
    "TimeNextStatsReport"   "1501234567"
    "ContentStatsID"        "-1234567890"
    "1"     "/mnt/games/SteamLibrary"
    "2"     "/data/steam"
}
'''

APP_MANIFEST = rb'''
"AppState"
{
    "appid"     "440"
    "name"      "Team Fortress 2"
    /* install information */
    "installdir"    "Team Fortress 2"
    "UserConfig"
    {
        "language"  "english"
    }
    "MountedDepots"
    {
        "441"   "7707612711846193079"
        "232251"    "1378022148633378587"
    }
}
'''


def assert_tree_invariants(document):
    root = document.root
    assert root.key is None
    assert root.value is None
    assert root.parent is None
    for node in root.walk():
        assert node.key is not None
        if node.value is not None:
            assert node.first_child is None
        if node.first_child is not None:
            assert node.value is None
        ancestor = node
        while ancestor.parent is not None:
            ancestor = ancestor.parent
        assert ancestor is root


def test_parse_single_pair():
    document = parse(b'"A" "B"')
    node = document.root.child("A")
    assert node.is_leaf
    assert node.value == "B"
    assert node.parent is document.root


def test_parse_section_path_lookup():
    document = parse(b'"S" { "k" "v" }')
    node = document.get("S", "k")
    assert node is not None
    assert node.value == "v"
    section = document.get("S")
    assert section.is_section
    assert section.value is None
    assert node.parent is section


def test_children_are_stored_in_reverse_parse_order():
    document = parse(b'"S" { "a" "1" "b" "2" }')
    keys = [child.key for child in document.get("S").children()]
    assert keys == ["b", "a"]


def test_escaped_newline_is_decoded():
    document = parse(rb'"a" "line1\nline2"')
    value = document.get("a").value
    assert value == "line1\nline2"
    assert len(value) == 11


def test_all_escape_sequences():
    document = parse(rb'"k" "\r\n\t\"\'\\"')
    assert document.get("k").value == "\r\n\t\"'\\"


def test_invalid_escape_sequence():
    with pytest.raises(InvalidEscapeError) as exc:
        parse(rb'"k" "\x"')
    assert exc.value.line == 1
    assert exc.value.column == 6
    assert "\\x" in str(exc.value)


def test_backslash_at_end_of_input_is_invalid():
    with pytest.raises(InvalidEscapeError):
        parse(b'"k" "\\')


def test_missing_closing_brace_fails():
    with pytest.raises(SectionError):
        parse(b'"S" { "k" "v"')


def test_unmatched_closing_brace_fails():
    with pytest.raises(SectionError):
        parse(b'"a" "b" }')


def test_section_without_name_fails():
    with pytest.raises(SectionError):
        parse(b'{ }')
    with pytest.raises(SectionError):
        parse(b'"a" "b" { }')


def test_closing_section_with_dangling_key_fails():
    with pytest.raises(SectionError):
        parse(b'"S" { "k" }')


def test_line_comments_are_transparent(tree_shape):
    commented = parse(b'// comment\n"a" "b"')
    plain = parse(b'"a" "b"')
    assert tree_shape(commented.root) == tree_shape(plain.root)


def test_trailing_line_comment():
    document = parse(b'"a" "b" // trailing "c" "d"\n"e" "f"')
    assert document.root.to_dict() == {"a": "b", "e": "f"}


def test_block_comments_are_transparent():
    document = parse(b'/* multi\nline "x" { */ "a" "b"')
    assert document.root.to_dict() == {"a": "b"}


def test_nested_block_comment_fails():
    with pytest.raises(CommentError):
        parse(b'/* outer /* inner */ */')


def test_block_comment_end_without_start_fails():
    with pytest.raises(CommentError):
        parse(b'"a" "b" */')


def test_unterminated_block_comment_fails():
    with pytest.raises(CommentError):
        parse(b'"a" "b" /* never closed')


def test_illegal_character_reports_position():
    with pytest.raises(IllegalCharacterError) as exc:
        parse(b'"a" "b"\n"c" "d" x')
    assert exc.value.line == 2
    assert exc.value.column == 9
    assert exc.value.reason == "Illegal character in stream: 'x'"


def test_key_without_value_at_end_fails():
    with pytest.raises(QuotingError):
        parse(b'"a"')


def test_unterminated_quote_fails():
    with pytest.raises(QuotingError):
        parse(b'"a" "b')


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        parse(b'"a" "b" ;')


def test_structural_characters_inside_quotes_are_literal():
    document = parse(b'"url" "http://example.com/{a}/*b*/"')
    assert document.get("url").value == "http://example.com/{a}/*b*/"


def test_multiline_value_drops_indentation():
    document = parse(b'"a" "one\n        two"')
    assert document.get("a").value == "onetwo"


def test_unicode_text_input():
    document = parse('"名前" { "値" "テスト" }')
    assert document.get("名前", "値").value == "テスト"


def test_nul_byte_ends_document():
    document = parse(b'"a" "b"\x00 this is never read')
    assert document.root.to_dict() == {"a": "b"}


def test_empty_document():
    document = parse(b'')
    assert document.root.first_child is None
    document = parse(b'  \n\t// nothing here\n')
    assert document.root.first_child is None


def test_empty_key_and_value():
    document = parse(b'"" ""')
    node = document.root.first_child
    assert node.key == ""
    assert node.value == ""
    assert node.is_leaf


def test_realistic_documents_keep_invariants():
    for data in (LIBRARY_FOLDERS, APP_MANIFEST):
        assert_tree_invariants(parse(data))

    manifest = parse(APP_MANIFEST)
    assert manifest.get("AppState", "name").value == "Team Fortress 2"
    assert manifest.get("AppState", "UserConfig", "language").value == "english"
    assert [n.key for n in manifest.get("AppState", "MountedDepots").children()] == ["232251", "441"]


def test_parse_is_repeatable(tree_shape):
    first = parse(APP_MANIFEST)
    second = parse(APP_MANIFEST)
    assert tree_shape(first.root) == tree_shape(second.root)
    assert first.root is not second.root
    first.close()
    assert second.get("AppState", "appid").value == "440"


def test_deeply_nested_sections():
    depth = 2000
    data = b'"s" { ' * depth + b'"k" "v"' + b' }' * depth
    document = parse(data)
    node = document.get(*(["s"] * depth + ["k"]))
    assert node.value == "v"
    document.close()


def test_deeply_nested_tree_converts_to_dict(tree_shape):
    depth = 2000
    document = parse(b'"s" { ' * depth + b'"k" "v"' + b' }' * depth)
    view = document.root.to_dict()
    for _ in range(depth):
        view = view["s"]
    assert view == {"k": "v"}
    assert tree_shape(document.root)[2][0][0] == "s"


def test_parse_error_is_logged(caplog):
    with caplog.at_level(logging.ERROR, logger="lsi.vdf_parser"):
        with pytest.raises(VdfParseError):
            VdfParser.parse(b'"a" "b" }', path="broken.vdf")
    assert "broken.vdf" in caplog.text
    assert "Closed section without opening one" in caplog.text


def test_load_from_disk(tmp_path):
    path = tmp_path / "appmanifest_440.acf"
    path.write_bytes(APP_MANIFEST)
    document = load(str(path))
    assert document.path == str(path)
    assert document.get("AppState", "installdir").value == "Team Fortress 2"


def test_load_missing_file(tmp_path):
    with pytest.raises(OSError):
        load(str(tmp_path / "missing.vdf"))


def test_byte_cursor_clamps_at_end():
    cursor = ByteCursor(b"ab")
    assert cursor.current() == ord("a")
    assert cursor.peek_next() == ord("b")
    assert cursor.advance() == ord("b")
    assert cursor.peek_next() == 0
    assert cursor.advance() == 0
    cursor.skip_one()
    assert cursor.index == 2
    assert cursor.current() == 0


def test_token_accumulator_finish_returns_copy():
    token = TokenAccumulator()
    token.begin()
    for c in b"key":
        token.push(c)
    text = token.finish()
    token.begin()
    token.push(ord("x"))
    assert text == "key"
    assert token.finish() == "x"


def test_newline_arms_whitespace_chewing_only_inside_quotes():
    state = ParserState(b"\n", VdfNode())
    state.set(ParserFlags.LINE_COMMENT)
    assert handle_newline(state, ord("\n")) is False
    assert not state.has(ParserFlags.LINE_COMMENT)
    assert not state.has(ParserFlags.CHEW_WHITESPACE)

    state.set(ParserFlags.QUOTED)
    assert handle_newline(state, ord("\n")) is False
    assert state.has(ParserFlags.CHEW_WHITESPACE)


def test_handler_failure_marks_state_failed():
    state = ParserState(b"*/", VdfNode())
    with pytest.raises(CommentError):
        handle_block_comment(state, ord("*"))
    assert state.failed
