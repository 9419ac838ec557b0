import enum
import logging
from typing import Optional, Union, Callable, Tuple, Type

from lsi.vdf_errors import (
    VdfParseError,
    IllegalCharacterError,
    InvalidEscapeError,
    QuotingError,
    SectionError,
    CommentError,
)
from lsi.vdf_node import VdfNode, VdfDocument

logger = logging.getLogger(__name__)

NUL = 0
QUOTE = ord('"')
BACKSLASH = ord('\\')
SECTION_OPEN = ord('{')
SECTION_CLOSE = ord('}')
SLASH = ord('/')
STAR = ord('*')
NEWLINE = ord('\n')

# isspace() in the C locale
WHITESPACE = frozenset(b" \t\n\v\f\r")

ESCAPES = {
    ord('r'): ord('\r'),
    ord('n'): ord('\n'),
    ord('t'): ord('\t'),
    QUOTE: QUOTE,
    ord("'"): ord("'"),
    BACKSLASH: BACKSLASH,
}


def _describe(c: int) -> str:
    if 0x20 <= c < 0x7f:
        return chr(c)
    return f"\\x{c:02x}"


class ByteCursor:
    """
    Read-only view over the whole input buffer.
    Reading past the end yields NUL instead of raising.
    """

    def __init__(self, data: bytes):
        self.data = data
        self.index = 0

    def current(self) -> int:
        if self.index >= len(self.data):
            return NUL
        return self.data[self.index]

    def advance(self) -> int:
        self.skip_one()
        return self.current()

    def peek_next(self) -> int:
        if self.index + 1 >= len(self.data):
            return NUL
        return self.data[self.index + 1]

    def skip_one(self):
        self.index = min(self.index + 1, len(self.data))


class TokenAccumulator:
    """Collects the decoded bytes of the key or value being scanned."""

    def __init__(self):
        self._buffer = bytearray()

    def begin(self):
        self._buffer.clear()

    def push(self, c: int):
        self._buffer.append(c)

    def finish(self) -> str:
        # surrogateescape keeps arbitrary bytes round-trippable, so string
        # equality on keys is byte equality
        return bytes(self._buffer).decode("utf-8", "surrogateescape")

    def __len__(self):
        return len(self._buffer)


class ParserFlags(enum.Flag):
    NONE = 0
    QUOTED = enum.auto()
    LINE_COMMENT = enum.auto()
    BLOCK_COMMENT = enum.auto()
    CHEW_WHITESPACE = enum.auto()


class ParserState:
    """Everything a single parse call mutates. Never outlives the call."""

    def __init__(self, data: bytes, root: VdfNode):
        self.cursor = ByteCursor(data)
        self.token = TokenAccumulator()
        self.flags = ParserFlags.NONE
        self.pending_key: Optional[str] = None
        self.quote_count = 0
        self.root = root
        self.current_scope = root
        self.failed = False

    def has(self, flag: ParserFlags) -> bool:
        return bool(self.flags & flag)

    def set(self, flag: ParserFlags):
        self.flags |= flag

    def clear(self, flag: ParserFlags):
        self.flags &= ~flag

    def fail(self, error: Type[VdfParseError], reason: str):
        self.failed = True
        raise error.at(reason, self.cursor.data, self.cursor.index)


def attach_node(state: ParserState, key: str, value: Optional[str]) -> VdfNode:
    """Creates a node as the new head of the current scope's children."""
    node = VdfNode(key, value, parent=state.current_scope)
    state.current_scope.prepend_child(node)
    return node


def handle_newline(state: ParserState, c: int) -> bool:
    if c != NEWLINE:
        return False
    state.clear(ParserFlags.LINE_COMMENT)
    if state.has(ParserFlags.QUOTED):
        state.set(ParserFlags.CHEW_WHITESPACE)
    else:
        state.clear(ParserFlags.CHEW_WHITESPACE)
    # State update only, later handlers still see the newline
    return False


def handle_commented(state: ParserState, c: int) -> bool:
    if state.has(ParserFlags.LINE_COMMENT):
        return True
    if state.has(ParserFlags.BLOCK_COMMENT):
        handle_block_comment(state, c)
        return True
    return False


def handle_quote(state: ParserState, c: int) -> bool:
    """
    Opening quotes start a new token. Closing quotes complete either the
    key of a statement (first pair) or its value (second pair), in which
    case a leaf node is stored.
    """
    if c != QUOTE:
        return False

    if not state.has(ParserFlags.QUOTED):
        if state.quote_count > 2:
            state.fail(QuotingError, "Cannot start a third quoted token in one statement")
        state.set(ParserFlags.QUOTED)
        state.clear(ParserFlags.CHEW_WHITESPACE)
        state.token.begin()
        return True

    state.quote_count += 1
    state.clear(ParserFlags.QUOTED)
    text = state.token.finish()

    if state.quote_count == 1:
        if state.pending_key is not None:
            state.fail(QuotingError, "Key should not already be set")
        state.pending_key = text
        return True

    if state.pending_key is None:
        state.fail(QuotingError, "Missing key for value")

    if state.quote_count != 2:
        state.fail(QuotingError, "Invalid number of quotes in statement")

    attach_node(state, state.pending_key, text)
    state.pending_key = None
    state.quote_count = 0
    state.clear(ParserFlags.CHEW_WHITESPACE)
    return True


def handle_text(state: ParserState, c: int) -> bool:
    """Pushes quoted text to the token, decoding escape sequences."""
    if not state.has(ParserFlags.QUOTED):
        return False

    if state.has(ParserFlags.CHEW_WHITESPACE) and c in WHITESPACE:
        return True
    state.clear(ParserFlags.CHEW_WHITESPACE)

    if c != BACKSLASH:
        state.token.push(c)
        return True

    following = state.cursor.peek_next()
    decoded = ESCAPES.get(following)
    if decoded is None:
        state.fail(InvalidEscapeError, f"Invalid escape sequence '\\{_describe(following)}'")
    state.token.push(decoded)
    state.cursor.skip_one()
    return True


def _open_section(state: ParserState):
    state.token.begin()

    if state.quote_count == 2:
        state.fail(SectionError, "Section cannot have a value")
    if state.quote_count != 1:
        state.fail(SectionError, "Section is missing a name")
    if state.pending_key is None:
        state.fail(SectionError, "Section name was never captured")

    state.current_scope = attach_node(state, state.pending_key, None)
    state.pending_key = None
    state.quote_count = 0


def _close_section(state: ParserState):
    if state.quote_count != 0:
        state.fail(SectionError, "Unterminated statement before end of section")
    if state.current_scope is state.root:
        state.fail(SectionError, "Closed section without opening one")
    state.current_scope = state.current_scope.parent


def handle_section(state: ParserState, c: int) -> bool:
    if c == SECTION_OPEN:
        _open_section(state)
        return True
    if c == SECTION_CLOSE:
        _close_section(state)
        return True
    return False


def handle_single_comment(state: ParserState, c: int) -> bool:
    if state.has(ParserFlags.BLOCK_COMMENT):
        return False
    if not (c == SLASH and state.cursor.peek_next() == SLASH):
        return False
    state.cursor.skip_one()
    state.set(ParserFlags.LINE_COMMENT)
    return True


def handle_block_comment(state: ParserState, c: int) -> bool:
    following = state.cursor.peek_next()
    if c == SLASH and following == STAR:
        if state.has(ParserFlags.BLOCK_COMMENT):
            state.fail(CommentError, "Starting nested block comment")
        state.cursor.skip_one()
        state.set(ParserFlags.BLOCK_COMMENT)
        return True
    if c == STAR and following == SLASH:
        if not state.has(ParserFlags.BLOCK_COMMENT):
            state.fail(CommentError, "Ended comment without starting one")
        state.cursor.skip_one()
        state.clear(ParserFlags.BLOCK_COMMENT)
        return True
    return False


Handler = Callable[[ParserState, int], bool]

# Tried in order for every byte, the first one to return True wins
HANDLERS: Tuple[Handler, ...] = (
    handle_newline,
    handle_commented,
    handle_quote,
    handle_text,
    handle_section,
    handle_single_comment,
    handle_block_comment,
)


def _check_complete(state: ParserState):
    if state.has(ParserFlags.BLOCK_COMMENT):
        state.fail(CommentError, "Started block comment without ending one")
    if state.has(ParserFlags.QUOTED):
        state.fail(QuotingError, "Unterminated quoted text")
    if state.pending_key is not None:
        state.fail(QuotingError, f"Key '{state.pending_key}' has no value or section")
    if state.current_scope is not state.root:
        state.fail(SectionError, f"Section '{state.current_scope.key}' is never closed")


def _run(state: ParserState):
    c = state.cursor.current()
    while c != NUL:
        for handler in HANDLERS:
            if handler(state, c):
                break
        else:
            if c not in WHITESPACE:
                state.fail(IllegalCharacterError, f"Illegal character in stream: '{_describe(c)}'")
        c = state.cursor.advance()
    _check_complete(state)


class VdfParser:
    """
    Parses Steam text VDF (KeyValues) documents into a VdfNode tree.
    """

    @staticmethod
    def load(file_path: str) -> VdfDocument:
        """Loads and parses a text VDF file from disk."""
        with open(file_path, 'rb') as f:
            data = f.read()
        logger.debug(f"Parsing {file_path} ({len(data)} bytes)")
        return VdfParser.parse(data, path=str(file_path))

    @staticmethod
    def parse(data: Union[bytes, bytearray, str], path: Optional[str] = None) -> VdfDocument:
        """
        Parses a complete VDF buffer.

        Raises a VdfParseError subclass describing the first problem found.
        The input is processed byte by byte; a NUL byte ends the document.
        """
        if isinstance(data, str):
            data = data.encode("utf-8", "surrogateescape")

        document = VdfDocument(path=path)
        state = ParserState(bytes(data), document.root)
        try:
            _run(state)
        except VdfParseError as e:
            logger.error(f"{path or '<buffer>'}: {e}")
            document.close()
            raise
        return document


parse = VdfParser.parse
load = VdfParser.load
