from typing import Optional


class VdfParseError(ValueError):
    """
    Base class for every error raised while parsing a VDF document.
    Carries the byte offset and the 1-based line/column of the offending byte.
    """

    def __init__(self, reason: str, offset: int = 0, line: int = 1, column: int = 1):
        self.reason = reason
        self.offset = offset
        self.line = line
        self.column = column
        super().__init__(f"vdf: {reason} (line {line}, column {column})")

    @classmethod
    def at(cls, reason: str, data: bytes, offset: int) -> "VdfParseError":
        """Builds the error, computing line and column from the buffer offset."""
        offset = min(offset, len(data))
        line = data.count(b"\n", 0, offset) + 1
        column = offset - (data.rfind(b"\n", 0, offset) + 1) + 1
        return cls(reason, offset=offset, line=line, column=column)


class IllegalCharacterError(VdfParseError):
    pass


class InvalidEscapeError(VdfParseError):
    pass


class QuotingError(VdfParseError):
    pass


class SectionError(VdfParseError):
    pass


class CommentError(VdfParseError):
    pass


class VdfDocumentClosedError(RuntimeError):
    def __init__(self, path: Optional[str] = None):
        what = f"VDF document {path}" if path else "VDF document"
        super().__init__(f"{what} has already been closed")
