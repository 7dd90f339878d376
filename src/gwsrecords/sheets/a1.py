import re

from dataclasses import dataclass, field, replace
from typing import Self
from collections.abc import Iterable

from . import GoogleSheetsMaxRowIndex

class A1FormatError(ValueError):
    """Raised when a range string cannot be parsed."""
    pass

@dataclass(frozen=True)
class Bound():
    """
    One end of an A1 range, an optional column label and an optional row.
    The column is kept as an opaque label exactly as written, no arithmetic
    is done on it.  Rows are 1-based in practice but anything 0-65535 parses.

        A1  -> column 'A', row 1
        D   -> column 'D', no row, the whole column
        5   -> no column, row 5, the whole row
    """
    column: str|None = field(default=None)
    row: int|None = field(default=None)

    # the row is everything from the first digit onwards
    _ROWREGEXSTR = r"[0-9]+"
    _COLREGEXSTR = r"[A-Za-z]*"

    def __str__(self) -> str:
        col = self.column if self.column else ""
        row = "" if self.row is None else str(self.row)
        return f"{col}{row}"

    def __bool__(self) -> bool:
        return bool(self.column) or self.row is not None

    @classmethod
    def parse(cls, s: str) -> Self:
        """
        Parse a bound token such as 'AB12', 'AB' or '12'.
        Raises A1FormatError if the column holds anything but letters,
        the row is not a 16 bit unsigned number, or the token is empty.
        """
        token = str(s)
        split = len(token)
        for i, c in enumerate(token):
            if '0' <= c <= '9':
                split = i
                break
        col = token[:split]
        row_str = token[split:]

        row = None
        if row_str:
            if not re.fullmatch(cls._ROWREGEXSTR, row_str):
                raise A1FormatError(f"invalid row in bound: {token}")
            digits = row_str.lstrip("0") or "0"
            if len(digits) > len(str(GoogleSheetsMaxRowIndex)):
                raise A1FormatError(f"row out of range in bound: {token}")
            row = int(digits)
            if row > GoogleSheetsMaxRowIndex:
                raise A1FormatError(f"row out of range in bound: {token}")
        if not re.fullmatch(cls._COLREGEXSTR, col):
            raise A1FormatError(f"invalid column in bound: {token}")

        bound = cls(col if col else None, row)
        if not bound:
            raise A1FormatError("empty bound")
        return bound

@dataclass(frozen=True)
class A1Range():
    """
    Immutable representation of a Google Sheets A1 range.
    See https://developers.google.com/sheets/api/guides/concepts#cell
    A general range has the form:

    <sheet>!<start col><start row>:<end col><end row>

        sheet:      Title of a sheet within the spreadsheet.  Optional, when
                    missing the '!' is not present either.
        start:      Starting bound, mandatory.  Either the column or the row
                    may be left out but not both.
        end:        Ending bound, optional along with its ':'.  No end means
                    the range is just the start bound.

    Some examples:
        Sheet1!A1:D5    rows 1-5 of columns A-D on Sheet1
        A1:D            columns A-D from row 1 to the end
        B:B             all of column B
        2:4             all of rows 2 through 4
        C7              the single cell C7

    Values are never modified once built.  Use with_sheet() and first_row()
    to derive new ranges.  Parsing and formatting are inverses:
    str(A1Range.parse(s)) == s for any valid s without leading zeros on a row.
    """
    start: Bound
    end: Bound|None = field(default=None)
    sheet: str|None = field(default=None)

    def __str__(self) -> str:
        return self.format()

    def format(self) -> str:
        sheet = f"{self.sheet}!" if self.sheet is not None else ""
        end = f":{self.end}" if self.end is not None else ""
        return f"{sheet}{self.start}{end}"

    @classmethod
    def parse(cls, a1: str, strict: bool = False) -> Self:
        """
        Parse an A1 range string.
        The sheet is split off at the last '!' and the bounds at the last ':'.
        A bad start bound always raises A1FormatError.  A bad end bound is
        silently dropped unless strict is set, in which case it raises too.
        """
        s = str(a1)
        sheet = None
        idx = s.rfind('!')
        if idx > -1:
            sheet = s[:idx]
            s = s[idx + 1:]

        end = None
        idx = s.rfind(':')
        if idx > -1:
            try:
                start = Bound.parse(s[:idx])
            except A1FormatError as e:
                raise A1FormatError(f"invalid A1 notation: {a1}") from e
            try:
                end = Bound.parse(s[idx + 1:])
            except A1FormatError as e:
                if strict:
                    raise A1FormatError(f"invalid A1 notation: {a1}") from e
        else:
            try:
                start = Bound.parse(s)
            except A1FormatError as e:
                raise A1FormatError(f"invalid A1 notation: {a1}") from e

        return cls(start, end, sheet)

    @classmethod
    def valid_a1(cls, a1: str) -> bool:
        """Is the supplied string strictly valid range notation?"""
        try:
            cls.parse(a1, strict=True)
        except A1FormatError:
            return False
        return True

    @staticmethod
    def to_str_list(vals: "str|A1Range|Iterable[str|A1Range]") -> list[str]:
        """
        Convenience function to take any input and return a list of
        strings, even if the input was a single instance.  The intent
        is an easy way to convert ranges to strings before making
        a Google Sheets call.
        """
        if isinstance(vals, str):
            return [vals]
        elif isinstance(vals, Iterable):
            return [str(v) for v in vals]
        return [str(vals)]

    def with_sheet(self, sheet: str|None) -> Self:
        """Same bounds on a different sheet"""
        return replace(self, sheet=sheet)

    def first_row(self) -> Self:
        """
        Collapse the range to its first row, keeping the column span.
        A1:D becomes A1:D1.  Ranges without an end are returned unchanged.
        """
        if self.end is None:
            return self
        return replace(self, end=Bound(self.end.column, self.start.row))
