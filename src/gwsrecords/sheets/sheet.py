import logging
import re

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, TypeVar

from .a1 import A1Range
from .converters import ConverterSet
from .mapper import (Loader, RecordMapper, Saver, SheetData, ValueSet,
                     load_value_sets, titles_from_row, to_rows)
from .provider import CellProvider, Rows

logger = logging.getLogger(__name__)

T = TypeVar("T")

def unquote_sheet(sheet: str) -> str:
    """
    Sheet title as written in a range without its quoting, so
    'My Sheet' gives My Sheet and 'Bob''s' gives Bob's.
    """
    if len(sheet) >= 2 and sheet[0] == "'" and sheet[-1] == "'":
        return sheet[1:-1].replace("''", "'")
    return sheet

def quote_sheet(sheet: str) -> str:
    """Sheet title quoted for use in a range when it is more than a plain word"""
    if re.fullmatch(r"[A-Za-z0-9_]+", sheet):
        return sheet
    return "'" + sheet.replace("'", "''") + "'"

class GoogleSheet():
    """
    Class representation of a sheet.  In Google Sheets parlance a 'sheet' is
    an individual sheet within a parent 'spreadsheet', the different tabs on
    the spreadsheet itself.  This is where the data actually resides so this
    is where records are loaded and saved.

    Ranges are given relative to the sheet, 'A1:D' rather than 'Sheet1!A1:D',
    and get the sheet title added before going to the provider.  A range that
    names some other sheet is refused.

    The titles of the last load are remembered so a plain list of records
    can be saved back under the same columns.
    """
    def __init__(self, name: str, provider: CellProvider,
                 converters: ConverterSet|None = None,
                 sheet_id: int|None = None,
                 index: int|None = None) -> None:
        if not name:
            raise ValueError("A sheet needs a title")
        self._name = name
        self._provider = provider
        self._converters = converters if converters is not None else ConverterSet()
        self._sheet_id = sheet_id
        self._index = index
        self._titles: list[str] = []

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"{self.__class__}:{str(self)}"

    @property
    def name(self) -> str:
        return self._name

    @property
    def sheet_id(self) -> int|None:
        """
        Unique ID of the sheet within the spreadsheet, None until the
        spreadsheet properties have been looked up.
        """
        return self._sheet_id

    @property
    def index(self) -> int|None:
        """Position of the tab, can shift whereas the sheet ID doesn't"""
        return self._index

    @property
    def titles(self) -> list[str]:
        """Column titles from the last load_titles(), load() or save()"""
        return self._titles

    @property
    def converters(self) -> ConverterSet:
        return self._converters

    def _set_properties(self, name: str, sheet_id: int|None, index: int|None) -> None:
        self._name = name
        self._sheet_id = sheet_id
        self._index = index

    def full_range(self, range: str|A1Range) -> A1Range:
        """
        The range with this sheet's title on it.
        Raises A1FormatError for bad notation and ValueError for a range
        on another sheet.
        """
        a1 = range if isinstance(range, A1Range) else A1Range.parse(range)
        if a1.sheet is not None and unquote_sheet(a1.sheet) != self._name:
            raise ValueError(f"Cannot address {a1} from sheet {self._name}")
        return a1.with_sheet(quote_sheet(self._name))

    def mapper(self, record_type: type[T],
               title_aliases: Mapping[str, str]|None = None,
               additional_loaders: Iterable[Loader]|None = None,
               additional_savers: Iterable[Saver]|None = None) -> RecordMapper[T]:
        """A RecordMapper using this sheet's converters"""
        return RecordMapper(record_type, self._converters, title_aliases,
                            additional_loaders, additional_savers)

    async def _fetch(self, range: str|A1Range, formula: bool) -> Rows:
        a1 = self.full_range(range)
        rows = await self._provider.fetch_block(str(a1), formula)
        logger.debug("fetched %d rows from %s", len(rows), a1)
        if rows:
            self._titles = titles_from_row(rows[0])
        return rows

    async def load_titles(self, range: str|A1Range) -> list[str]:
        """
        Read only the first row of range and return it as the titles.
        """
        a1 = self.full_range(range).first_row()
        rows = await self._provider.fetch_block(str(a1), False)
        self._titles = titles_from_row(rows[0]) if rows else []
        return self._titles

    async def load(self, record_type: type[T], range: str|A1Range,
                   formula: bool = False,
                   title_aliases: Mapping[str, str]|None = None,
                   additional_loaders: Iterable[Loader]|None = None) -> SheetData[T]:
        """
        Load range as records.  The first row of range must be the titles.
        formula returns formulas rather than their results.
        """
        rows = await self._fetch(range, formula)
        return self.mapper(record_type, title_aliases, additional_loaders).load(rows)

    async def load_value_sets(self, range: str|A1Range,
                              formula: bool = False) -> SheetData[ValueSet]:
        """Load range as raw title -> value dicts"""
        rows = await self._fetch(range, formula)
        return load_value_sets(rows)

    def _layout(self, data: SheetData[T]|Sequence[T],
                title_aliases: Mapping[str, str]|None,
                additional_savers: Iterable[Saver]|None) -> tuple[list[str], list[ValueSet]]:
        """
        Titles and value sets for a save.  Titles come from the data, then
        from the last load, and failing both from the record's own fields.
        """
        if isinstance(data, SheetData):
            titles, instances = list(data.titles), list(data.instances)
        else:
            titles, instances = [], list(data)
        if not titles:
            titles = list(self._titles)
        if not instances:
            return titles, []
        mapper = self.mapper(type(instances[0]), title_aliases, additional_savers=additional_savers)
        if not titles:
            titles = mapper.titles
        return titles, mapper.value_sets(instances)

    async def save(self, range: str|A1Range, data: SheetData[T]|Sequence[T],
                   title_aliases: Mapping[str, str]|None = None,
                   additional_savers: Iterable[Saver]|None = None) -> None:
        """
        Write the titles then one row per record to range.
        Every row is as wide as the titles, values a record doesn't
        have are written as empty cells.
        """
        titles, value_sets = self._layout(data, title_aliases, additional_savers)
        rows = to_rows(titles, value_sets)
        self._titles = titles
        await self._provider.write_block(str(self.full_range(range)), rows)

    async def add(self, range: str|A1Range, data: SheetData[T]|Sequence[T],
                  title_aliases: Mapping[str, str]|None = None,
                  additional_savers: Iterable[Saver]|None = None) -> None:
        """
        Append records after the existing table in range, no title row.
        """
        titles, value_sets = self._layout(data, title_aliases, additional_savers)
        if not value_sets:
            return
        rows = to_rows(titles, value_sets, header=False)
        await self._provider.append_block(str(self.full_range(range)), rows)

    async def save_raw(self, range: str|A1Range, rows: Sequence[Sequence[Any]]) -> None:
        """Write rows of cell values as is"""
        await self._provider.write_block(str(self.full_range(range)), rows)

    async def clear(self, range: str|A1Range) -> None:
        await self._provider.clear_block(str(self.full_range(range)))
