import logging

from collections.abc import Mapping
from datetime import tzinfo
from typing import Any

from .converters import Converter, ConverterSet
from .provider import GoogleSheetsProvider
from .resources import Spreadsheet
from .sheet import GoogleSheet

logger = logging.getLogger(__name__)

class GoogleSpreadSheet():
    """
    A spreadsheet document and the sheets handed out from it.
    Sheets are created on demand by title and kept, asking for the same
    title again gives the same GoogleSheet (and so its remembered titles).

    additional_converters are layered over the defaults for every sheet,
    time_zone is the zone ZonedDateTime fields are put in, typically the
    spreadsheet's own time zone.

    provider defaults to a GoogleSheetsProvider for spreadsheet_id, any
    object with the same methods will do.
    """
    def __init__(self, spreadsheet_id: str,
                 additional_converters: Mapping[Any, Converter]|None = None,
                 time_zone: tzinfo|str|None = None,
                 provider: GoogleSheetsProvider|None = None) -> None:
        self._provider = provider if provider is not None else GoogleSheetsProvider(spreadsheet_id)
        self._id = spreadsheet_id
        self._converters = ConverterSet(additional_converters, time_zone)
        self._sheets: dict[str, GoogleSheet] = {}
        self._spreadsheet: Spreadsheet|None = None

    def __str__(self) -> str:
        if self._spreadsheet:
            return str(self._spreadsheet)
        return f"{self._id}(unloaded)"

    def __repr__(self) -> str:
        return f"{self.__class__}:{str(self)}"

    def __len__(self) -> int:
        """
        In this context length is the number of sheets handed out so far.
        """
        return len(self._sheets)

    def __contains__(self, title: str) -> bool:
        return title in self._sheets

    def __getitem__(self, title: str) -> GoogleSheet:
        return self.get_or_add_sheet(title)

    @property
    def id(self) -> str:
        return self._id

    @property
    def converters(self) -> ConverterSet:
        return self._converters

    @property
    def provider(self) -> GoogleSheetsProvider:
        return self._provider

    def get_or_add_sheet(self, title: str,
                         additional_converters: Mapping[Any, Converter]|None = None) -> GoogleSheet:
        """
        The sheet for title, created if it hasn't been asked for before.
        additional_converters only apply when the sheet is created.
        """
        sheet = self._sheets.get(title, None)
        if sheet is None:
            sheet = GoogleSheet(title, self._provider, self._converters.merged(additional_converters))
            self._sheets[title] = sheet
        return sheet

    async def get(self) -> Spreadsheet:
        """Load the spreadsheet and sheet properties, refreshing known sheets"""
        spreadsheet = await self._provider.load_spreadsheet()
        if spreadsheet:
            self._spreadsheet = spreadsheet
            for s in spreadsheet.sheets:
                sheet = self._sheets.get(s.properties.title, None)
                if sheet is not None:
                    sheet._set_properties(s.properties.title, s.properties.sheetId, s.properties.index)
        return spreadsheet

    async def _get_spreadsheet(self) -> Spreadsheet:
        if self._spreadsheet is None:
            await self.get()
        return self._spreadsheet

    async def get_or_add_sheet_by_index(self, index: int,
                                        additional_converters: Mapping[Any, Converter]|None = None) -> GoogleSheet|None:
        """
        The sheet at tab position index, or None if there is no such tab.
        """
        for sheet in self._sheets.values():
            if sheet.index == index:
                return sheet
        spreadsheet = await self._get_spreadsheet()
        s = spreadsheet.sheet_by_index(index) if spreadsheet else None
        if s is None:
            return None
        sheet = self.get_or_add_sheet(s.properties.title, additional_converters)
        sheet._set_properties(s.properties.title, s.properties.sheetId, s.properties.index)
        return sheet

    async def rename_sheet(self, title: str, new_title: str) -> GoogleSheet:
        """
        Rename the sheet currently called title.
        The GoogleSheet for it (if any) carries on under the new title.
        """
        sheet = self._sheets.get(title, None)
        sheet_id = sheet.sheet_id if sheet is not None else None
        index = sheet.index if sheet is not None else None
        if sheet_id is None:
            spreadsheet = await self._get_spreadsheet()
            s = spreadsheet.sheet_by_title(title) if spreadsheet else None
            if s is None:
                raise KeyError(f"{title} not in sheets[]")
            sheet_id = s.properties.sheetId
            index = s.properties.index
        await self._provider.rename_sheet(sheet_id, new_title)
        logger.debug("renamed sheet %s(%d) to %s", title, sheet_id, new_title)

        if sheet is None:
            sheet = GoogleSheet(new_title, self._provider, self._converters)
        else:
            del self._sheets[title]
        sheet._set_properties(new_title, sheet_id, index)
        self._sheets[new_title] = sheet
        # cached properties are stale now
        self._spreadsheet = None
        return sheet
