"""
The cell block contract the sheet facade talks to, and the Google Sheets
implementation of it.  Ranges are passed as full A1 strings including the
sheet, rows are lists of cell values, row 0 first.
"""
import anyio
import logging

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from . import ops
from .requests import GoogleSheetsUpdateRequest, UpdateSheetPropertiesRequest
from .resources import Spreadsheet

logger = logging.getLogger(__name__)

Rows = list[list[Any]]

@runtime_checkable
class CellProvider(Protocol):
    """
    Anything that can read and write rectangular blocks of cells.
    Failures are raised as whatever the implementation raises.
    """
    async def fetch_block(self, range: str, formula: bool = False) -> Rows:
        """Values in range, formulas instead of their results if formula is set"""
        ...

    async def write_block(self, range: str, rows: Sequence[Sequence[Any]]) -> None:
        """Overwrite range starting at its top left"""
        ...

    async def append_block(self, range: str, rows: Sequence[Sequence[Any]]) -> None:
        """Add rows after the table found in range"""
        ...

    async def clear_block(self, range: str) -> None:
        """Blank the values in range, the grid itself stays"""
        ...

class GoogleSheetsProvider():
    """
    CellProvider over the sheets v4 values API for one spreadsheet.
    The client is blocking so every call runs in a worker thread,
    the event loop is free while a request is out.

    Values are read UNFORMATTED with dates as serial numbers, which is
    what the converters expect, and written USER_ENTERED so text like
    '2024-01-31' or '=SUM(A:A)' ends up as a date or formula.
    """
    def __init__(self, spreadsheet_id: str) -> None:
        if not spreadsheet_id:
            raise ValueError("A spreadsheet ID is required")
        self._spreadsheet_id = spreadsheet_id

    def __str__(self) -> str:
        return self._spreadsheet_id

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{str(self)}"

    @property
    def spreadsheet_id(self) -> str:
        return self._spreadsheet_id

    async def fetch_block(self, range: str, formula: bool = False) -> Rows:
        render = "FORMULA" if formula else "UNFORMATTED"
        vr = await anyio.to_thread.run_sync(ops.getValues, self._spreadsheet_id, range, render)
        return [list(r) for r in vr.values]

    async def write_block(self, range: str, rows: Sequence[Sequence[Any]]) -> None:
        response = await anyio.to_thread.run_sync(ops.updateValues, self._spreadsheet_id, range, rows)
        logger.debug("updated %d cells in %s", response.updatedCells, response.updatedRange)

    async def append_block(self, range: str, rows: Sequence[Sequence[Any]]) -> None:
        response = await anyio.to_thread.run_sync(ops.appendValues, self._spreadsheet_id, range, rows)
        logger.debug("appended %d cells in %s", response.updates.updatedCells,
                     response.updates.updatedRange)

    async def clear_block(self, range: str) -> None:
        await anyio.to_thread.run_sync(ops.clearValues, self._spreadsheet_id, range)

    async def load_spreadsheet(self) -> Spreadsheet:
        """Spreadsheet and sheet properties"""
        return await anyio.to_thread.run_sync(ops.get, self._spreadsheet_id)

    async def rename_sheet(self, sheet_id: int, title: str) -> None:
        request = GoogleSheetsUpdateRequest([UpdateSheetPropertiesRequest.rename(sheet_id, title)])
        response = await anyio.to_thread.run_sync(ops.batchUpdate, self._spreadsheet_id, request)
        if not response:
            raise RuntimeError(f"Rename of sheet {sheet_id} returned no spreadsheet ID?")
