"""
Thin wrappers over the sheets v4 client calls we need.
The service decorator handles connecting and building the service, the
functions here translate arguments and wrap the response dicts up in the
resource dataclasses.  Errors from the client (HttpError etc) propagate.
"""
import logging

from collections.abc import Sequence
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from googleapiclient.discovery import Resource

from ..access import gws, service
from .resources import (GoogleSheetsEnum, Spreadsheet, ValueRange,
                        UpdateValuesResponse, AppendValuesResponse, ClearValuesResponse)
from .requests import GoogleSheetsUpdateRequest, GoogleSheetsUpdateRequestResponse

logger = logging.getLogger(__name__)

gws.append_scopes("sheets")

# only the bits of the spreadsheet resource the resources module models
_SPREADSHEET_FIELDS = "spreadsheetId,spreadsheetUrl,properties(title,locale,timeZone),sheets.properties"

def to_cell(value: Any) -> bool|int|float|str:
    """
    Turn a python value into something the values API will take as JSON.
    Dates and times go out as text for USER_ENTERED input to parse back
    into proper date cells, decimals as text to keep their precision.
    """
    if value is None:
        return ""
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    if isinstance(value, timedelta):
        total = int(value.total_seconds())
        h, rem = divmod(total, 3600)
        m, s = divmod(rem, 60)
        return f"{h}:{m:02d}:{s:02d}"
    if isinstance(value, (list, tuple)):
        return "\n".join(str(to_cell(v)) for v in value)
    return str(value)

def to_cells(rows: Sequence[Sequence[Any]]) -> list[list[bool|int|float|str]]:
    return [[to_cell(v) for v in row] for row in rows]

@service("sheets", "v4")
def get(spreadsheetId: str, service: Resource = None) -> Spreadsheet:
    """
    Wrapper for calling the get() spreadsheet method.
    See https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets/get
    Only spreadsheet and sheet properties are requested, no grid data.
    """
    response = service.spreadsheets().get(spreadsheetId=spreadsheetId,
                                          fields=_SPREADSHEET_FIELDS).execute()
    return Spreadsheet.from_response(response)

@service("sheets", "v4")
def batchUpdate(spreadsheetId: str, request: GoogleSheetsUpdateRequest|dict,
                service: Resource = None) -> GoogleSheetsUpdateRequestResponse:
    """
    Wrapper for calling the batchUpdate() spreadsheet method.
    See https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets/batchUpdate
    This is for altering spreadsheet properties, not reading/writing values.
    """
    body = request.to_base() if isinstance(request, GoogleSheetsUpdateRequest) else request
    response = service.spreadsheets().batchUpdate(spreadsheetId=spreadsheetId, body=body).execute()
    return GoogleSheetsUpdateRequestResponse.from_response(response)

@service("sheets", "v4")
def getValues(spreadsheetId: str, range: str,
              valueRenderOption: str = "UNFORMATTED",
              dateTimeRenderOption: str = "SERIAL",
              service: Resource = None) -> ValueRange:
    """
    Wrapper for calling the get() method on the values resource.
    See https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets.values/get
    Trailing empty rows and columns are not returned, and rows are ragged,
    a row stops at its last non empty cell.
    """
    value_render = GoogleSheetsEnum.valueRenderOption(valueRenderOption)
    if not value_render:
        raise ValueError(f"Invalid valueRenderOption value: {valueRenderOption}")
    date_time_render = GoogleSheetsEnum.dateTimeRenderOption(dateTimeRenderOption)
    if not date_time_render:
        raise ValueError(f"Invalid dateTimeRenderOption value: {dateTimeRenderOption}")
    logger.debug("get %s from %s (%s)", range, spreadsheetId, value_render)
    response = service.spreadsheets().values().get(spreadsheetId=spreadsheetId, range=str(range),
                                                   majorDimension="ROWS",
                                                   valueRenderOption=value_render,
                                                   dateTimeRenderOption=date_time_render).execute()
    return ValueRange.from_response(response)

@service("sheets", "v4")
def updateValues(spreadsheetId: str, range: str, values: Sequence[Sequence[Any]],
                 valueInputOption: str = "USER",
                 service: Resource = None) -> UpdateValuesResponse:
    """
    Wrapper for calling the update() method on the values resource.
    See https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets.values/update
    """
    value_input = GoogleSheetsEnum.valueInputOption(valueInputOption)
    if not value_input:
        raise ValueError(f"Invalid valueInputOption value: {valueInputOption}")
    body = ValueRange(str(range), "ROWS", to_cells(values)).to_base()
    logger.debug("update %s in %s with %d rows", range, spreadsheetId, len(values))
    response = service.spreadsheets().values().update(spreadsheetId=spreadsheetId, range=str(range),
                                                      valueInputOption=value_input,
                                                      body=body).execute()
    return UpdateValuesResponse.from_response(response)

@service("sheets", "v4")
def appendValues(spreadsheetId: str, range: str, values: Sequence[Sequence[Any]],
                 valueInputOption: str = "USER",
                 insertDataOption: str = "INSERT",
                 service: Resource = None) -> AppendValuesResponse:
    """
    Wrapper for calling the append() method on the values resource.
    See https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets.values/append
    Rows go after the last row of the table found within range.
    """
    value_input = GoogleSheetsEnum.valueInputOption(valueInputOption)
    if not value_input:
        raise ValueError(f"Invalid valueInputOption value: {valueInputOption}")
    insert_data = GoogleSheetsEnum.insertDataOption(insertDataOption)
    if not insert_data:
        raise ValueError(f"Invalid insertDataOption value: {insertDataOption}")
    body = ValueRange(str(range), "ROWS", to_cells(values)).to_base()
    logger.debug("append %d rows to %s in %s", len(values), range, spreadsheetId)
    response = service.spreadsheets().values().append(spreadsheetId=spreadsheetId, range=str(range),
                                                      valueInputOption=value_input,
                                                      insertDataOption=insert_data,
                                                      body=body).execute()
    return AppendValuesResponse.from_response(response)

@service("sheets", "v4")
def clearValues(spreadsheetId: str, range: str,
                service: Resource = None) -> ClearValuesResponse:
    """
    Wrapper for calling the clear() method on the values resource.
    See https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets.values/clear
    Only values are cleared, formatting and the grid stay.
    """
    logger.debug("clear %s in %s", range, spreadsheetId)
    response = service.spreadsheets().values().clear(spreadsheetId=spreadsheetId, range=str(range),
                                                     body={}).execute()
    return ClearValuesResponse.from_response(response)
