from dataclasses import dataclass, asdict, field
import re

from ..resources import GoogleWorkSpaceResourceBase
from .resources import Spreadsheet

class GoogleSheetsUpdateRequestBase(GoogleWorkSpaceResourceBase):
    """
    Base class for sheet batchUpdate requests to get the actual
    request dict into the right format.
    """
    def to_request(self) -> dict[str,dict]:
        name = self.__class__.__name__
        # need to strip off the trailing 'Request' class name and
        # set the first letter to lower case.  could be done
        # several ways but lets go re
        m = re.match("^([a-zA-Z])([a-zA-Z]+)Request$", name)
        if not m:
            raise RuntimeError("Invalid Google Sheets request format for class name")
        key = m.group(1).lower() + m.group(2)
        return {key: self.to_base()}

@dataclass
class UpdateSheetPropertiesRequest(GoogleSheetsUpdateRequestBase):
    """
    https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets/request#updatesheetpropertiesrequest
    properties only needs the sheetId plus whatever is being changed,
    fields is the comma separated mask of what that is.
    """
    properties: dict = field(default_factory=dict)
    fields: str = field(default="")

    @classmethod
    def rename(cls, sheetId: int, title: str):
        return cls({'sheetId': sheetId, 'title': title}, 'title')

@dataclass
class GoogleSheetsUpdateRequest(GoogleWorkSpaceResourceBase):
    """
    Generate a GSheet Batch Update request body.
    https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets/batchUpdate#request-body
    """
    requests: list[GoogleSheetsUpdateRequestBase|dict]
    includeSpreadsheetInResponse: bool = field(default=False)

    def to_base(self) -> dict:
        return {
            'requests': [r.to_request() if isinstance(r, GoogleSheetsUpdateRequestBase) else r
                         for r in self.requests],
            'includeSpreadsheetInResponse': self.includeSpreadsheetInResponse
        }

@dataclass
class GoogleSheetsUpdateRequestResponse(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets/batchUpdate#response-body
    """
    spreadsheetId: str = field(default="")
    replies: list[dict] = field(default_factory=list)
    updatedSpreadsheet: Spreadsheet|dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.fixup()

    def __bool__(self) -> bool:
        return bool(self.spreadsheetId)

    def fixup(self) -> None:
        if not isinstance(self.updatedSpreadsheet, Spreadsheet):
            self.updatedSpreadsheet = Spreadsheet.from_response(dict(self.updatedSpreadsheet))

    def to_base(self) -> dict:
        self.fixup()
        b = asdict(self)
        b['updatedSpreadsheet'] = self.updatedSpreadsheet.to_base()
        return b
