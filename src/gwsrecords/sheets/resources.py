"""
Class implementations of the sheets resources we touch.
As these are just logical groupings of data fields we use dataclasses
to implement.  The nested aspect does cause some headaches as there
is a handy dataclass.asdict() method to get a dict translation of the
class fields, which is exactly what that request client needs, but
there's no inverse support, as in initializing a dataclass from a dict.
So nested resources get converted in fixup() and written back in to_base().
Only the fields needed for reading/writing values and finding sheets
are modelled, unknown response keys are dropped.
"""
from dataclasses import dataclass, field, asdict
from typing import ClassVar

from ..resources import GoogleWorkSpaceResourceBase

class GoogleSheetsEnum():
    """
    An 'enum' in the sheets client is just a string so this is
    just to translate and validate input.
    """
    _VALID_VALUE_RENDER_OPTIONS = {
        "FORMATTED": "FORMATTED_VALUE",
        "FORMATTED_VALUE": "FORMATTED_VALUE",
        "UNFORMATTED": "UNFORMATTED_VALUE",
        "UNFORMATTED_VALUE": "UNFORMATTED_VALUE",
        "FORMULA": "FORMULA"
    }
    _VALID_DATE_TIME_RENDER_OPTIONS = {
        "SERIAL": "SERIAL_NUMBER",
        "SERIAL_NUMBER": "SERIAL_NUMBER",
        "FORMATTED": "FORMATTED_STRING",
        "FORMATTED_STRING": "FORMATTED_STRING"
    }
    _VALID_DIMENSION_OPTIONS = {
        "ROWS": "ROWS",
        "R": "ROWS",
        "C": "COLUMNS",
        "COLS": "COLUMNS",
        "COLUMNS": "COLUMNS"
    }
    _VALID_VALUE_INPUT_OPTIONS = {
        "RAW": "RAW",
        "USER": "USER_ENTERED",
        "USER_ENTERED": "USER_ENTERED"
    }
    _VALID_INSERT_DATA_OPTIONS = {
        "OVERWRITE": "OVERWRITE",
        "INSERT": "INSERT_ROWS",
        "INSERT_ROWS": "INSERT_ROWS"
    }

    @classmethod
    def valueRenderOption(cls, option: str) -> str:
        """https://developers.google.com/sheets/api/reference/rest/v4/ValueRenderOption"""
        return cls._VALID_VALUE_RENDER_OPTIONS.get(str(option).upper(), "")

    @classmethod
    def dateTimeRenderOption(cls, option: str) -> str:
        """https://developers.google.com/sheets/api/reference/rest/v4/DateTimeRenderOption"""
        return cls._VALID_DATE_TIME_RENDER_OPTIONS.get(str(option).upper(), "")

    @classmethod
    def dimension(cls, dim: str) -> str:
        """https://developers.google.com/sheets/api/reference/rest/v4/Dimension"""
        return cls._VALID_DIMENSION_OPTIONS.get(str(dim).upper(), "")

    @classmethod
    def valueInputOption(cls, option: str) -> str:
        """https://developers.google.com/sheets/api/reference/rest/v4/ValueInputOption"""
        return cls._VALID_VALUE_INPUT_OPTIONS.get(str(option).upper(), "")

    @classmethod
    def insertDataOption(cls, option: str) -> str:
        """https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets.values/append#InsertDataOption"""
        return cls._VALID_INSERT_DATA_OPTIONS.get(str(option).upper(), "")

@dataclass
class GridProperties(GoogleWorkSpaceResourceBase):
    """https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets/sheets#gridproperties"""
    rowCount: int = field(default=-1)
    columnCount: int = field(default=-1)
    frozenRowCount: int = field(default=0)
    frozenColumnCount: int = field(default=0)

    def __bool__(self) -> bool:
        return self.rowCount >= 0 and self.columnCount >= 0

@dataclass
class SheetProperties(GoogleWorkSpaceResourceBase):
    """https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets/sheets#sheetproperties"""
    sheetId: int = field(default=-1)
    title: str = field(default="")
    index: int = field(default=-1)
    sheetType: str = field(default="")
    gridProperties: GridProperties|dict = field(default_factory=dict)
    hidden: bool = field(default=False)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        if not isinstance(self.gridProperties, GridProperties):
            self.gridProperties = GridProperties.from_response(dict(self.gridProperties))

    def to_base(self) -> dict:
        self.fixup()
        b = asdict(self)
        b['gridProperties'] = self.gridProperties.to_base()
        return b

    def __bool__(self) -> bool:
        """
        True if it is valid, which is the ID and index are 0 or positive
        as negative index is not possible
        """
        return self.sheetId >= 0 and self.index >= 0 and bool(self.title)

    def __str__(self) -> str:
        if self:
            return f"{str(self.title)}({str(self.sheetId)}[{str(self.index)}])"
        return "<invalid sheet>"

@dataclass
class Sheet(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets/sheets#sheet
    Representation of a sheet within a spreadsheet, properties only.
    """
    properties: SheetProperties|dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        if not isinstance(self.properties, SheetProperties):
            self.properties = SheetProperties.from_response(dict(self.properties))

    def to_base(self) -> dict:
        self.fixup()
        return {'properties': self.properties.to_base()}

    def __bool__(self) -> bool:
        return bool(self.properties)

    def __str__(self) -> str:
        return str(self.properties)

@dataclass
class SpreadsheetProperties(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets#SpreadsheetProperties
    """
    title: str = field(default="")
    locale: str = field(default="")
    timeZone: str = field(default="")

    def __bool__(self) -> bool:
        return bool(self.title)

@dataclass
class Spreadsheet(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets#resource:-spreadsheet
    The representation of a spreadsheet.
    """
    spreadsheetId: str = field(default="")
    properties: SpreadsheetProperties|dict = field(default_factory=dict)
    sheets: list[Sheet|dict] = field(default_factory=list)
    spreadsheetUrl: str = field(default="")

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        if not isinstance(self.properties, SpreadsheetProperties):
            self.properties = SpreadsheetProperties.from_response(dict(self.properties))
        self.sheets = [s if isinstance(s, Sheet) else Sheet.from_response(dict(s)) for s in self.sheets]

    def to_base(self) -> dict:
        self.fixup()
        b = asdict(self)
        b['properties'] = self.properties.to_base()
        b['sheets'] = [s.to_base() for s in self.sheets]
        return b

    def __bool__(self) -> bool:
        return bool(self.spreadsheetId)

    def __str__(self) -> str:
        if not self.spreadsheetId:
            return 'unconnected'
        titles = ",".join(str(s) for s in self.sheets)
        return f"{self.properties.title}[{titles}]"

    def sheet_by_index(self, index: int) -> Sheet|None:
        """Tab index, which is the ordering you see in the UI, not list position"""
        for s in self.sheets:
            if s.properties.index == index:
                return s
        return None

    def sheet_by_title(self, title: str) -> Sheet|None:
        for s in self.sheets:
            if s.properties.title == title:
                return s
        return None

@dataclass
class ValueRange(GoogleWorkSpaceResourceBase):
    """https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets.values#resource:-valuerange"""
    range: str = field(default="")
    majorDimension: str = field(default="ROWS")
    values: list[list[bool|str|int|float|None]] = field(default_factory=list)

    valid_dimensions: ClassVar[list[str]] = ["ROWS", "COLUMNS"]

    def __post_init__(self):
        self.fixup()

    def fixup(self) -> None:
        if self.majorDimension:
            dim = GoogleSheetsEnum.dimension(str(self.majorDimension))
            if not dim:
                raise ValueError(f"Invalid majorDimension value: {self.majorDimension}")
            self.majorDimension = dim

    def __bool__(self) -> bool:
        """
        A ValueRange is valid if the range string is not empty
        and the majorDimension has a valid value.
        """
        return bool(self.range) and self.majorDimension in self.valid_dimensions

@dataclass
class UpdateValuesResponse(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/sheets/api/reference/rest/v4/UpdateValuesResponse
    """
    spreadsheetId: str = field(default="")
    updatedRange: str = field(default="")
    updatedRows: int = field(default=0)
    updatedColumns: int = field(default=0)
    updatedCells: int = field(default=0)

    def __bool__(self) -> bool:
        return bool(self.spreadsheetId) and bool(self.updatedRange)

@dataclass
class AppendValuesResponse(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets.values/append#response-body
    """
    spreadsheetId: str = field(default="")
    tableRange: str = field(default="")
    updates: UpdateValuesResponse|dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        if not isinstance(self.updates, UpdateValuesResponse):
            self.updates = UpdateValuesResponse.from_response(dict(self.updates))

    def to_base(self) -> dict:
        self.fixup()
        b = asdict(self)
        b['updates'] = self.updates.to_base()
        return b

    def __bool__(self) -> bool:
        return bool(self.spreadsheetId)

@dataclass
class ClearValuesResponse(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets.values/clear#response-body
    """
    spreadsheetId: str = field(default="")
    clearedRange: str = field(default="")

    def __bool__(self) -> bool:
        return bool(self.spreadsheetId)
