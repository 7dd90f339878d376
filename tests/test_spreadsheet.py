from dataclasses import dataclass
from datetime import timezone
from zoneinfo import ZoneInfo

import pytest

from gwsrecords.sheets.converters import ZonedDateTime
from gwsrecords.sheets.mapper import sheet_field
from gwsrecords.sheets.provider import GoogleSheetsProvider
from gwsrecords.sheets.spreadsheet import GoogleSpreadSheet

from conftest import FakeProvider

SPREADSHEET = {
    "spreadsheetId": "abc123",
    "spreadsheetUrl": "https://docs.google.com/spreadsheets/d/abc123/edit",
    "properties": {"title": "Stock", "locale": "en_GB", "timeZone": "Europe/London"},
    "sheets": [
        {"properties": {"sheetId": 0, "title": "Fruit", "index": 0, "sheetType": "GRID",
                        "gridProperties": {"rowCount": 1000, "columnCount": 26}}},
        {"properties": {"sheetId": 77, "title": "Veg", "index": 1, "sheetType": "GRID",
                        "gridProperties": {"rowCount": 100, "columnCount": 5, "frozenRowCount": 1},
                        "tabColorStyle": {"rgbColor": {}}}},
    ],
}

@dataclass
class Stamp:
    label: str|None = sheet_field("Label", required=True)
    at: ZonedDateTime|None = sheet_field("At")

def test_default_provider():
    doc = GoogleSpreadSheet("abc123")
    assert(isinstance(doc.provider, GoogleSheetsProvider))
    assert(doc.provider.spreadsheet_id == "abc123")
    assert(str(doc) == "abc123(unloaded)")
    with pytest.raises(ValueError):
        GoogleSpreadSheet("")

def test_get_or_add_sheet(provider):
    doc = GoogleSpreadSheet("abc123", provider=provider)
    assert(len(doc) == 0)
    fruit = doc.get_or_add_sheet("Fruit")
    assert(fruit.name == "Fruit")
    assert(doc["Fruit"] is fruit)
    assert("Fruit" in doc)
    assert("Veg" not in doc)
    assert(len(doc) == 1)
    # nothing goes to the provider until something is read or written
    assert(provider.calls == [])

def test_sheet_converters(provider):
    doc = GoogleSpreadSheet("abc123", {int: lambda v: 1}, provider=provider)
    plain = doc.get_or_add_sheet("Plain")
    assert(plain.converters is doc.converters)
    special = doc.get_or_add_sheet("Special", {str: lambda v: "s"})
    assert(special.converters.convert(int, "5") == 1)
    assert(special.converters.convert(str, 5) == "s")
    assert(doc.converters.convert(str, 5) == "5")
    # only applied on creation
    again = doc.get_or_add_sheet("Plain", {str: lambda v: "s"})
    assert(again is plain)
    assert(again.converters.convert(str, 5) == "5")

def test_time_zone(provider):
    assert(GoogleSpreadSheet("abc123", provider=provider).converters.time_zone == timezone.utc)
    doc = GoogleSpreadSheet("abc123", time_zone="Europe/London", provider=provider)
    assert(doc["X"].converters.time_zone == ZoneInfo("Europe/London"))

@pytest.mark.asyncio
async def test_zoned_load():
    provider = FakeProvider({"Log!A:B": [["Label", "At"], ["start", 44197.5]]})
    doc = GoogleSpreadSheet("abc123", time_zone="Asia/Tokyo", provider=provider)
    data = await doc["Log"].load(Stamp, "A:B")
    at = data.instances[0].at
    assert(at.tzinfo == ZoneInfo("Asia/Tokyo"))
    assert((at.year, at.month, at.day, at.hour) == (2021, 1, 1, 12))

@pytest.mark.asyncio
async def test_get():
    provider = FakeProvider(spreadsheet=SPREADSHEET)
    doc = GoogleSpreadSheet("abc123", provider=provider)
    veg = doc["Veg"]
    assert(veg.sheet_id is None)
    spreadsheet = await doc.get()
    assert(spreadsheet.properties.title == "Stock")
    assert(len(spreadsheet.sheets) == 2)
    assert(spreadsheet.sheets[1].properties.gridProperties.frozenRowCount == 1)
    assert(veg.sheet_id == 77)
    assert(veg.index == 1)
    assert(str(doc) == "Stock[Fruit(0[0]),Veg(77[1])]")

@pytest.mark.asyncio
async def test_get_or_add_sheet_by_index():
    provider = FakeProvider(spreadsheet=SPREADSHEET)
    doc = GoogleSpreadSheet("abc123", provider=provider)
    veg = await doc.get_or_add_sheet_by_index(1)
    assert(veg.name == "Veg")
    assert(veg.sheet_id == 77)
    assert(doc["Veg"] is veg)
    assert(await doc.get_or_add_sheet_by_index(1) is veg)
    assert(await doc.get_or_add_sheet_by_index(5) is None)
    # properties only fetched once
    assert(provider.calls.count(("load_spreadsheet",)) == 1)

@pytest.mark.asyncio
async def test_rename_known_sheet():
    provider = FakeProvider(spreadsheet=SPREADSHEET)
    doc = GoogleSpreadSheet("abc123", provider=provider)
    await doc.get()
    fruit = doc["Fruit"]
    # the sheet only got its id if it was known when get() ran
    assert(fruit.sheet_id is None)
    renamed = await doc.rename_sheet("Fruit", "Fruits")
    assert(renamed is fruit)
    assert(fruit.name == "Fruits")
    assert(fruit.sheet_id == 0)
    assert("Fruit" not in doc)
    assert(doc["Fruits"] is fruit)
    assert(("rename", 0, "Fruits") in provider.calls)

@pytest.mark.asyncio
async def test_rename_unseen_sheet():
    provider = FakeProvider(spreadsheet=SPREADSHEET)
    doc = GoogleSpreadSheet("abc123", provider=provider)
    veg = await doc.rename_sheet("Veg", "Greens")
    assert(veg.name == "Greens")
    assert(veg.sheet_id == 77)
    assert(doc["Greens"] is veg)
    assert(provider.calls[-1] == ("rename", 77, "Greens"))

@pytest.mark.asyncio
async def test_rename_missing_sheet():
    provider = FakeProvider(spreadsheet=SPREADSHEET)
    doc = GoogleSpreadSheet("abc123", provider=provider)
    with pytest.raises(KeyError):
        await doc.rename_sheet("Nope", "Still nope")
