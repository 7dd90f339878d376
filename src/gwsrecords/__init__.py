"""
Load and save records from Google Sheets ranges.
The goal is to hide the fiddly parts, authentication, A1 notation, the
JSON request/response structs and turning loosely typed cell values into
proper python types, behind a sheet object that reads and writes lists
of dataclass records.

Python dataclasses are used for both the API resource structs and the
records themselves.  Records declare their columns with sheet_field()
and the mapper does the rest:

    doc = GoogleSpreadSheet(spreadsheet_id, time_zone="Europe/London")
    data = await doc["Stock"].load(Item, "A1:F")
    ...
    await doc["Stock"].save("A1:F", data)
"""
