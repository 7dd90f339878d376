import pytest

from gwsrecords.sheets.resources import Spreadsheet

class FakeProvider():
    """
    In memory stand in for a cell provider.  fetch_block hands back
    whatever was put in blocks for the range, every call is recorded.
    """
    def __init__(self, blocks: dict|None = None, spreadsheet: dict|None = None) -> None:
        self.blocks = dict(blocks) if blocks else {}
        self.spreadsheet = spreadsheet
        self.calls = []

    async def fetch_block(self, range, formula=False):
        self.calls.append(("fetch", range, formula))
        return [list(r) for r in self.blocks.get(range, [])]

    async def write_block(self, range, rows):
        self.calls.append(("write", range, [list(r) for r in rows]))

    async def append_block(self, range, rows):
        self.calls.append(("append", range, [list(r) for r in rows]))

    async def clear_block(self, range):
        self.calls.append(("clear", range))

    async def load_spreadsheet(self):
        self.calls.append(("load_spreadsheet",))
        return Spreadsheet.from_response(self.spreadsheet)

    async def rename_sheet(self, sheet_id, title):
        self.calls.append(("rename", sheet_id, title))

@pytest.fixture
def provider():
    return FakeProvider()
