from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

import pytest

from gwsrecords.sheets.converters import ConverterSet
from gwsrecords.sheets.mapper import (RecordMapper, SheetData, SheetField, describe,
                                      load_value_sets, organize, sheet_field, titles_from_row, to_rows)

@dataclass
class Person:
    name: str|None = sheet_field("Name", required=True)
    age: int|None = sheet_field("Age")
    scratch: dict = field(default_factory=dict)

@dataclass
class Item:
    sku: str|None = sheet_field(required=True)
    price: Decimal|None = sheet_field("Price", format="{:.2f}")
    count: int|None = sheet_field("Count", required=True)
    added: datetime|None = sheet_field("Added", format="{:%Y-%m-%d}")
    note: str|None = sheet_field()

@dataclass
class Tagged(Person):
    tags: list = sheet_field("Tags", default_factory=list)

class Plain():
    """Not a dataclass, mapped with explicit descriptors"""
    def __init__(self) -> None:
        self.code = None
        self.qty = None

PLAIN_FIELDS = [SheetField("code", str, "Code", required=True), SheetField("qty", int, "Qty")]

def test_describe():
    fields = describe(Person)
    assert([f.name for f in fields] == ["name", "age"])
    assert(fields[0].title == "Name")
    assert(fields[0].required)
    assert(fields[0].type == str|None)
    assert(not fields[1].required)
    # cached per type
    assert(describe(Person) is fields)

def test_describe_inherited_and_factory():
    fields = describe(Tagged)
    assert([f.name for f in fields] == ["name", "age", "tags"])
    assert(Tagged().tags == [])

def test_describe_not_dataclass():
    with pytest.raises(TypeError):
        describe(Plain)

def test_titles_and_organize():
    titles = titles_from_row(["Name", None, 3])
    assert(titles == ["Name", "", "3"])
    vs = organize(["Name", "Age", "City"], ["Ann", 30])
    assert(vs == {"Name": "Ann", "Age": 30, "City": None})
    # extra cells past the titles are ignored
    assert(organize(["A"], [1, 2, 3]) == {"A": 1})

def test_duplicate_titles_later_wins():
    vs = organize(["X", "Y", "X"], [1, 2, 3])
    assert(vs == {"X": 3, "Y": 2})

def test_load_value_sets():
    data = load_value_sets([])
    assert(data.titles == [] and data.instances == [])
    data = load_value_sets([["A", "B"]])
    assert(data.titles == ["A", "B"])
    assert(len(data) == 0)
    data = load_value_sets([["A", "B"], [1], [2, 3]])
    assert(data.instances == [{"A": 1, "B": None}, {"A": 2, "B": 3}])

def test_load_record():
    mapper = RecordMapper(Person)
    p = mapper.load_record({"Name": "Ann", "Age": "41"})
    assert(p == Person("Ann", 41))
    assert(p.scratch == {})

def test_load_missing_title_is_none():
    p = RecordMapper(Person).load_record({"Name": "Ann"})
    assert(p.age is None)

def test_required_none_drops():
    assert(RecordMapper(Person).load_record({"Name": None, "Age": 3}) is None)
    assert(RecordMapper(Person).load_record({"Age": 3}) is None)

def test_required_empty_string_drops():
    assert(RecordMapper(Person).load_record({"Name": "", "Age": 3}) is None)
    # whitespace is not empty
    assert(RecordMapper(Person).load_record({"Name": " ", "Age": 3}) is not None)

def test_unparseable_int():
    # optional field: kept with None
    p = RecordMapper(Person).load_record({"Name": "Ann", "Age": "banana"})
    assert(p is not None and p.age is None)
    # required field: record dropped
    mapper = RecordMapper(Item)
    assert(mapper.load_record({"sku": "X1", "Count": "banana"}) is None)
    assert(mapper.load_record({"sku": "X1", "Count": "4"}).count == 4)

def test_title_defaults_and_aliases():
    mapper = RecordMapper(Item, title_aliases={"sku": "SKU", "note": "Notes", "price": "ignored"})
    assert(mapper.titles == ["SKU", "Price", "Count", "Added", "Notes"])
    item = mapper.load_record({"SKU": "A", "Count": 1, "Notes": "hi", "Price": 2})
    assert(item.sku == "A")
    assert(item.note == "hi")
    # an explicit title beats the alias
    assert(item.price == Decimal(2))
    assert(RecordMapper(Item).titles == ["sku", "Price", "Count", "Added", "note"])

def test_serial_date_loaded():
    item = RecordMapper(Item).load_record({"sku": "A", "Count": 1, "Added": 44197.5})
    assert(item.added == datetime(2021, 1, 1, 12))

def test_unregistered_type_passes_through():
    @dataclass
    class Raw:
        blob: object = sheet_field("Blob")
    marker = object()
    assert(RecordMapper(Raw).load_record({"Blob": marker}).blob is marker)

def test_custom_converters():
    converters = ConverterSet({int: lambda v: -1})
    p = RecordMapper(Person, converters).load_record({"Name": "Ann", "Age": 5})
    assert(p.age == -1)

def test_additional_loaders_chain():
    calls = []
    def first(vs, record):
        calls.append("first")
        record.scratch["city"] = vs.get("City")
        return record
    def second(vs, record):
        calls.append("second")
        return record if record.scratch["city"] else None
    mapper = RecordMapper(Person, additional_loaders=[first, second])
    p = mapper.load_record({"Name": "Ann", "City": "Oslo"})
    assert(p.scratch == {"city": "Oslo"})
    assert(calls == ["first", "second"])
    assert(mapper.load_record({"Name": "Bob", "City": None}) is None)

def test_loader_dropping_stops_chain():
    calls = []
    def drop(vs, record):
        calls.append("drop")
        return None
    def after(vs, record):
        calls.append("after")
        return record
    assert(RecordMapper(Person, additional_loaders=[drop, after]).load_record({"Name": "Ann"}) is None)
    assert(calls == ["drop"])

def test_loaders_not_called_for_required_drop():
    calls = []
    def loader(vs, record):
        calls.append(record)
        return record
    assert(RecordMapper(Person, additional_loaders=[loader]).load_record({"Name": ""}) is None)
    assert(calls == [])

def test_explicit_fields():
    mapper = RecordMapper(Plain, fields=PLAIN_FIELDS)
    p = mapper.load_record({"Code": "c1", "Qty": "3"})
    assert((p.code, p.qty) == ("c1", 3))
    assert(mapper.load_record({"Qty": "3"}) is None)
    assert(mapper.save_record(p) == {"Code": "c1", "Qty": 3})

def test_save_record():
    item = Item("A", Decimal("2.5"), 3, datetime(2024, 1, 31, 8), None)
    vs = RecordMapper(Item).save_record(item)
    assert(vs == {"sku": "A", "Price": "2.50", "Count": 3, "Added": "2024-01-31", "note": None})

def test_save_format_skips_none():
    vs = RecordMapper(Item).save_record(Item("A"))
    assert(vs["Price"] is None)
    assert(vs["Added"] is None)

def test_save_skips_unmapped():
    vs = RecordMapper(Person).save_record(Person("Ann", 3, {"x": 1}))
    assert(vs == {"Name": "Ann", "Age": 3})

def test_additional_savers():
    def saver(record, vs):
        vs["Upper"] = record.name.upper()
    vs = RecordMapper(Person, additional_savers=[saver]).save_record(Person("Ann", 3))
    assert(vs == {"Name": "Ann", "Age": 3, "Upper": "ANN"})

def test_load_table_short_row_required_drop():
    rows = [["Name", "Age"],
            ["Ann", 30],
            [None, 40],
            ["Cid"]]
    data = RecordMapper(Person).load(rows)
    assert(data.titles == ["Name", "Age"])
    assert(data.instances == [Person("Ann", 30), Person("Cid", None)])

def test_load_table_missing_last_cell_required():
    @dataclass
    class Pair:
        left: str|None = sheet_field("L")
        right: str|None = sheet_field("R", required=True)
    rows = [["L", "R"], ["a", "b"], ["c"]]
    data = RecordMapper(Pair).load(rows)
    assert(len(data) == 1)
    assert(data.instances[0].left == "a")

def test_load_table_keeps_order():
    rows = [["Name", "Age"]] + [[f"p{i}" if i % 3 else "", i] for i in range(10)]
    data = RecordMapper(Person).load(rows)
    assert([p.age for p in data] == [1, 2, 4, 5, 7, 8])

def test_load_table_empty():
    data = RecordMapper(Person).load([])
    assert(data.titles == [])
    assert(data.instances == [])

def test_load_header_only_and_save_back():
    mapper = RecordMapper(Person)
    data = mapper.load([["Name", "Age"]])
    assert(data.titles == ["Name", "Age"])
    assert(len(data) == 0)
    assert(mapper.save(data) == [["Name", "Age"]])

def test_first_row_is_always_titles():
    data = RecordMapper(Person).load([[1, 2], [3, 4]])
    assert(data.titles == ["1", "2"])
    assert(data.instances == [])

def test_save_table_title_order_and_arity():
    data = SheetData([Person("Ann", 30), Person("Bob", None)], ["Age", "Extra", "Name"])
    rows = RecordMapper(Person).save(data)
    assert(rows == [["Age", "Extra", "Name"],
                    [30, "", "Ann"],
                    ["", "", "Bob"]])
    assert(all(len(r) == 3 for r in rows))

def test_save_table_missing_value():
    rows = to_rows(["Name", "Age"], [{"Name": "Ann"}])
    assert(rows == [["Name", "Age"], ["Ann", ""]])

def test_save_table_no_header():
    rows = RecordMapper(Person).save(SheetData([Person("Ann", 1)], ["Name", "Age"]), header=False)
    assert(rows == [["Ann", 1]])

def test_save_empty_table():
    # the title row is always first, even when it is empty
    assert(RecordMapper(Person).save(SheetData()) == [[]])
    assert(RecordMapper(Person).save(SheetData(), header=False) == [])

def test_round_trip_through_rows():
    mapper = RecordMapper(Item)
    items = [Item("A", Decimal("1.5"), 2, None, "x"), Item("B", None, 5, None, None)]
    rows = mapper.save(SheetData(items, mapper.titles))
    back = mapper.load(rows)
    assert([i.sku for i in back] == ["A", "B"])
    assert(back.instances[0].price == Decimal("1.50"))
    # empty cells come back as empty strings which str keeps
    assert(back.instances[1].note == "")

def test_load_table_huge_number_text():
    rows = [["Name", "Age"], ["Ann", "9" * 5000], ["Bob", 2]]
    data = RecordMapper(Person).load(rows)
    assert(data.instances == [Person("Ann", None), Person("Bob", 2)])
