"""
Mapping between records and rows of cell values.

A record is a dataclass whose fields are declared with sheet_field().
The field says which column title it maps to, whether a row without a
value for it is dropped, and optionally a format template used when
writing it back out:

    @dataclass
    class Item:
        name: str|None = sheet_field("Name", required=True)
        price: Decimal|None = sheet_field("Price", format="{:.2f}")
        note: str|None = sheet_field()      # column title is 'note'
        cache: dict = field(default_factory=dict)   # not mapped

The field descriptors are collected once per record type and then used
for every row.  Classes that are not dataclasses can still be mapped by
handing RecordMapper an explicit list of SheetField descriptors.

Rows are plain lists of cell values.  The first row of a block is always
the titles, every later row is zipped against the titles into a value set
(title -> raw value) and converted into a record.
"""
import typing

from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import MISSING, dataclass, field, fields, is_dataclass, replace
from functools import cache
from typing import Any, Generic, TypeVar

from .converters import CellValue, ConverterSet

T = TypeVar("T")

ValueSet = dict[str, Any]
Loader = Callable[[ValueSet, Any], Any]
Saver = Callable[[Any, ValueSet], None]

# key for our descriptor within dataclass field metadata
SHEET_FIELD_KEY = "gwsrecords.sheet_field"

@dataclass(frozen=True)
class SheetField():
    """
    Descriptor for a record member mapped to a column.
    name:       attribute name on the record
    type:       declared type, used to pick the converter on load
    title:      column title, None means alias table or the name itself
    required:   drop the whole record on load if the value is missing
    format:     str.format() template applied to the value on save
    """
    name: str = field(default="")
    type: Any = field(default=None)
    title: str|None = field(default=None)
    required: bool = field(default=False)
    format: str|None = field(default=None)

    def effective_title(self, aliases: Mapping[str, str]|None = None) -> str:
        if self.title is not None:
            return self.title
        if aliases and self.name in aliases:
            return aliases[self.name]
        return self.name

def sheet_field(title: str|None = None, *, required: bool = False,
                format: str|None = None, default: Any = None,
                default_factory: Any = MISSING, **kwargs) -> Any:
    """
    dataclasses.field() wrapper declaring a mapped column.
    The default is None as records have to be default constructible.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[SHEET_FIELD_KEY] = SheetField(title=title, required=required, format=format)
    if default_factory is not MISSING:
        return field(default_factory=default_factory, metadata=metadata, **kwargs)
    return field(default=default, metadata=metadata, **kwargs)

@cache
def describe(record_type: type) -> tuple[SheetField, ...]:
    """
    Collect the SheetField descriptors of a dataclass in declaration order.
    Fields not declared with sheet_field() are left out.
    """
    if not is_dataclass(record_type):
        raise TypeError(f"{record_type.__name__} is not a dataclass, pass explicit fields")
    hints = typing.get_type_hints(record_type)
    result = []
    for f in fields(record_type):
        declared = f.metadata.get(SHEET_FIELD_KEY)
        if declared is not None:
            result.append(replace(declared, name=f.name, type=hints.get(f.name, f.type)))
    return tuple(result)

@dataclass
class SheetData(Generic[T]):
    """
    A table: records (or value sets) along with the ordered column titles
    that produced them or that they will be written under.
    No titles and no instances is the empty table, titles with no
    instances is a header-only table.
    """
    instances: list[T] = field(default_factory=list)
    titles: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.instances)

    def __iter__(self) -> Iterator[T]:
        return iter(self.instances)

def titles_from_row(row: Sequence[CellValue]) -> list[str]:
    """Header cells as strings, an empty cell is an empty title"""
    return ["" if c is None else str(c) for c in row]

def organize(titles: Sequence[str], row: Sequence[CellValue]) -> ValueSet:
    """
    Zip a row against the titles.  Cells missing off the end of a short
    row are None, cells past the last title are ignored.  With duplicate
    titles the later column wins.
    """
    return {t: row[i] if i < len(row) else None for i, t in enumerate(titles)}

def load_value_sets(rows: Sequence[Sequence[CellValue]]) -> SheetData[ValueSet]:
    """
    Untyped table load, the first row is the titles no matter what
    it holds and every later row becomes a value set.
    """
    if len(rows) < 1:
        return SheetData()
    titles = titles_from_row(rows[0])
    return SheetData([organize(titles, r) for r in rows[1:]], titles)

def to_rows(titles: Sequence[str], value_sets: Iterable[Mapping[str, Any]],
            header: bool = True) -> list[list[Any]]:
    """
    Lay out value sets as rows in title order, the titles first when
    header is set (even an empty title list).  A title missing from a
    value set (or holding None) is written as an empty string so every
    row has exactly len(titles) cells.
    """
    rows = [list(titles)] if header else []
    for vs in value_sets:
        row = []
        for t in titles:
            v = vs.get(t)
            row.append("" if v is None else v)
        rows.append(row)
    return rows

class RecordMapper(Generic[T]):
    """
    Converts value sets to records and back for a single record type.

    record_type:        default constructible class to populate
    converters:         ConverterSet used for field types, defaults if None
    title_aliases:      field name -> column title, used for fields
                        without an explicit title
    additional_loaders: called in order after the fields are populated
                        with (value_set, record), each returns the record
                        to carry on with or None to drop the row
    additional_savers:  called in order after the fields are saved
                        with (record, value_set) to add to the value set
    fields:             explicit descriptors, otherwise describe(record_type)
    """
    def __init__(self, record_type: type[T],
                 converters: ConverterSet|None = None,
                 title_aliases: Mapping[str, str]|None = None,
                 additional_loaders: Iterable[Loader]|None = None,
                 additional_savers: Iterable[Saver]|None = None,
                 fields: Iterable[SheetField]|None = None) -> None:
        self._type = record_type
        self._converters = converters if converters is not None else ConverterSet()
        self._aliases = dict(title_aliases) if title_aliases else {}
        self._loaders = list(additional_loaders) if additional_loaders else []
        self._savers = list(additional_savers) if additional_savers else []
        self._fields = tuple(fields) if fields is not None else describe(record_type)

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{self._type.__name__}"

    @property
    def record_type(self) -> type[T]:
        return self._type

    @property
    def fields(self) -> tuple[SheetField, ...]:
        return self._fields

    @property
    def titles(self) -> list[str]:
        """Column titles of the mapped fields in declaration order"""
        return [f.effective_title(self._aliases) for f in self._fields]

    def load_record(self, value_set: Mapping[str, Any]) -> T|None:
        """
        Build one record from a value set.
        Returns None if a required field comes out None or empty, or if
        an additional loader drops it.
        """
        record = self._type()
        for f in self._fields:
            raw = value_set.get(f.effective_title(self._aliases))
            value = self._converters.convert(f.type, raw)
            if f.required:
                if value is None:
                    return None
                if isinstance(value, str) and value == "":
                    return None
            setattr(record, f.name, value)

        for loader in self._loaders:
            record = loader(value_set, record)
            if record is None:
                return None
        return record

    def save_record(self, record: T) -> ValueSet:
        """
        Build a value set from a record.  Fields with a format template
        are written as the formatted string, None stays None.
        """
        value_set = {}
        for f in self._fields:
            value = getattr(record, f.name, None)
            if f.format is not None and value is not None:
                value = f.format.format(value)
            value_set[f.effective_title(self._aliases)] = value

        for saver in self._savers:
            saver(record, value_set)
        return value_set

    def load(self, rows: Sequence[Sequence[CellValue]]) -> SheetData[T]:
        """
        Table load: titles from the first row, one record per later row.
        Dropped rows are left out, the order of the rest is kept.
        """
        data = load_value_sets(rows)
        instances = []
        for vs in data.instances:
            record = self.load_record(vs)
            if record is not None:
                instances.append(record)
        return SheetData(instances, data.titles)

    def value_sets(self, instances: Iterable[T]) -> list[ValueSet]:
        return [self.save_record(i) for i in instances]

    def save(self, data: SheetData[T], header: bool = True) -> list[list[Any]]:
        """
        Table save: the titles as the first row (unless header is off),
        then one row per record laid out in title order.
        """
        return to_rows(data.titles, self.value_sets(data.instances), header)
