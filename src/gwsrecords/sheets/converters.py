"""
Conversions from raw cell values to typed record fields.

Values come back from the values API as bools, numbers and strings
(dates arrive as serial numbers when rendered unformatted), so each
converter takes whatever showed up in the cell and either returns the
declared type or None.  Converters never raise, a value that cannot be
converted is simply None.

The ConverterSet is the registry handed to the mapper.  It is built once
from the defaults plus any overrides and is read-only afterwards, so a
set can be shared between sheets without anyone stepping on anyone else.
"""
import re
import math
import types
import typing

from collections.abc import Callable, Iterator, Mapping
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from decimal import Decimal, InvalidOperation
from functools import partial
from typing import Any, NewType, Self
from zoneinfo import ZoneInfo

from pydantic import AnyUrl, TypeAdapter, ValidationError

# what a cell can hold once the client has decoded the JSON response
CellValue = bool|int|float|Decimal|str|datetime|date|None
Converter = Callable[[Any], Any]

# int flavours with range checks, use these as field types
Byte = NewType("Byte", int)
UShort = NewType("UShort", int)
Long = NewType("Long", int)
# datetime attached to the time zone configured on the converter set
ZonedDateTime = NewType("ZonedDateTime", datetime)

# day 0 of the spreadsheet serial date system
SERIAL_EPOCH = datetime(1899, 12, 30)
_MS_PER_DAY = 86400000

_INT_RE = re.compile(r"^\s*[+-]?[0-9]+\s*$")
_uri_adapter = TypeAdapter(AnyUrl)

def to_bool(o: Any) -> bool|None:
    if isinstance(o, bool):
        return o
    if o is None:
        return None
    s = str(o).strip().lower()
    if s == "true":
        return True
    if s == "false":
        return False
    return None

def to_int(o: Any) -> int|None:
    if isinstance(o, bool) or o is None:
        return None
    if isinstance(o, int):
        return o
    if isinstance(o, float) and o.is_integer():
        return int(o)
    s = str(o)
    if not _INT_RE.match(s):
        return None
    try:
        return int(s)
    except ValueError:
        # past the interpreter's digit limit for str -> int
        return None

def _to_ranged_int(o: Any, low: int, high: int) -> int|None:
    i = to_int(o)
    if i is None or i < low or i > high:
        return None
    return i

to_byte = partial(_to_ranged_int, low=0, high=255)
to_ushort = partial(_to_ranged_int, low=0, high=65535)
to_long = partial(_to_ranged_int, low=-(2 ** 63), high=2 ** 63 - 1)

def to_decimal(o: Any) -> Decimal|None:
    """
    Decimal passthrough, ints are widened and floats narrowed through
    their shortest repr, anything else has to parse as a finite decimal.
    """
    if isinstance(o, bool) or o is None:
        return None
    if isinstance(o, Decimal):
        return o
    if isinstance(o, int):
        return Decimal(o)
    if isinstance(o, float):
        return Decimal(repr(o)) if math.isfinite(o) else None
    try:
        d = Decimal(str(o).strip())
    except InvalidOperation:
        return None
    return d if d.is_finite() else None

def to_float(o: Any) -> float|None:
    if isinstance(o, bool) or o is None:
        return None
    if isinstance(o, (int, float, Decimal)):
        return float(o)
    try:
        f = float(str(o).strip())
    except ValueError:
        return None
    return f if math.isfinite(f) else None

def from_serial(serial: int|float) -> datetime|None:
    """
    Convert a spreadsheet serial number to a naive datetime.
    The integral part is the day offset from SERIAL_EPOCH and the
    fractional part is the time of day, rounded to the millisecond.
    """
    try:
        days = int(serial)
        ms = round(abs(serial - days) * _MS_PER_DAY)
        return SERIAL_EPOCH + timedelta(days=days, milliseconds=ms)
    except (OverflowError, ValueError):
        return None

def to_datetime(o: Any) -> datetime|None:
    if isinstance(o, datetime):
        return o
    if isinstance(o, date):
        return datetime.combine(o, time())
    if isinstance(o, bool) or o is None:
        return None
    if isinstance(o, (int, float)):
        return from_serial(o)
    if isinstance(o, Decimal):
        return from_serial(float(o))
    try:
        return datetime.fromisoformat(str(o).strip())
    except ValueError:
        return None

def to_date(o: Any) -> date|None:
    if isinstance(o, date) and not isinstance(o, datetime):
        return o
    dt = to_datetime(o)
    return dt.date() if dt is not None else None

def to_time(o: Any) -> time|None:
    if isinstance(o, time):
        return o
    dt = to_datetime(o)
    return dt.time() if dt is not None else None

def to_timedelta(o: Any) -> timedelta|None:
    """Durations are the time of day part of a date/time value"""
    if isinstance(o, timedelta):
        return o
    t = to_time(o)
    if t is None:
        return None
    return timedelta(hours=t.hour, minutes=t.minute,
                     seconds=t.second, microseconds=t.microsecond)

def to_zoned_datetime(o: Any, zone: tzinfo = timezone.utc) -> datetime|None:
    """
    Naive values are taken as wall clock time in zone, aware values are
    converted into it.
    """
    dt = to_datetime(o)
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=zone)
    return dt.astimezone(zone)

def to_uri(o: Any) -> AnyUrl|None:
    if isinstance(o, AnyUrl):
        return o
    if o is None:
        return None
    s = str(o).strip()
    if not s:
        return None
    try:
        return _uri_adapter.validate_python(s)
    except ValidationError:
        return None

def to_uris(o: Any) -> list[AnyUrl]|None:
    """One URI per line, lines that aren't URIs are dropped"""
    if o is None:
        return None
    if isinstance(o, list) and all(isinstance(u, AnyUrl) for u in o):
        return list(o)
    uris = [to_uri(line) for line in str(o).split("\n")]
    return [u for u in uris if u is not None]

def to_str(o: Any) -> str|None:
    return None if o is None else str(o)

def hyperlink(uri: AnyUrl|str, caption: str|None = None) -> str:
    """
    Render a URI as a HYPERLINK formula for writing to a cell.
    The caption defaults to the URI itself.
    """
    u = str(uri)
    if not caption or not caption.strip():
        caption = u
    return f'=HYPERLINK("{u}";"{caption}")'

DEFAULT_CONVERTERS: Mapping[Any, Converter] = types.MappingProxyType({
    bool: to_bool,
    int: to_int,
    Byte: to_byte,
    UShort: to_ushort,
    Long: to_long,
    Decimal: to_decimal,
    float: to_float,
    datetime: to_datetime,
    date: to_date,
    time: to_time,
    timedelta: to_timedelta,
    AnyUrl: to_uri,
    list[AnyUrl]: to_uris,
    str: to_str,
})

def resolve_type(field_type: Any) -> Any:
    """
    Strip Optional from a field type so 'int|None' looks up 'int'.
    Anything else is returned as is.
    """
    origin = typing.get_origin(field_type)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(field_type) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return field_type

class ConverterSet(Mapping):
    """
    Read-only registry of field type -> converter.
    Built from DEFAULT_CONVERTERS with an override layer on top, last
    registration for a type wins.  merged() gives a new set, this one
    is never touched.

    time_zone sets the zone used for ZonedDateTime fields, either a
    tzinfo or an IANA name like 'Europe/London'.  UTC when not given.
    """
    def __init__(self, additional: Mapping[Any, Converter]|None = None,
                 time_zone: tzinfo|str|None = None) -> None:
        zone = ZoneInfo(time_zone) if isinstance(time_zone, str) else time_zone
        self._zone = zone if zone is not None else timezone.utc
        converters = dict(DEFAULT_CONVERTERS)
        converters[ZonedDateTime] = partial(to_zoned_datetime, zone=self._zone)
        if additional:
            converters.update(additional)
        self._converters = types.MappingProxyType(converters)

    def __getitem__(self, key: Any) -> Converter:
        return self._converters[key]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._converters)

    def __len__(self) -> int:
        return len(self._converters)

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{len(self)} types@{self._zone}"

    @property
    def time_zone(self) -> tzinfo:
        return self._zone

    def merged(self, additional: Mapping[Any, Converter]|None) -> Self:
        """New set with additional converters layered over this one"""
        if not additional:
            return self
        result = ConverterSet(time_zone=self._zone)
        converters = dict(self._converters)
        converters.update(additional)
        result._converters = types.MappingProxyType(converters)
        return result

    def convert(self, field_type: Any, value: Any) -> Any:
        """
        Convert value to field_type.  With no converter registered for
        the type the value is passed through unconverted.
        """
        converter = self._converters.get(resolve_type(field_type))
        if converter is None:
            return value
        return converter(value)
