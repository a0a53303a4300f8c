# tdscodec

Pure-Python building blocks for the Tabular Data Stream (TDS) protocol used by
SQL Server: column type descriptions (TYPE_INFO), the wire layouts of column
values, and the encodings of dates, times, money, decimals and GUIDs. It has
no dependencies outside the standard library.

## Installation

```
pip install tdscodec
```

## Modules

### `tdscodec.values`

Encoders and decoders for individual SQL Server value formats.

- `datetime` and `smalldatetime`: `encode_datetime`, `decode_datetime`,
  `encode_datetim4`, `decode_datetim4`. `encode_datetime` clamps values to
  the range 1753-01-01 to 9999-12-31. Decoded values are aware `datetime`
  objects in UTC.
- `date`, `time`, `datetime2` and `datetimeoffset`: `encode_date`,
  `decode_date`, `encode_time`, `decode_time`, `encode_datetime2`,
  `decode_datetime2`, `encode_datetimeoffset`, `decode_datetimeoffset`.
  `decode_time` returns a moment on 1 January 0001 UTC; `decode_datetimeoffset`
  returns an aware `datetime` in the stored offset. `encode_datetimeoffset`
  treats naive values as UTC.
- `money` and `smallmoney`: `decode_money`, `decode_money4`, returning
  `decimal.Decimal` with four decimal places.
- `decimal` and `numeric`: `decode_decimal(prec, scale, buf)`, returning
  `decimal.Decimal`.
- `uniqueidentifier` bytes: `decode_guid`.
- UTF-16 text: `decode_ucs2`, which raises `ValueError` on invalid input.
- Helpers: `gregorian_days(year, yearday)` and `calc_time_size(scale)`.

### `tdscodec.typeinfo`

The TYPE_INFO rule and the value layouts that go with it.

- `TypeId` is an `IntEnum` of all the type identifiers.
- `read_type_info(reader)` and `write_type_info(stream, ti)` read and write a
  type description as a `TypeInfo` (with `size`, `scale`, `prec`,
  `collation`, `udt_info` and `xml_info`).
- `TypeInfo.read_value(reader)` reads one value of that type (fixed, byte
  length, short length, long length, partially length-prefixed and
  `sql_variant` layouts); `None` stands for NULL.
- `TypeInfo.write_value(stream, buf)` writes already encoded value bytes in
  the layout the type calls for; `None` writes NULL where the layout allows it.
- `TdsReader` reads little-endian primitives (`read_byte`, `read_uint16`,
  `read_int32`, `read_uint32`, `read_uint64`, `read_exact`, `read_b_varchar`,
  `read_us_varchar`) from `bytes` or a binary stream.
- `Collation` is read and written with `read_collation` and
  `write_collation`. Non-Unicode text is decoded with `Collation.encoding`,
  which defaults to `cp1252`.
- Malformed or truncated input raises `BadStreamError` (a `ValueError`).

### `tdscodec.metadata`

Column metadata for a `TypeInfo`. Unsupported types or sizes raise
`ValueError`.

- `make_decl` gives the SQL declaration, such as `nvarchar(4000)` or
  `varbinary(max)`.
- `make_type_name` gives the upper-case type name, such as `DATETIME`.
- `make_type_length` gives `(length, is_variable)`.
- `make_type_precision_scale` gives `(precision, scale, has_precision)`.
- `make_scan_type` gives the kind of Python value, as a `ScanType` member.

### `tdscodec.uniqueidentifier`

`UniqueIdentifier` is a frozen 16-byte value held in canonical order.
`UniqueIdentifier.scan` accepts the 16 bytes SQL Server stores (first three
groups little-endian) or the 36-character text form; `value()` returns the
stored byte order, `str()` the upper-case text form and `marshal_text()` that
text as ASCII bytes.

## Examples

Encoding and decoding a `datetime` value:

```python
import datetime
from tdscodec.values import decode_datetime, encode_datetime

raw = encode_datetime(datetime.datetime(2006, 1, 2, 22, 4, 5))
print(decode_datetime(raw))   # 2006-01-02 22:04:05+00:00
```

Reading a column's type description and one of its values:

```python
import io
from tdscodec.typeinfo import TdsReader, read_type_info
from tdscodec.metadata import make_decl

reader = TdsReader(io.BytesIO(b"\x26\x04" + b"\x04\x2a\x00\x00\x00"))
ti = read_type_info(reader)
print(make_decl(ti))          # int
print(ti.read_value(reader))  # 42
```

Working with a `uniqueidentifier`:

```python
from tdscodec.uniqueidentifier import UniqueIdentifier

uid = UniqueIdentifier.scan("01234567-89AB-CDEF-0123-456789ABCDEF")
print(uid)           # 01234567-89AB-CDEF-0123-456789ABCDEF
print(uid.value())   # bytes in the order SQL Server stores them
```

## What it does not do

- It does not open connections, log in, send queries or read result
  streams; it only handles type descriptions and values.
- It does not pick a code page from a collation's LCID or sort id;
  non-Unicode text is decoded with the `encoding` set on the `Collation`.
- There are no encoders for `money` or `decimal` values.
- There is no command-line program.

## Running the tests

```
pip install -e .[test]
pytest
```