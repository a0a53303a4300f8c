"""TYPE_INFO descriptors and the wire layouts of column values."""

from __future__ import annotations

import enum
import io
import struct
from dataclasses import dataclass, field
from typing import BinaryIO, Callable

from tdscodec.values import (
    decode_date,
    decode_datetim4,
    decode_datetime,
    decode_datetime2,
    decode_datetimeoffset,
    decode_decimal,
    decode_guid,
    decode_money,
    decode_money4,
    decode_time,
    decode_ucs2,
)

PLP_NULL = 0xFFFFFFFFFFFFFFFF
UNKNOWN_PLP_LEN = 0xFFFFFFFFFFFFFFFE
PLP_TERMINATOR = 0x00000000


class TypeId(enum.IntEnum):
    """Data type identifiers used in TYPE_INFO."""

    # fixed-length types
    NULL = 0x1F
    INT1 = 0x30
    BIT = 0x32
    INT2 = 0x34
    INT4 = 0x38
    DATETIM4 = 0x3A
    FLT4 = 0x3B
    MONEY = 0x3C
    DATETIME = 0x3D
    FLT8 = 0x3E
    MONEY4 = 0x7A
    INT8 = 0x7F
    # byte length types
    GUID = 0x24
    INTN = 0x26
    DECIMAL = 0x37
    NUMERIC = 0x3F
    BITN = 0x68
    DECIMALN = 0x6A
    NUMERICN = 0x6C
    FLTN = 0x6D
    MONEYN = 0x6E
    DATETIMEN = 0x6F
    DATEN = 0x28
    TIMEN = 0x29
    DATETIME2N = 0x2A
    DATETIMEOFFSETN = 0x2B
    CHAR = 0x2F
    VARCHAR = 0x27
    BINARY = 0x2D
    VARBINARY = 0x25
    # short length types
    BIGVARBIN = 0xA5
    BIGVARCHAR = 0xA7
    BIGBINARY = 0xAD
    BIGCHAR = 0xAF
    NVARCHAR = 0xE7
    NCHAR = 0xEF
    XML = 0xF1
    UDT = 0xF0
    TVP = 0xF3
    # long length types
    TEXT = 0x23
    IMAGE = 0x22
    NTEXT = 0x63
    VARIANT = 0x62


class BadStreamError(ValueError):
    """The data read from the stream does not follow the protocol."""


_FIXED_SIZES = {
    TypeId.NULL: 0,
    TypeId.INT1: 1,
    TypeId.BIT: 1,
    TypeId.INT2: 2,
    TypeId.INT4: 4,
    TypeId.DATETIM4: 4,
    TypeId.FLT4: 4,
    TypeId.MONEY4: 4,
    TypeId.MONEY: 8,
    TypeId.DATETIME: 8,
    TypeId.FLT8: 8,
    TypeId.INT8: 8,
}

_BYTE_LEN = frozenset(
    {
        TypeId.GUID,
        TypeId.INTN,
        TypeId.DECIMAL,
        TypeId.NUMERIC,
        TypeId.BITN,
        TypeId.DECIMALN,
        TypeId.NUMERICN,
        TypeId.FLTN,
        TypeId.MONEYN,
        TypeId.DATETIMEN,
        TypeId.CHAR,
        TypeId.VARCHAR,
        TypeId.BINARY,
        TypeId.VARBINARY,
    }
)
_DECIMALS = frozenset({TypeId.DECIMAL, TypeId.NUMERIC, TypeId.DECIMALN, TypeId.NUMERICN})
_TIME_TYPES = frozenset({TypeId.TIMEN, TypeId.DATETIME2N, TypeId.DATETIMEOFFSETN})
_SHORT_LEN = frozenset(
    {
        TypeId.BIGVARBIN,
        TypeId.BIGVARCHAR,
        TypeId.BIGBINARY,
        TypeId.BIGCHAR,
        TypeId.NVARCHAR,
        TypeId.NCHAR,
    }
)
_COLLATED_SHORT = frozenset({TypeId.BIGVARCHAR, TypeId.BIGCHAR, TypeId.NVARCHAR, TypeId.NCHAR})
_LONG_LEN = frozenset({TypeId.TEXT, TypeId.IMAGE, TypeId.NTEXT, TypeId.VARIANT})


def _i16(buf: bytes) -> int:
    return struct.unpack("<h", buf)[0]


def _i32(buf: bytes) -> int:
    return struct.unpack("<i", buf)[0]


def _i64(buf: bytes) -> int:
    return struct.unpack("<q", buf)[0]


def _f32(buf: bytes) -> float:
    return struct.unpack("<f", buf)[0]


def _f64(buf: bytes) -> float:
    return struct.unpack("<d", buf)[0]


_FIXED_DECODERS: dict[int, Callable[[bytes], object]] = {
    TypeId.NULL: lambda buf: None,
    TypeId.INT1: lambda buf: buf[0],
    TypeId.BIT: lambda buf: buf[0] != 0,
    TypeId.INT2: _i16,
    TypeId.INT4: _i32,
    TypeId.DATETIM4: decode_datetim4,
    TypeId.FLT4: _f32,
    TypeId.MONEY4: decode_money4,
    TypeId.MONEY: decode_money,
    TypeId.DATETIME: decode_datetime,
    TypeId.FLT8: _f64,
    TypeId.INT8: _i64,
}

_INTN_DECODERS: dict[int, Callable[[bytes], int]] = {
    1: lambda buf: buf[0],
    2: _i16,
    4: _i32,
    8: _i64,
}


def _ucs2(buf: bytes) -> str:
    try:
        return decode_ucs2(buf)
    except ValueError as exc:
        raise BadStreamError(str(exc)) from exc


@dataclass(frozen=True)
class Collation:
    """A collation as sent on the wire, plus the code page for non-Unicode text."""

    lcid_and_flags: int = 0
    sort_id: int = 0
    encoding: str = field(default="cp1252", compare=False)

    def decode(self, buf: bytes) -> str:
        """Decode single-byte character data into text."""
        return bytes(buf).decode(self.encoding, errors="replace")


@dataclass
class UdtInfo:
    """Names describing a CLR user-defined type."""

    db_name: str = ""
    schema_name: str = ""
    type_name: str = ""
    assembly_qualified_name: str = ""


@dataclass
class XmlInfo:
    """Schema information attached to an XML column."""

    schema_present: int = 0
    db_name: str = ""
    owning_schema: str = ""
    xml_schema_collection: str = ""


class TdsReader:
    """Reads little-endian protocol primitives from bytes or a binary stream."""

    def __init__(self, source: bytes | bytearray | memoryview | BinaryIO) -> None:
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        self._stream = source

    def read_exact(self, size: int) -> bytes:
        """Read exactly ``size`` bytes."""
        if size < 0:
            raise BadStreamError(f"invalid read size: {size}")
        chunks = []
        remaining = size
        while remaining:
            chunk = self._stream.read(remaining)
            if not chunk:
                raise BadStreamError(
                    f"unexpected end of stream: wanted {size} bytes, got {size - remaining}"
                )
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def _unpack(self, fmt: str) -> int:
        return struct.unpack(fmt, self.read_exact(struct.calcsize(fmt)))[0]

    def read_byte(self) -> int:
        return self._unpack("<B")

    def read_uint16(self) -> int:
        return self._unpack("<H")

    def read_int32(self) -> int:
        return self._unpack("<i")

    def read_uint32(self) -> int:
        return self._unpack("<I")

    def read_uint64(self) -> int:
        return self._unpack("<Q")

    def read_b_varchar(self) -> str:
        """Read UTF-16 text prefixed by a one-byte character count."""
        return _ucs2(self.read_exact(self.read_byte() * 2))

    def read_us_varchar(self) -> str:
        """Read UTF-16 text prefixed by a two-byte character count."""
        return _ucs2(self.read_exact(self.read_uint16() * 2))


class _Layout(enum.Enum):
    FIXED = enum.auto()
    BYTE_LEN = enum.auto()
    SHORT_LEN = enum.auto()
    LONG_LEN = enum.auto()
    PLP = enum.auto()
    VARIANT = enum.auto()


def _max_size(size: int) -> bool:
    return size > 8000 or size == 0


@dataclass
class TypeInfo:
    """A column or parameter type description (TYPE_INFO)."""

    type_id: int
    size: int = 0
    scale: int = 0
    prec: int = 0
    collation: Collation = field(default_factory=Collation)
    udt_info: UdtInfo = field(default_factory=UdtInfo)
    xml_info: XmlInfo = field(default_factory=XmlInfo)

    def _read_layout(self) -> _Layout:
        tid = self.type_id
        if tid in _FIXED_SIZES:
            return _Layout.FIXED
        if tid == TypeId.DATEN or tid in _TIME_TYPES or tid in _BYTE_LEN:
            return _Layout.BYTE_LEN
        if tid in (TypeId.XML, TypeId.UDT):
            return _Layout.PLP
        if tid in _SHORT_LEN:
            return _Layout.PLP if self.size == 0xFFFF else _Layout.SHORT_LEN
        if tid == TypeId.VARIANT:
            return _Layout.VARIANT
        if tid in _LONG_LEN:
            return _Layout.LONG_LEN
        raise BadStreamError(f"Invalid type {tid}")

    def _write_layout(self) -> _Layout:
        tid = self.type_id
        if tid in _FIXED_SIZES or tid == TypeId.TVP:
            return _Layout.FIXED
        if tid == TypeId.DATEN or tid in _TIME_TYPES or tid in _BYTE_LEN:
            return _Layout.BYTE_LEN
        if tid in _SHORT_LEN or tid in (TypeId.XML, TypeId.UDT):
            return _Layout.PLP if _max_size(self.size) else _Layout.SHORT_LEN
        if tid in _LONG_LEN:
            return _Layout.LONG_LEN
        raise ValueError(f"invalid type {tid}")

    def read_value(self, reader: TdsReader) -> object:
        """Read one value of this type from the reader; ``None`` is NULL."""
        layout = self._read_layout()
        if layout is _Layout.FIXED:
            buf = reader.read_exact(_FIXED_SIZES[self.type_id])
            return _FIXED_DECODERS[self.type_id](buf)
        if layout is _Layout.BYTE_LEN:
            return self._read_byte_len(reader)
        if layout is _Layout.SHORT_LEN:
            return self._read_short_len(reader)
        if layout is _Layout.LONG_LEN:
            return self._read_long_len(reader)
        if layout is _Layout.PLP:
            return self._read_plp(reader)
        return _read_variant(reader)

    def _read_byte_len(self, reader: TdsReader) -> object:
        size = reader.read_byte()
        if size == 0:
            return None
        if size > self.size:
            raise BadStreamError(f"value size {size} exceeds declared size {self.size}")
        buf = reader.read_exact(size)
        tid = self.type_id
        if tid == TypeId.DATEN:
            if len(buf) != 3:
                raise BadStreamError("Invalid size for DATENTYPE")
            return decode_date(buf)
        if tid == TypeId.TIMEN:
            return decode_time(self.scale, buf)
        if tid == TypeId.DATETIME2N:
            return decode_datetime2(self.scale, buf)
        if tid == TypeId.DATETIMEOFFSETN:
            return decode_datetimeoffset(self.scale, buf)
        if tid == TypeId.GUID:
            return decode_guid(buf)
        if tid == TypeId.INTN:
            decoder = _INTN_DECODERS.get(len(buf))
            if decoder is None:
                raise BadStreamError(f"Invalid size for INTNTYPE: {len(buf)}")
            return decoder(buf)
        if tid in _DECIMALS:
            return decode_decimal(self.prec, self.scale, buf)
        if tid == TypeId.BITN:
            if len(buf) != 1:
                raise BadStreamError("Invalid size for BITNTYPE")
            return buf[0] != 0
        if tid == TypeId.FLTN:
            if len(buf) == 4:
                return _f32(buf)
            if len(buf) == 8:
                return _f64(buf)
            raise BadStreamError("Invalid size for FLTNTYPE")
        if tid == TypeId.MONEYN:
            if len(buf) == 4:
                return decode_money4(buf)
            if len(buf) == 8:
                return decode_money(buf)
            raise BadStreamError("Invalid size for MONEYNTYPE")
        if tid == TypeId.DATETIM4:
            return decode_datetim4(buf)
        if tid == TypeId.DATETIME:
            return decode_datetime(buf)
        if tid == TypeId.DATETIMEN:
            if len(buf) == 4:
                return decode_datetim4(buf)
            if len(buf) == 8:
                return decode_datetime(buf)
            raise BadStreamError("Invalid size for DATETIMENTYPE")
        if tid in (TypeId.CHAR, TypeId.VARCHAR):
            return self.collation.decode(buf)
        if tid in (TypeId.BINARY, TypeId.VARBINARY):
            return buf
        raise BadStreamError("Invalid typeid")

    def _read_short_len(self, reader: TdsReader) -> object:
        size = reader.read_uint16()
        if size == 0xFFFF:
            return None
        if size > self.size:
            raise BadStreamError(f"value size {size} exceeds declared size {self.size}")
        buf = reader.read_exact(size)
        tid = self.type_id
        if tid in (TypeId.BIGVARCHAR, TypeId.BIGCHAR):
            return self.collation.decode(buf)
        if tid in (TypeId.BIGVARBIN, TypeId.BIGBINARY, TypeId.UDT):
            return buf
        if tid in (TypeId.NVARCHAR, TypeId.NCHAR):
            return _ucs2(buf)
        raise BadStreamError("Invalid typeid")

    def _read_long_len(self, reader: TdsReader) -> object:
        textptr_size = reader.read_byte()
        if textptr_size == 0:
            return None
        reader.read_exact(textptr_size)
        reader.read_uint64()  # timestamp, unused
        size = reader.read_int32()
        if size == -1:
            return None
        buf = reader.read_exact(size)
        tid = self.type_id
        if tid == TypeId.TEXT:
            return self.collation.decode(buf)
        if tid == TypeId.IMAGE:
            return buf
        if tid == TypeId.NTEXT:
            return _ucs2(buf)
        raise BadStreamError("Invalid typeid")

    def _read_plp(self, reader: TdsReader) -> object:
        if reader.read_uint64() == PLP_NULL:
            return None
        chunks = []
        while chunk_size := reader.read_uint32():
            chunks.append(reader.read_exact(chunk_size))
        buf = b"".join(chunks)
        tid = self.type_id
        if tid in (TypeId.XML, TypeId.NVARCHAR, TypeId.NCHAR, TypeId.NTEXT):
            return _ucs2(buf)
        if tid in (TypeId.BIGVARCHAR, TypeId.BIGCHAR, TypeId.TEXT):
            return self.collation.decode(buf)
        if tid in (TypeId.BIGVARBIN, TypeId.BIGBINARY, TypeId.IMAGE, TypeId.UDT):
            return buf
        raise BadStreamError("Invalid typeid")

    def write_value(self, stream: BinaryIO, buf: bytes | None) -> None:
        """Write one encoded value of this type; ``None`` writes NULL where possible."""
        layout = self._write_layout()
        data = b"" if buf is None else bytes(buf)
        if layout is _Layout.FIXED:
            stream.write(data)
        elif layout is _Layout.BYTE_LEN:
            if self.size > 0xFF or len(data) > 0xFF:
                raise ValueError("Invalid size for BYTELEN_TYPE")
            stream.write(bytes([len(data)]) + data)
        elif layout is _Layout.SHORT_LEN:
            if buf is None:
                stream.write(struct.pack("<H", 0xFFFF))
                return
            if self.size > 0xFFFE:
                raise ValueError("Invalid size for USHORTLEN_TYPE")
            stream.write(struct.pack("<H", self.size) + data)
        elif layout is _Layout.LONG_LEN:
            stream.write(bytes([0x10]))
            stream.write(struct.pack("<QQQ", PLP_NULL, PLP_NULL, PLP_NULL))
            stream.write(struct.pack("<I", self.size & 0xFFFFFFFF) + data)
        else:
            if buf is None:
                stream.write(struct.pack("<Q", PLP_NULL))
                return
            stream.write(struct.pack("<Q", UNKNOWN_PLP_LEN))
            if data:
                stream.write(struct.pack("<I", len(data)) + data)
            stream.write(struct.pack("<I", PLP_TERMINATOR))


def _read_variant(reader: TdsReader) -> object:
    size = reader.read_int32()
    if size == 0:
        return None
    vartype = reader.read_byte()
    propbytes = reader.read_byte()
    remaining = size - 2 - propbytes

    def rest() -> bytes:
        return reader.read_exact(remaining)

    if vartype == TypeId.GUID:
        return rest()
    if vartype == TypeId.BIT:
        return reader.read_byte() != 0
    if vartype == TypeId.INT1:
        return reader.read_byte()
    if vartype == TypeId.INT2:
        return _i16(reader.read_exact(2))
    if vartype == TypeId.INT4:
        return reader.read_int32()
    if vartype == TypeId.INT8:
        return _i64(reader.read_exact(8))
    if vartype == TypeId.DATETIME:
        return decode_datetime(rest())
    if vartype == TypeId.DATETIM4:
        return decode_datetim4(rest())
    if vartype == TypeId.FLT4:
        return _f32(reader.read_exact(4))
    if vartype == TypeId.FLT8:
        return _f64(reader.read_exact(8))
    if vartype == TypeId.MONEY4:
        return decode_money4(rest())
    if vartype == TypeId.MONEY:
        return decode_money(rest())
    if vartype == TypeId.DATEN:
        return decode_date(rest())
    if vartype == TypeId.TIMEN:
        scale = reader.read_byte()
        return decode_time(scale, rest())
    if vartype == TypeId.DATETIME2N:
        scale = reader.read_byte()
        return decode_datetime2(scale, rest())
    if vartype == TypeId.DATETIMEOFFSETN:
        scale = reader.read_byte()
        return decode_datetimeoffset(scale, rest())
    if vartype in (TypeId.BIGVARBIN, TypeId.BIGBINARY):
        reader.read_uint16()  # max length, unused
        return rest()
    if vartype in (TypeId.DECIMALN, TypeId.NUMERICN):
        prec = reader.read_byte()
        scale = reader.read_byte()
        return decode_decimal(prec, scale, rest())
    if vartype in (TypeId.BIGVARCHAR, TypeId.BIGCHAR):
        collation = read_collation(reader)
        reader.read_uint16()
        return collation.decode(rest())
    if vartype in (TypeId.NVARCHAR, TypeId.NCHAR):
        read_collation(reader)
        reader.read_uint16()
        return _ucs2(rest())
    raise BadStreamError("Invalid variant typeid")


def read_collation(reader: TdsReader) -> Collation:
    """Read a 5-byte collation."""
    lcid_and_flags = reader.read_uint32()
    sort_id = reader.read_byte()
    return Collation(lcid_and_flags, sort_id)


def write_collation(stream: BinaryIO, collation: Collation) -> None:
    """Write a 5-byte collation."""
    stream.write(struct.pack("<IB", collation.lcid_and_flags, collation.sort_id))


def _skip_table_names(reader: TdsReader) -> None:
    for _ in range(reader.read_byte()):
        reader.read_us_varchar()


def _read_var_len(ti: TypeInfo, reader: TdsReader) -> None:
    tid = ti.type_id
    if tid == TypeId.DATEN:
        ti.size = 3
    elif tid in _TIME_TYPES:
        ti.scale = reader.read_byte()
        if ti.scale <= 2:
            ti.size = 3
        elif ti.scale <= 4:
            ti.size = 4
        elif ti.scale <= 7:
            ti.size = 5
        else:
            raise BadStreamError("Invalid scale for TIME/DATETIME2/DATETIMEOFFSET type")
        if tid == TypeId.DATETIME2N:
            ti.size += 3
        elif tid == TypeId.DATETIMEOFFSETN:
            ti.size += 5
    elif tid in _BYTE_LEN:
        ti.size = reader.read_byte()
        if tid in _DECIMALS:
            ti.prec = reader.read_byte()
            ti.scale = reader.read_byte()
    elif tid == TypeId.XML:
        ti.xml_info.schema_present = reader.read_byte()
        if ti.xml_info.schema_present:
            ti.xml_info.db_name = reader.read_b_varchar()
            ti.xml_info.owning_schema = reader.read_b_varchar()
            ti.xml_info.xml_schema_collection = reader.read_us_varchar()
    elif tid == TypeId.UDT:
        ti.size = reader.read_uint16()
        ti.udt_info.db_name = reader.read_b_varchar()
        ti.udt_info.schema_name = reader.read_b_varchar()
        ti.udt_info.type_name = reader.read_b_varchar()
        ti.udt_info.assembly_qualified_name = reader.read_us_varchar()
    elif tid in _SHORT_LEN:
        ti.size = reader.read_uint16()
        if tid in _COLLATED_SHORT:
            ti.collation = read_collation(reader)
    elif tid in _LONG_LEN:
        ti.size = reader.read_int32()
        if tid in (TypeId.TEXT, TypeId.NTEXT):
            ti.collation = read_collation(reader)
            _skip_table_names(reader)
        elif tid == TypeId.IMAGE:
            _skip_table_names(reader)
    else:
        raise BadStreamError(f"Invalid type {tid}")


def read_type_info(reader: TdsReader) -> TypeInfo:
    """Read a TYPE_INFO structure."""
    raw_id = reader.read_byte()
    try:
        type_id = TypeId(raw_id)
    except ValueError:
        raise BadStreamError(f"Invalid type {raw_id}") from None
    ti = TypeInfo(type_id)
    if type_id in _FIXED_SIZES:
        ti.size = _FIXED_SIZES[type_id]
    else:
        _read_var_len(ti, reader)
    return ti


def write_type_info(stream: BinaryIO, ti: TypeInfo) -> None:
    """Write a TYPE_INFO structure."""
    tid = ti.type_id
    if not 0 <= tid <= 0xFF:
        raise ValueError(f"invalid type {tid}")
    stream.write(bytes([tid]))
    if tid in _FIXED_SIZES or tid == TypeId.TVP:
        return
    if tid == TypeId.DATEN:
        return
    if tid in _TIME_TYPES:
        stream.write(bytes([ti.scale]))
    elif tid in _BYTE_LEN and tid != TypeId.GUID:
        if ti.size > 0xFF:
            raise ValueError("Invalid size for BYTELEN_TYPE")
        stream.write(bytes([ti.size]))
        if tid in _DECIMALS:
            stream.write(bytes([ti.prec, ti.scale]))
    elif tid == TypeId.GUID:
        if ti.size not in (0x10, 0x00):
            raise ValueError("Invalid size for BYTELEN_TYPE")
        stream.write(bytes([ti.size]))
    elif tid in _SHORT_LEN or tid in (TypeId.XML, TypeId.UDT):
        size = 0xFFFF if _max_size(ti.size) else ti.size
        stream.write(struct.pack("<H", size))
        if tid in _COLLATED_SHORT:
            write_collation(stream, ti.collation)
        elif tid == TypeId.XML:
            stream.write(bytes([ti.xml_info.schema_present]))
    elif tid in _LONG_LEN:
        stream.write(struct.pack("<I", ti.size & 0xFFFFFFFF))
        write_collation(stream, ti.collation)
    else:
        raise ValueError(f"invalid type {tid}")