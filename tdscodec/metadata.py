"""Column metadata derived from TYPE_INFO: declarations, names, lengths, scan types."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TypeVar

from tdscodec.typeinfo import TypeId, TypeInfo

_T = TypeVar("_T")

_MAX_BINARY_LENGTH = 2147483645
_MAX_LOB_LENGTH = 2147483647


class ScanType(enum.Enum):
    """The kind of Python value a column is read into."""

    INT = int
    FLOAT = float
    BYTES = bytes
    STR = str
    BOOL = bool
    DATETIME = datetime
    ANY = object


def _by_size(ti: TypeInfo, choices: dict[int, _T], what: str) -> _T:
    try:
        return choices[ti.size]
    except KeyError:
        raise ValueError(f"invalid size of {what}") from None


def _is_max(size: int) -> bool:
    return size > 8000 or size == 0


_FIXED_SCAN = {
    TypeId.INT1: ScanType.INT,
    TypeId.INT2: ScanType.INT,
    TypeId.INT4: ScanType.INT,
    TypeId.INT8: ScanType.INT,
    TypeId.FLT4: ScanType.FLOAT,
    TypeId.FLT8: ScanType.FLOAT,
    TypeId.BIGVARBIN: ScanType.BYTES,
    TypeId.VARCHAR: ScanType.STR,
    TypeId.NVARCHAR: ScanType.STR,
    TypeId.BIT: ScanType.BOOL,
    TypeId.BITN: ScanType.BOOL,
    TypeId.DECIMALN: ScanType.BYTES,
    TypeId.NUMERICN: ScanType.BYTES,
    TypeId.DATETIM4: ScanType.DATETIME,
    TypeId.DATETIME: ScanType.DATETIME,
    TypeId.DATETIME2N: ScanType.DATETIME,
    TypeId.DATEN: ScanType.DATETIME,
    TypeId.TIMEN: ScanType.DATETIME,
    TypeId.DATETIMEOFFSETN: ScanType.DATETIME,
    TypeId.BIGVARCHAR: ScanType.STR,
    TypeId.BIGCHAR: ScanType.STR,
    TypeId.NCHAR: ScanType.STR,
    TypeId.GUID: ScanType.BYTES,
    TypeId.XML: ScanType.STR,
    TypeId.TEXT: ScanType.STR,
    TypeId.NTEXT: ScanType.STR,
    TypeId.IMAGE: ScanType.BYTES,
    TypeId.BIGBINARY: ScanType.BYTES,
    TypeId.VARIANT: ScanType.ANY,
}

_MONEY_TYPES = (TypeId.MONEY, TypeId.MONEY4, TypeId.MONEYN)


def make_scan_type(ti: TypeInfo) -> ScanType:
    """Return the kind of value a column of this type is scanned into."""
    tid = ti.type_id
    if tid == TypeId.INTN:
        return _by_size(ti, dict.fromkeys((1, 2, 4, 8), ScanType.INT), "INTNTYPE")
    if tid == TypeId.FLTN:
        return _by_size(ti, dict.fromkeys((4, 8), ScanType.FLOAT), "FLNNTYPE")
    if tid in _MONEY_TYPES:
        return _by_size(ti, dict.fromkeys((4, 8), ScanType.BYTES), "MONEYN")
    if tid == TypeId.DATETIMEN:
        return _by_size(ti, dict.fromkeys((4, 8), ScanType.DATETIME), "DATETIMEN")
    try:
        return _FIXED_SCAN[tid]
    except KeyError:
        raise ValueError(f"make_scan_type not implemented for type {tid}") from None


def make_decl(ti: TypeInfo) -> str:
    """Return the SQL declaration of a parameter of this type."""
    tid = ti.type_id
    simple = {
        TypeId.NULL: "nvarchar(1)",
        TypeId.INT1: "tinyint",
        TypeId.INT2: "smallint",
        TypeId.INT4: "int",
        TypeId.INT8: "bigint",
        TypeId.FLT4: "real",
        TypeId.FLT8: "float",
        TypeId.MONEY4: "smallmoney",
        TypeId.MONEY: "money",
        TypeId.BIT: "bit",
        TypeId.BITN: "bit",
        TypeId.DATEN: "date",
        TypeId.DATETIM4: "smalldatetime",
        TypeId.DATETIME: "datetime",
        TypeId.TIMEN: "time",
        TypeId.TEXT: "text",
        TypeId.NTEXT: "ntext",
        TypeId.GUID: "uniqueidentifier",
    }
    if tid in simple:
        return simple[tid]
    if tid == TypeId.BIGBINARY:
        return f"binary({ti.size})"
    if tid == TypeId.INTN:
        return _by_size(
            ti, {1: "tinyint", 2: "smallint", 4: "int", 8: "bigint"}, "INTNTYPE"
        )
    if tid == TypeId.FLTN:
        return _by_size(ti, {4: "real", 8: "float"}, "FLNNTYPE")
    if tid in (TypeId.DECIMAL, TypeId.DECIMALN):
        return f"decimal({ti.prec}, {ti.scale})"
    if tid in (TypeId.NUMERIC, TypeId.NUMERICN):
        return f"numeric({ti.prec}, {ti.scale})"
    if tid == TypeId.MONEYN:
        return _by_size(ti, {4: "smallmoney", 8: "money"}, "MONEYNTYPE")
    if tid == TypeId.BIGVARBIN:
        return "varbinary(max)" if _is_max(ti.size) else f"varbinary({ti.size})"
    if tid == TypeId.NCHAR:
        return f"nchar({ti.size // 2})"
    if tid in (TypeId.BIGCHAR, TypeId.CHAR):
        return f"char({ti.size})"
    if tid in (TypeId.BIGVARCHAR, TypeId.VARCHAR):
        return "varchar(max)" if _is_max(ti.size) else f"varchar({ti.size})"
    if tid == TypeId.NVARCHAR:
        return "nvarchar(max)" if _is_max(ti.size) else f"nvarchar({ti.size // 2})"
    if tid == TypeId.DATETIMEN:
        return _by_size(ti, {4: "smalldatetime", 8: "datetime"}, "DATETIMNTYPE")
    if tid == TypeId.DATETIME2N:
        return f"datetime2({ti.scale})"
    if tid == TypeId.DATETIMEOFFSETN:
        return f"datetimeoffset({ti.scale})"
    if tid == TypeId.UDT:
        return ti.udt_info.type_name
    if tid == TypeId.TVP:
        if ti.udt_info.schema_name:
            return f"{ti.udt_info.schema_name}.{ti.udt_info.type_name} READONLY"
        return f"{ti.udt_info.type_name} READONLY"
    raise ValueError(f"make_decl not implemented for type {int(tid):#x}")


_TYPE_NAMES = {
    TypeId.INT1: "TINYINT",
    TypeId.INT2: "SMALLINT",
    TypeId.INT4: "INT",
    TypeId.INT8: "BIGINT",
    TypeId.FLT4: "REAL",
    TypeId.FLT8: "FLOAT",
    TypeId.BIGVARBIN: "VARBINARY",
    TypeId.VARCHAR: "VARCHAR",
    TypeId.NVARCHAR: "NVARCHAR",
    TypeId.BIT: "BIT",
    TypeId.BITN: "BIT",
    TypeId.DECIMALN: "DECIMAL",
    TypeId.NUMERICN: "DECIMAL",
    TypeId.DATETIM4: "SMALLDATETIME",
    TypeId.DATETIME: "DATETIME",
    TypeId.DATETIME2N: "DATETIME2",
    TypeId.DATEN: "DATE",
    TypeId.TIMEN: "TIME",
    TypeId.DATETIMEOFFSETN: "DATETIMEOFFSET",
    TypeId.BIGVARCHAR: "VARCHAR",
    TypeId.BIGCHAR: "CHAR",
    TypeId.NCHAR: "NCHAR",
    TypeId.GUID: "UNIQUEIDENTIFIER",
    TypeId.XML: "XML",
    TypeId.TEXT: "TEXT",
    TypeId.NTEXT: "NTEXT",
    TypeId.IMAGE: "IMAGE",
    TypeId.VARIANT: "SQL_VARIANT",
    TypeId.BIGBINARY: "BINARY",
}


def make_type_name(ti: TypeInfo) -> str:
    """Return the upper-case database type name, without length."""
    tid = ti.type_id
    if tid == TypeId.INTN:
        return _by_size(
            ti, {1: "TINYINT", 2: "SMALLINT", 4: "INT", 8: "BIGINT"}, "INTNTYPE"
        )
    if tid == TypeId.FLTN:
        return _by_size(ti, {4: "REAL", 8: "FLOAT"}, "FLNNTYPE")
    if tid in _MONEY_TYPES:
        return _by_size(ti, {4: "SMALLMONEY", 8: "MONEY"}, "MONEYN")
    if tid == TypeId.DATETIMEN:
        return _by_size(ti, {4: "SMALLDATETIME", 8: "DATETIME"}, "DATETIMEN")
    try:
        return _TYPE_NAMES[tid]
    except KeyError:
        raise ValueError(f"make_type_name not implemented for type {tid}") from None


_NOT_VARIABLE = frozenset(
    {
        TypeId.INT1,
        TypeId.INT2,
        TypeId.INT4,
        TypeId.INT8,
        TypeId.FLT4,
        TypeId.FLT8,
        TypeId.BIT,
        TypeId.BITN,
        TypeId.DECIMALN,
        TypeId.NUMERICN,
        TypeId.DATETIM4,
        TypeId.DATETIME,
        TypeId.DATETIME2N,
        TypeId.DATEN,
        TypeId.TIMEN,
        TypeId.DATETIMEOFFSETN,
        TypeId.GUID,
        TypeId.VARIANT,
        TypeId.BIGBINARY,
    }
)

_SIZED = {
    TypeId.INTN: ((1, 2, 4, 8), "INTNTYPE"),
    TypeId.FLTN: ((4, 8), "FLNNTYPE"),
    TypeId.MONEY: ((4, 8), "MONEYN"),
    TypeId.MONEY4: ((4, 8), "MONEYN"),
    TypeId.MONEYN: ((4, 8), "MONEYN"),
    TypeId.DATETIMEN: ((4, 8), "DATETIMEN"),
}


def make_type_length(ti: TypeInfo) -> tuple[int, bool]:
    """Return the column length and whether the type has a variable length."""
    tid = ti.type_id
    if tid in _SIZED:
        sizes, what = _SIZED[tid]
        return _by_size(ti, dict.fromkeys(sizes, (0, False)), what)
    if tid in _NOT_VARIABLE:
        return 0, False
    if tid in (TypeId.BIGVARBIN, TypeId.BIGVARCHAR):
        return (_MAX_BINARY_LENGTH if ti.size == 0xFFFF else ti.size), True
    if tid in (TypeId.VARCHAR, TypeId.BIGCHAR):
        return ti.size, True
    if tid == TypeId.NVARCHAR:
        return (_MAX_BINARY_LENGTH // 2 if ti.size == 0xFFFF else ti.size // 2), True
    if tid == TypeId.NCHAR:
        return ti.size // 2, True
    if tid == TypeId.XML:
        return 1073741822, True
    if tid in (TypeId.TEXT, TypeId.IMAGE):
        return _MAX_LOB_LENGTH, True
    if tid == TypeId.NTEXT:
        return 1073741823, True
    raise ValueError(f"make_type_length not implemented for type {tid}")


_NO_PRECISION = _NOT_VARIABLE - {TypeId.DECIMALN, TypeId.NUMERICN} | {
    TypeId.BIGVARBIN,
    TypeId.VARCHAR,
    TypeId.BIGVARCHAR,
    TypeId.BIGCHAR,
    TypeId.NVARCHAR,
    TypeId.NCHAR,
    TypeId.XML,
    TypeId.TEXT,
    TypeId.NTEXT,
    TypeId.IMAGE,
}


def make_type_precision_scale(ti: TypeInfo) -> tuple[int, int, bool]:
    """Return precision, scale and whether the type carries them."""
    tid = ti.type_id
    if tid in _SIZED:
        sizes, what = _SIZED[tid]
        return _by_size(ti, dict.fromkeys(sizes, (0, 0, False)), what)
    if tid in (TypeId.DECIMALN, TypeId.NUMERICN):
        return ti.prec, ti.scale, True
    if tid in _NO_PRECISION:
        return 0, 0, False
    raise ValueError(f"make_type_precision_scale not implemented for type {tid}")