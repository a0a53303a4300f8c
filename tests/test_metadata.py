from datetime import datetime

import pytest

from tdscodec.metadata import (
    ScanType,
    make_decl,
    make_scan_type,
    make_type_length,
    make_type_name,
    make_type_precision_scale,
)
from tdscodec.typeinfo import TypeId, TypeInfo, UdtInfo


@pytest.mark.parametrize(
    "type_id, size, expected",
    [
        (TypeId.INT8, 0, ScanType.INT),
        (TypeId.FLT4, 0, ScanType.FLOAT),
        (TypeId.FLT8, 0, ScanType.FLOAT),
        (TypeId.VARCHAR, 0, ScanType.STR),
        (TypeId.DATETIME, 0, ScanType.DATETIME),
        (TypeId.DATETIM4, 0, ScanType.DATETIME),
        (TypeId.INT1, 0, ScanType.INT),
        (TypeId.INT2, 0, ScanType.INT),
        (TypeId.INT4, 0, ScanType.INT),
        (TypeId.INTN, 4, ScanType.INT),
        (TypeId.MONEY, 8, ScanType.BYTES),
    ],
)
def test_make_scan_type(type_id, size, expected):
    assert make_scan_type(TypeInfo(type_id, size=size)) is expected


def test_scan_type_values():
    assert ScanType.DATETIME.value is datetime
    assert make_scan_type(TypeInfo(TypeId.VARIANT)).value is object


def test_scan_type_invalid_intn_size():
    with pytest.raises(ValueError, match="INTNTYPE"):
        make_scan_type(TypeInfo(TypeId.INTN, size=3))


def test_scan_type_money_requires_size():
    with pytest.raises(ValueError, match="MONEYN"):
        make_scan_type(TypeInfo(TypeId.MONEY))


@pytest.mark.parametrize(
    "type_id, expected",
    [
        (TypeId.DATETIME, "DATETIME"),
        (TypeId.DATETIM4, "SMALLDATETIME"),
        (TypeId.BIGBINARY, "BINARY"),
    ],
)
def test_make_type_name(type_id, expected):
    assert make_type_name(TypeInfo(type_id)) == expected


def test_make_type_name_sized():
    assert make_type_name(TypeInfo(TypeId.MONEYN, size=4)) == "SMALLMONEY"
    assert make_type_name(TypeInfo(TypeId.INTN, size=8)) == "BIGINT"
    with pytest.raises(ValueError):
        make_type_name(TypeInfo(TypeId.DATETIMEN, size=2))


def test_make_type_name_unsupported():
    with pytest.raises(ValueError):
        make_type_name(TypeInfo(TypeId.UDT))


@pytest.mark.parametrize(
    "type_id, expected",
    [
        (TypeId.DATETIME, (0, False)),
        (TypeId.DATETIM4, (0, False)),
        (TypeId.BIGBINARY, (0, False)),
    ],
)
def test_make_type_length(type_id, expected):
    assert make_type_length(TypeInfo(type_id)) == expected


@pytest.mark.parametrize(
    "type_id, size, expected",
    [
        (TypeId.NVARCHAR, 0xFFFF, (1073741822, True)),
        (TypeId.NVARCHAR, 100, (50, True)),
        (TypeId.BIGVARCHAR, 0xFFFF, (2147483645, True)),
        (TypeId.BIGVARBIN, 30, (30, True)),
        (TypeId.TEXT, 0, (2147483647, True)),
        (TypeId.NTEXT, 0, (1073741823, True)),
        (TypeId.XML, 0, (1073741822, True)),
    ],
)
def test_make_type_length_variable(type_id, size, expected):
    assert make_type_length(TypeInfo(type_id, size=size)) == expected


@pytest.mark.parametrize(
    "type_id, expected",
    [
        (TypeId.DATETIME, (0, 0, False)),
        (TypeId.DATETIM4, (0, 0, False)),
        (TypeId.BIGBINARY, (0, 0, False)),
    ],
)
def test_make_type_precision_scale(type_id, expected):
    assert make_type_precision_scale(TypeInfo(type_id)) == expected


def test_precision_scale_of_decimal():
    ti = TypeInfo(TypeId.DECIMALN, size=17, prec=18, scale=4)
    assert make_type_precision_scale(ti) == (18, 4, True)


@pytest.mark.parametrize(
    "expected, size, type_id",
    [
        ("varchar(max)", 0xFFFF, TypeId.VARCHAR),
        ("varchar(8000)", 8000, TypeId.VARCHAR),
        ("varchar(4001)", 4001, TypeId.VARCHAR),
        ("nvarchar(max)", 0xFFFF, TypeId.NVARCHAR),
        ("nvarchar(4000)", 8000, TypeId.NVARCHAR),
        ("nvarchar(2001)", 4002, TypeId.NVARCHAR),
        ("varbinary(max)", 0xFFFF, TypeId.BIGVARBIN),
        ("varbinary(8000)", 8000, TypeId.BIGVARBIN),
        ("varbinary(4001)", 4001, TypeId.BIGVARBIN),
    ],
)
def test_make_decl(expected, size, type_id):
    assert make_decl(TypeInfo(type_id, size=size)) == expected


def test_make_decl_other_types():
    assert make_decl(TypeInfo(TypeId.NULL)) == "nvarchar(1)"
    assert make_decl(TypeInfo(TypeId.DECIMALN, prec=10, scale=2)) == "decimal(10, 2)"
    assert make_decl(TypeInfo(TypeId.DATETIME2N, scale=7)) == "datetime2(7)"
    assert make_decl(TypeInfo(TypeId.NCHAR, size=20)) == "nchar(10)"
    assert make_decl(TypeInfo(TypeId.BIGBINARY, size=16)) == "binary(16)"


def test_make_decl_tvp():
    with_schema = TypeInfo(TypeId.TVP, udt_info=UdtInfo(schema_name="dbo", type_name="rows"))
    assert make_decl(with_schema) == "dbo.rows READONLY"
    bare = TypeInfo(TypeId.TVP, udt_info=UdtInfo(type_name="rows"))
    assert make_decl(bare) == "rows READONLY"


def test_make_decl_unsupported():
    with pytest.raises(ValueError, match="0x62"):
        make_decl(TypeInfo(TypeId.VARIANT))