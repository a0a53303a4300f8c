import struct
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from tdscodec.values import (
    calc_time_size,
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
    encode_date,
    encode_datetim4,
    encode_datetime,
    encode_datetime2,
    encode_datetimeoffset,
    encode_time,
    gregorian_days,
)

UTC = timezone.utc


@pytest.mark.parametrize("year", [1, 4, 100, 1753, 1900, 2000, 2001, 9999])
@pytest.mark.parametrize("yearday", [1, 60, 365])
def test_gregorian_days_matches_ordinal(year, yearday):
    assert gregorian_days(year, yearday) == date(year, 1, 1).toordinal() - 1 + yearday - 1


@pytest.mark.parametrize(
    "scale,size", [(0, 3), (1, 3), (2, 3), (3, 4), (4, 4), (5, 5), (6, 5), (7, 5)]
)
def test_calc_time_size(scale, size):
    assert calc_time_size(scale) == size


def test_decode_datetime_epoch():
    assert decode_datetime(bytes(8)) == datetime(1900, 1, 1, tzinfo=UTC)


def test_encode_datetime_epoch_is_zero():
    assert encode_datetime(datetime(1900, 1, 1)) == bytes(8)


@pytest.mark.parametrize(
    "value",
    [
        datetime(2006, 1, 2, 22, 4, 5, 787000),
        datetime(2006, 1, 2, 22, 4, 5),
        datetime(1800, 6, 1, 12, 0),
        datetime(1753, 1, 1),
        datetime(9999, 12, 31, 23, 59, 59, 997000),
    ],
)
def test_datetime_round_trip(value):
    assert decode_datetime(encode_datetime(value)) == value.replace(tzinfo=UTC)


def test_encode_datetime_clamps_below_minimum():
    assert encode_datetime(datetime(1700, 1, 1, 5, 0)) == encode_datetime(datetime(1753, 1, 1))


def test_datetime_length():
    assert len(encode_datetime(datetime(2020, 5, 5))) == 8


def test_decode_datetim4_epoch():
    assert decode_datetim4(bytes(4)) == datetime(1900, 1, 1, tzinfo=UTC)


@pytest.mark.parametrize(
    "value",
    [
        datetime(2006, 1, 2, 22, 4),
        datetime(1900, 1, 1),
        datetime(2079, 6, 6, 23, 59),
        datetime(2006, 1, 2, 22, 4, tzinfo=UTC),
    ],
)
def test_datetim4_round_trip(value):
    assert decode_datetim4(encode_datetim4(value)) == value.replace(tzinfo=UTC)


def test_encode_datetim4_before_epoch_is_zero():
    assert encode_datetim4(datetime(1850, 3, 3, 10, 30)) == bytes(4)


def test_encode_datetim4_less_than_a_day_before_epoch_keeps_minutes():
    encoded = encode_datetim4(datetime(1899, 12, 31, 23, 0))
    assert decode_datetim4(encoded) == datetime(1900, 1, 1, 23, 0, tzinfo=UTC)


def _money_bytes(amount):
    unscaled = int(amount * 10000)
    return struct.pack("<iI", unscaled >> 32, unscaled & 0xFFFFFFFF)


@pytest.mark.parametrize(
    "amount",
    [Decimal("12345.6789"), Decimal("-0.0001"), Decimal("922337203685477.5807"), Decimal("0")],
)
def test_decode_money(amount):
    assert decode_money(_money_bytes(amount)) == amount


@pytest.mark.parametrize("amount", [Decimal("-1.2345"), Decimal("214748.3647"), Decimal("0")])
def test_decode_money4(amount):
    assert decode_money4(struct.pack("<i", int(amount * 10000))) == amount


def test_decode_money_keeps_four_places():
    assert decode_money(_money_bytes(Decimal("1"))).as_tuple().exponent == -4


def test_decode_guid_truncates_and_pads():
    assert decode_guid(bytes(range(20))) == bytes(range(16))
    assert decode_guid(b"\x01\x02") == b"\x01\x02" + bytes(14)


def _decimal_bytes(positive, unscaled):
    return bytes([1 if positive else 0]) + unscaled.to_bytes(16, "little")


def test_decode_decimal_positive():
    assert decode_decimal(10, 2, _decimal_bytes(True, 12345)) == Decimal("123.45")


def test_decode_decimal_negative():
    assert decode_decimal(10, 2, _decimal_bytes(False, 12345)) == Decimal("-123.45")


def test_decode_decimal_full_precision_is_exact():
    unscaled = 10**38 - 1
    assert decode_decimal(38, 0, _decimal_bytes(True, unscaled)) == Decimal(unscaled)


def test_decode_decimal_empty_raises():
    with pytest.raises(ValueError):
        decode_decimal(10, 2, b"")


def test_decode_date_epoch():
    assert decode_date(bytes(3)) == datetime(1, 1, 1, tzinfo=UTC)


@pytest.mark.parametrize("value", [date(2006, 1, 2), date(1, 1, 1), date(9999, 12, 31)])
def test_date_round_trip(value):
    assert decode_date(encode_date(value)) == datetime(value.year, value.month, value.day, tzinfo=UTC)


def test_encode_date_ignores_time_of_day():
    assert encode_date(datetime(2006, 1, 2, 22, 4, 5)) == encode_date(date(2006, 1, 2))


@pytest.mark.parametrize("scale", range(8))
def test_encode_time_length(scale):
    assert len(encode_time(1, 2, 3, 0, scale)) == calc_time_size(scale)


def test_time_round_trip_full_scale():
    buf = encode_time(22, 4, 5, 787_000_000, 7)
    assert decode_time(7, buf) == datetime(1, 1, 1, 22, 4, 5, 787000, tzinfo=UTC)


def test_time_scale_zero_drops_fraction():
    buf = encode_time(22, 4, 5, 999_000_000, 0)
    assert decode_time(0, buf) == datetime(1, 1, 1, 22, 4, 5, tzinfo=UTC)


def test_encode_time_rejects_large_scale():
    with pytest.raises(ValueError):
        encode_time(1, 2, 3, 0, 12)


@pytest.mark.parametrize("scale", [3, 7])
def test_datetime2_round_trip(scale):
    value = datetime(2006, 1, 2, 22, 4, 5, 787000)
    buf = encode_datetime2(value, scale)
    assert len(buf) == 3 + calc_time_size(scale)
    assert decode_datetime2(scale, buf) == value.replace(tzinfo=UTC)


def test_datetimeoffset_round_trip_crossing_midnight():
    zone = timezone(timedelta(hours=-7))
    value = datetime(2006, 1, 2, 22, 4, 5, 787000, tzinfo=zone)
    decoded = decode_datetimeoffset(7, encode_datetimeoffset(value, 7))
    assert decoded == value
    assert decoded.utcoffset() == value.utcoffset()
    assert (decoded.hour, decoded.minute, decoded.second) == (22, 4, 5)


def test_datetimeoffset_naive_is_utc():
    value = datetime(2006, 1, 2, 22, 4, 5)
    decoded = decode_datetimeoffset(0, encode_datetimeoffset(value, 0))
    assert decoded == value.replace(tzinfo=UTC)
    assert decoded.utcoffset() == timedelta(0)


def test_decode_datetimeoffset_zero():
    assert decode_datetimeoffset(0, bytes(8)) == datetime(1, 1, 1, tzinfo=UTC)


def test_decode_ucs2_round_trip():
    text = "héllo ☀ Я"
    assert decode_ucs2(text.encode("utf-16-le")) == text


def test_decode_ucs2_odd_length_raises():
    with pytest.raises(ValueError):
        decode_ucs2(b"a\x00b")