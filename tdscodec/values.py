"""Encoding and decoding of TDS scalar values: dates, times, money, decimals."""

from __future__ import annotations

import math
import struct
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

_UTC = timezone.utc
_DATETIME_EPOCH = datetime(1900, 1, 1, tzinfo=_UTC)
_DATE_EPOCH = datetime(1, 1, 1, tzinfo=_UTC)
_US_PER_DAY = 86400 * 10**6
_ONE_US = timedelta(microseconds=1)


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def gregorian_days(year: int, yearday: int) -> int:
    """Return the number of days since 1 January 0001 in the Gregorian calendar."""
    year0 = year - 1
    return (
        year0 * 365
        + _trunc_div(year0, 4)
        - _trunc_div(year0, 100)
        + _trunc_div(year0, 400)
        + yearday
        - 1
    )


_MAX_DAYS = gregorian_days(9999, 365)


def _clamp(days: int, seconds: int, ns: int) -> tuple[int, int, int]:
    if days < 0:
        return 0, 0, 0
    if days > _MAX_DAYS:
        return _MAX_DAYS, 59 + 59 * 60 + 23 * 60 * 60, 999_999_900
    return days, seconds, ns


def _local_parts(value: date) -> tuple[int, int, int]:
    days = gregorian_days(value.year, value.timetuple().tm_yday)
    if isinstance(value, datetime):
        seconds = value.second + value.minute * 60 + value.hour * 3600
        return days, seconds, value.microsecond * 1000
    return days, 0, 0


def _date_time2(value: date) -> tuple[int, int, int]:
    """Days, seconds and nanoseconds of a value, taken from its own wall clock."""
    return _clamp(*_local_parts(value))


def _date_time2_utc(value: date) -> tuple[int, int, int]:
    """Days, seconds and nanoseconds of a value converted to UTC."""
    days, seconds, ns = _local_parts(value)
    offset = value.utcoffset() if isinstance(value, datetime) else None
    if offset:
        total_us = seconds * 10**6 + ns // 1000 - offset // _ONE_US
        extra, rem = divmod(total_us, _US_PER_DAY)
        days += extra
        seconds, us = divmod(rem, 10**6)
        ns = us * 1000
    return _clamp(days, seconds, ns)


def _scaled(unscaled: int, scale: int) -> Decimal:
    sign = 1 if unscaled < 0 else 0
    digits = tuple(int(d) for d in str(abs(unscaled)))
    return Decimal((sign, digits, -scale))


def decode_datetim4(buf: bytes) -> datetime:
    """Decode a 4-byte smalldatetime value."""
    days, minutes = struct.unpack_from("<HH", buf)
    return _DATETIME_EPOCH + timedelta(days=days, minutes=minutes)


def encode_datetim4(value: datetime) -> bytes:
    """Encode a datetime as a 4-byte smalldatetime value."""
    aware = value.utcoffset() is not None
    ref = _DATETIME_EPOCH if aware else datetime(1900, 1, 1)
    days = _trunc_div((value - ref) // _ONE_US, _US_PER_DAY)
    minutes = value.hour * 60 + value.minute
    if days < 0:
        days = 0
        minutes = 0
    return struct.pack("<HH", days & 0xFFFF, minutes & 0xFFFF)


def encode_datetime(value: datetime) -> bytes:
    """Encode a datetime as an 8-byte datetime value, clamped to its range."""
    basedays = gregorian_days(1900, 1)
    days = gregorian_days(value.year, value.timetuple().tm_yday) - basedays
    ns = value.microsecond * 1000
    tm = 300 * (value.second + value.minute * 60 + value.hour * 3600) + ns * 300 // 10**9
    mindays = gregorian_days(1753, 1) - basedays
    maxdays = _MAX_DAYS - basedays
    if days < mindays:
        days = mindays
        tm = 0
    if days > maxdays:
        days = maxdays
        tm = (23 * 60 * 60 + 59 * 60 + 59) * 300 + 299
    return struct.pack("<II", days & 0xFFFFFFFF, tm & 0xFFFFFFFF)


def decode_datetime(buf: bytes) -> datetime:
    """Decode an 8-byte datetime value."""
    days, tm = struct.unpack_from("<iI", buf)
    ms = math.trunc((tm % 300) / 0.3 + 0.5)
    return _DATETIME_EPOCH + timedelta(days=days, seconds=tm // 300, milliseconds=ms)


def decode_money(buf: bytes) -> Decimal:
    """Decode an 8-byte money value (high half first)."""
    raw = bytes(buf[4:8]) + bytes(buf[0:4])
    return _scaled(int.from_bytes(raw, "little", signed=True), 4)


def decode_money4(buf: bytes) -> Decimal:
    """Decode a 4-byte smallmoney value."""
    (money,) = struct.unpack_from("<i", buf)
    return _scaled(money, 4)


def decode_guid(buf: bytes) -> bytes:
    """Return the value as exactly 16 bytes, truncated or zero padded."""
    return bytes(buf[:16]).ljust(16, b"\x00")


def decode_decimal(prec: int, scale: int, buf: bytes) -> Decimal:
    """Decode a decimal/numeric value: a sign byte followed by 32-bit words.

    The precision is carried by the type and does not affect the value.
    """
    if not buf:
        raise ValueError("empty decimal value")
    positive = buf[0] != 0
    words = (len(buf) - 1) // 4
    unscaled = int.from_bytes(bytes(buf[1 : 1 + 4 * words]), "little")
    return _scaled(unscaled if positive else -unscaled, scale)


def _decode_date_int(buf: bytes) -> int:
    return int.from_bytes(bytes(buf[:3]), "little")


def _date_bytes(days: int) -> bytes:
    return (days & 0xFFFFFF).to_bytes(3, "little")


def decode_date(buf: bytes) -> datetime:
    """Decode a 3-byte date value."""
    return _DATE_EPOCH + timedelta(days=_decode_date_int(buf))


def encode_date(value: date) -> bytes:
    """Encode the calendar date of a value as 3 bytes."""
    days, _, _ = _date_time2(value)
    return _date_bytes(days)


def _decode_time_int(scale: int, buf: bytes) -> tuple[int, int]:
    acc = int.from_bytes(bytes(buf), "little")
    acc *= 10 ** max(0, 7 - scale)
    return divmod(acc * 100, 10**9)


def calc_time_size(scale: int) -> int:
    """Return the number of bytes a time field of the given scale occupies."""
    if scale <= 2:
        return 3
    if scale <= 4:
        return 4
    return 5


def _encode_time_int(seconds: int, ns: int, scale: int, size: int) -> bytes:
    if scale > 9:
        raise ValueError(f"invalid time scale: {scale}")
    ticks = (seconds * 10**9 + ns) // 10 ** (9 - scale)
    return (ticks & 0xFF_FFFF_FFFF).to_bytes(5, "little")[:size]


def decode_time(scale: int, buf: bytes) -> datetime:
    """Decode a time value as a moment on 1 January 0001 UTC."""
    sec, ns = _decode_time_int(scale, buf)
    return _DATE_EPOCH + timedelta(seconds=sec, microseconds=ns // 1000)


def encode_time(hour: int, minute: int, second: int, ns: int, scale: int) -> bytes:
    """Encode a time of day with the given fractional-second scale."""
    seconds = hour * 3600 + minute * 60 + second
    return _encode_time_int(seconds, ns, scale, calc_time_size(scale))


def decode_datetime2(scale: int, buf: bytes) -> datetime:
    """Decode a datetime2 value: time field followed by 3 date bytes."""
    timesize = len(buf) - 3
    sec, ns = _decode_time_int(scale, buf[:timesize])
    days = _decode_date_int(buf[timesize:])
    return _DATE_EPOCH + timedelta(days=days, seconds=sec, microseconds=ns // 1000)


def encode_datetime2(value: date, scale: int) -> bytes:
    """Encode a datetime2 value from the wall-clock fields of a value."""
    days, seconds, ns = _date_time2(value)
    timesize = calc_time_size(scale)
    return _encode_time_int(seconds, ns, scale, timesize) + _date_bytes(days)


def decode_datetimeoffset(scale: int, buf: bytes) -> datetime:
    """Decode a datetimeoffset value into an aware datetime in its own offset."""
    timesize = len(buf) - 3 - 2
    sec, ns = _decode_time_int(scale, buf[:timesize])
    days = _decode_date_int(buf[timesize : timesize + 3])
    (offset,) = struct.unpack_from("<h", buf, timesize + 3)
    local = datetime(1, 1, 1) + timedelta(
        days=days, seconds=sec + offset * 60, microseconds=ns // 1000
    )
    return local.replace(tzinfo=timezone(timedelta(minutes=offset)))


def encode_datetimeoffset(value: date, scale: int) -> bytes:
    """Encode a datetimeoffset value; naive values are taken as UTC."""
    timesize = calc_time_size(scale)
    days, seconds, ns = _date_time2_utc(value)
    offset = value.utcoffset() if isinstance(value, datetime) else None
    minutes = 0
    if offset:
        minutes = _trunc_div(offset.days * 86400 + offset.seconds, 60)
    return (
        _encode_time_int(seconds, ns, scale, timesize)
        + _date_bytes(days)
        + (minutes & 0xFFFF).to_bytes(2, "little")
    )


def decode_ucs2(buf: bytes) -> str:
    """Decode little-endian UTF-16 text."""
    try:
        return bytes(buf).decode("utf-16-le")
    except UnicodeDecodeError as exc:
        raise ValueError(f"invalid UCS2 encoding: {exc}") from exc