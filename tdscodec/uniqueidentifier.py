"""The uniqueidentifier (GUID) value and its wire byte order."""

from __future__ import annotations

from dataclasses import dataclass


def _swap_byte_order(raw: bytes) -> bytes:
    """Reverse the first three GUID groups (4, 2 and 2 bytes)."""
    return raw[3::-1] + raw[5:3:-1] + raw[7:5:-1] + raw[8:]


@dataclass(frozen=True)
class UniqueIdentifier:
    """A 16-byte identifier held in canonical (big-endian group) order."""

    raw: bytes = bytes(16)

    def __post_init__(self) -> None:
        raw = bytes(self.raw)
        if len(raw) != 16:
            raise ValueError("invalid UniqueIdentifier length")
        object.__setattr__(self, "raw", raw)

    @classmethod
    def scan(cls, value: bytes | bytearray | str) -> UniqueIdentifier:
        """Build an identifier from wire bytes or from its 36-character text form."""
        if isinstance(value, (bytes, bytearray)):
            if len(value) != 16:
                raise ValueError("invalid UniqueIdentifier length")
            return cls(_swap_byte_order(bytes(value)))
        if isinstance(value, str):
            if len(value) != 36:
                raise ValueError("invalid UniqueIdentifier string length")
            try:
                raw = bytes.fromhex(value.replace("-", ""))
            except ValueError as exc:
                raise ValueError(f"invalid UniqueIdentifier string: {exc}") from exc
            return cls(raw)
        raise TypeError(f"cannot convert {type(value).__name__} to UniqueIdentifier")

    def value(self) -> bytes:
        """Return the identifier in wire byte order."""
        return _swap_byte_order(self.raw)

    def __str__(self) -> str:
        r = self.raw
        parts = (r[0:4], r[4:6], r[6:8], r[8:10], r[10:])
        return "-".join(part.hex().upper() for part in parts)

    def marshal_text(self) -> bytes:
        """Return the text form as ASCII bytes."""
        return str(self).encode("ascii")