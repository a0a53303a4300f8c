"""Encoding and decoding of SQL Server TDS column types and values."""

__version__ = "0.1.0"
__all__ = ["values", "uniqueidentifier", "typeinfo", "metadata"]