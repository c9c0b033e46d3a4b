"""Input readers for chromophore chemistry data."""

from .chemistry import ChromophoreRecord, parse_chemistry_text, read_chemistry_file

__all__ = [
    "ChromophoreRecord",
    "parse_chemistry_text",
    "read_chemistry_file",
]
