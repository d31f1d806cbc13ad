"""
Spreadsheet parsers module.
"""

from parsers.spreadsheet_parser import (
    read_spreadsheet,
    extract_columns,
    detect_format,
)

__all__ = [
    "read_spreadsheet",
    "extract_columns",
    "detect_format",
]
