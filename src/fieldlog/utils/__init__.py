"""Utility functions for the Field Activity Log System."""

from fieldlog.utils.time_utils import (
    format_date,
    format_timestamp,
    parse_timestamp,
)

__all__ = [
    "format_date",
    "format_timestamp",
    "parse_timestamp",
]
