"""Source row parsing and validation.

This module turns one delimited CSV line into a typed growth record.
Invalid lines produce a rejection value instead of raising.
"""

from __future__ import annotations

from datetime import date, datetime
import math

from core.constants import SOURCE_DATE_FORMAT, SOURCE_FIELD_COUNT, SOURCE_FIELD_DELIMITER
from core.types import GrowthRecord, RejectionReason, RowRejection


def parse_row(line: str, line_number: int) -> GrowthRecord | RowRejection:
    """Parse one ``Time,Customer,Facility,GrowthRate`` line.

    Rules apply in order: field count, empty fields, date, number.
    Fields past the fourth are ignored.

    Args:
        line: Raw line text without the trailing newline.
        line_number: One-based line number for diagnostics.

    Returns:
        A validated record, or a rejection naming the failed rule.
    """
    fields = line.split(SOURCE_FIELD_DELIMITER)
    if len(fields) < SOURCE_FIELD_COUNT:
        return RowRejection(line_number, line, RejectionReason.MALFORMED)
    time_text, customer, facility, rate_text = (
        field.strip() for field in fields[:SOURCE_FIELD_COUNT]
    )
    if not (time_text and customer and facility and rate_text):
        return RowRejection(line_number, line, RejectionReason.MISSING_FIELD)
    record_date = parse_source_date(time_text)
    if record_date is None:
        return RowRejection(line_number, line, RejectionReason.INVALID_DATE)
    growth_rate = parse_growth_rate(rate_text)
    if growth_rate is None:
        return RowRejection(line_number, line, RejectionReason.INVALID_NUMBER)
    return GrowthRecord(
        time=record_date,
        customer=customer,
        facility=facility,
        growth_rate=growth_rate,
    )


def parse_source_date(value: str) -> date | None:
    """Parse a ``DD-MM-YYYY`` date, returning None for impossible dates."""
    try:
        return datetime.strptime(value, SOURCE_DATE_FORMAT).date()
    except ValueError:
        return None


def parse_growth_rate(value: str) -> float | None:
    """Parse a finite float, returning None for text, NaN, or infinity."""
    try:
        growth_rate = float(value)
    except ValueError:
        return None
    if not math.isfinite(growth_rate):
        return None
    return growth_rate
