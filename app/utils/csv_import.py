"""
CSV Import
Parses a bank-export style CSV into transaction rows. Bad rows are collected
as errors keyed by their line number in the file; they never abort the batch.
"""
from __future__ import annotations

import csv
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List

REQUIRED_COLUMNS = ["date", "category", "amount", "merchant"]
OPTIONAL_COLUMNS = ["type", "description"]


class CsvImportError(Exception):
    """The file as a whole cannot be imported (bad header, no data)."""

    def __init__(self, message: str, code: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.extra = extra


@dataclass
class CsvParseResult:
    rows: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)


def parse_csv_date(value: str) -> date:
    """Accept YYYY-MM-DD (or a full ISO timestamp) and MM/DD/YYYY."""
    if "/" in value:
        return datetime.strptime(value, "%m/%d/%Y").date()
    return datetime.fromisoformat(value).date() if "T" in value else date.fromisoformat(value)


def parse_transactions_csv(text: str) -> CsvParseResult:
    lines = [(number, line) for number, line in enumerate(text.splitlines(), start=1) if line.strip()]
    if len(lines) < 2:
        raise CsvImportError("CSV file must contain headers and at least one data row", "EMPTY_CSV")

    header_line, rows = lines[0], lines[1:]
    headers = [h.strip().lower() for h in next(csv.reader([header_line[1]]))]

    missing = [col for col in REQUIRED_COLUMNS if col not in headers]
    if missing:
        raise CsvImportError(
            f"Missing required columns: {', '.join(missing)}",
            "INVALID_CSV_FORMAT",
            requiredColumns=REQUIRED_COLUMNS + [f"{col} (optional)" for col in OPTIONAL_COLUMNS],
        )

    result = CsvParseResult()
    for line_number, line in rows:
        values = [v.strip() for v in next(csv.reader([line]))]
        if len(values) < len(headers):
            result.errors.append({"row": line_number, "error": "Incomplete row data"})
            continue

        row = dict(zip(headers, values))
        if not all(row.get(col) for col in REQUIRED_COLUMNS):
            result.errors.append({"row": line_number, "error": "Missing required field"})
            continue

        try:
            amount = float(row["amount"])
        except ValueError:
            amount = math.nan
        if not math.isfinite(amount) or amount <= 0:
            result.errors.append({"row": line_number, "error": "Invalid amount (must be positive number)"})
            continue

        try:
            txn_date = parse_csv_date(row["date"])
        except ValueError:
            result.errors.append(
                {"row": line_number, "error": "Invalid date format (use YYYY-MM-DD or MM/DD/YYYY)"}
            )
            continue

        txn_type = (row.get("type") or "debit").lower()
        if txn_type not in ("debit", "credit"):
            result.errors.append({"row": line_number, "error": 'Type must be either "debit" or "credit"'})
            continue

        result.rows.append({
            "amount": amount,
            "category": row["category"],
            "merchant": row["merchant"],
            "date": txn_date.isoformat(),
            "type": txn_type,
            "description": row.get("description") or f"Imported: {row['merchant']}",
        })

    return result
