#!/usr/bin/env python3
"""Sample upload workbook generator.

Generates a synthetic case workbook in the layout the importer expects:
- Row 1: Header row (CASE_ID, IS_CURRENT_UK_RESIDENT, FIRST_NAME, LAST_NAME,
  DATE_OF_BIRTH, THIRD_PARTY_REFERENCE_1)
- Row 2+: Data rows

Roughly 10% of residency flags and birth dates are left blank so reports
exercise the empty-cell path.
"""
from __future__ import annotations

import argparse
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from casemaster.models.case_record import REPORT_COLUMNS

FIRST_NAMES = ["Ann", "Ben", "Chloe", "Dev", "Ellis", "Farah", "George", "Hana", "Isla", "Jack"]
LAST_NAMES = ["Lee", "Patel", "Smith", "Jones", "Khan", "Brown", "Taylor", "Wilson", "Evans", "Wright"]


def generate_cases(rows: int, seed: int = 42, blank_ratio: float = 0.1) -> pd.DataFrame:
    """Generate a DataFrame of synthetic case rows (REPORT_COLUMNS order)."""
    rng = np.random.default_rng(seed)
    base = date(1950, 1, 1)

    data: dict[str, list[Any]] = {name: [] for name in REPORT_COLUMNS}
    for i in range(rows):
        resident: Any = bool(rng.integers(0, 2))
        dob: Any = base + timedelta(days=int(rng.integers(0, 365 * 55)))
        if rng.random() < blank_ratio:
            resident = None
        if rng.random() < blank_ratio:
            dob = None
        data["CASE_ID"].append(f"C{i + 1:06d}")
        data["IS_CURRENT_UK_RESIDENT"].append(resident)
        data["FIRST_NAME"].append(str(rng.choice(FIRST_NAMES)))
        data["LAST_NAME"].append(str(rng.choice(LAST_NAMES)))
        data["DATE_OF_BIRTH"].append(dob)
        data["THIRD_PARTY_REFERENCE_1"].append(f"R{int(rng.integers(1, 99999)):05d}")
    return pd.DataFrame(data, columns=list(REPORT_COLUMNS))


def create_excel_file(output_path: Path, rows: int, seed: int = 42) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = generate_cases(rows, seed)
    with pd.ExcelWriter(output_path, engine="openpyxl", date_format="yyyy-mm-dd") as writer:
        df.to_excel(writer, sheet_name="Cases", index=False)
    print(f"Created Excel file: {output_path}")
    print(f"  Rows: {rows} (+ 1 header row)")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic case workbook for upload",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data/cases.xlsx
  %(prog)s data/cases.xlsx --rows 5000 --seed 123
        """,
    )
    parser.add_argument("output", type=Path, help="Output Excel file path")
    parser.add_argument("--rows", type=int, default=100, help="Number of data rows (default: 100)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1

    try:
        create_excel_file(args.output, args.rows, args.seed)
        return 0
    except OSError as e:
        print(f"Error generating workbook: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
