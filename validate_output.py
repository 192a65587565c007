"""
Validates Tennis Abstract match CSV output structure
Usage: python validate_output.py output.csv
"""

import csv
import sys
from pathlib import Path

from scraper import CSV_HEADERS, DEFAULT_OUTPUT

EXPECTED_HEADERS = CSV_HEADERS

def validate_csv(csv_file) -> bool:
    csv_file = Path(csv_file)

    print(f"\n{'='*80}")
    print("🔍 VALIDATING CSV STRUCTURE")
    print(f"{'='*80}\n")
    print(f"📄 Checking: {csv_file.name}")

    if not csv_file.exists():
        print(f"  ❌ {csv_file} not found")
        return False

    valid = True
    try:
        with open(csv_file, 'r', encoding='utf-8', newline='') as f:
            reader = csv.DictReader(f)
            headers = reader.fieldnames

            if headers != EXPECTED_HEADERS:
                print(f"  ❌ Header mismatch!")
                missing = [h for h in EXPECTED_HEADERS if h not in (headers or [])]
                extra = [h for h in (headers or []) if h not in EXPECTED_HEADERS]
                if missing:
                    print(f"     Missing: {missing}")
                if extra:
                    print(f"     Extra: {extra}")
                return False

            row_count = 0
            players = set()
            for line_num, row in enumerate(reader, start=2):
                row_count += 1
                if not row["Player"] or not row["Date"]:
                    print(f"  ❌ Line {line_num}: empty Player or Date")
                    valid = False
                players.add(row["Player"])

            print(f"  ✓ Headers correct ({len(headers)} columns)")
            print(f"  ✓ {row_count} data rows for {len(players)} players")

    except (OSError, csv.Error) as e:
        print(f"  ❌ Error reading file: {e}")
        valid = False

    print(f"\n{'='*80}")
    print("✅ VALIDATION PASSED" if valid else "❌ VALIDATION FAILED")
    print(f"{'='*80}\n")
    return valid

if __name__ == "__main__":
    target = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_OUTPUT
    sys.exit(0 if validate_csv(target) else 1)
