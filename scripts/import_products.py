"""
Import products from a spreadsheet without going through the API.

Usage:
    # Let the AI detect every column
    python scripts/import_products.py data/catalogo.xlsx

    # Pin some columns, auto-detect the rest
    python scripts/import_products.py data/catalogo.csv \
        --mapping name=Produto --mapping price="Preço (R$)"

    # Show what the AI extracts without writing anything
    python scripts/import_products.py data/catalogo.xlsx --dry-run
"""

import argparse
import asyncio
import os
import sys

# Allow imports from the project root when running as a script
_root_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..")
sys.path.insert(0, _root_dir)

from dotenv import load_dotenv
load_dotenv(os.path.join(_root_dir, ".env"))

from exceptions import AppError
from models.product_import import ColumnMapping, ImportProgress
from parsers.spreadsheet_parser import read_spreadsheet, extract_columns
from services.import_progress_service import ProgressReporter
from services.import_service import get_import_service


def parse_mapping(pairs: list[str]) -> ColumnMapping:
    """
    Turn ["name=Produto", "price=Preço"] into a ColumnMapping.

    Raises ValueError on an unknown field or a pair without "=".
    """
    values = {}
    for pair in pairs:
        field, sep, column = pair.partition("=")
        field = field.strip()
        if not sep or not field:
            raise ValueError(f"Invalid mapping '{pair}', expected field=Column")
        if field not in ColumnMapping.model_fields:
            raise ValueError(
                f"Unknown field '{field}'. Valid fields: {', '.join(ColumnMapping.model_fields)}"
            )
        values[field] = column
    return ColumnMapping(**values)


def print_progress(progress: ImportProgress) -> None:
    counter = f" [{progress.current}/{progress.total}]" if progress.total else ""
    print(f"  {progress.status.value:<10}{counter} {progress.message}")


async def run(path: str, mapping: ColumnMapping, dry_run: bool) -> int:
    with open(path, "rb") as f:
        rows = read_spreadsheet(f.read(), filename=os.path.basename(path))

    print(f"Read {len(rows)} rows from {path}")
    if not rows:
        print("No data rows found; nothing to import.")
        return 0

    print(f"Columns: {', '.join(extract_columns(rows))}")
    if not mapping.is_empty:
        print(f"Auto-detected fields: {', '.join(mapping.auto_detect_fields()) or 'none'}")

    service = get_import_service()

    if dry_run:
        snapshot = service.reference_service.fetch_snapshot()
        result = await service.extract(
            rows, snapshot, mapping, ProgressReporter(print_progress, total=len(rows))
        )
        print(f"\nProducts extracted: {len(result.products)}")
        for product in result.products:
            print(f"  - {product.name} | {product.category} | {product.price:.2f}"
                  f" | sizes: {', '.join(product.sizes) or '-'}"
                  f" | colors: {', '.join(c.name for c in product.colors) or '-'}")
        print(f"New categories: {', '.join(result.new_categories) or 'none'}")
        print(f"New colors: {', '.join(c.name for c in result.new_colors) or 'none'}")
        for error in result.errors:
            print(f"  ! {error}")
        return 0

    summary = await service.execute_import(rows, column_mapping=mapping, on_progress=print_progress)

    print("\n" + "=" * 60)
    print("IMPORT SUMMARY")
    print("=" * 60)
    print(f"Products created:   {summary.products_created}")
    print(f"Categories created: {summary.categories_created}")
    print(f"Colors created:     {summary.materials_created}")
    print(f"Rows processed:     {summary.rows_processed} of {summary.rows_received}")

    if summary.warnings:
        print(f"\nWarnings ({len(summary.warnings)}):")
        for warning in summary.warnings:
            print(f"  - {warning}")

    if summary.errors:
        print(f"\nErrors ({len(summary.errors)}):")
        for error in summary.errors:
            print(f"  - {error}")

    return 1 if summary.errors and not summary.products_created else 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Import products from a spreadsheet with AI")
    parser.add_argument("file", help="Spreadsheet to import (.xlsx, .xls or .csv)")
    parser.add_argument(
        "--mapping",
        action="append",
        default=[],
        metavar="FIELD=COLUMN",
        help="Map a product field to a column (repeatable)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only run the AI extraction and print the result"
    )
    args = parser.parse_args()

    try:
        mapping = parse_mapping(args.mapping)
    except ValueError as e:
        parser.error(str(e))

    try:
        return asyncio.run(run(args.file, mapping, args.dry_run))
    except AppError as e:
        print(f"\nImport failed: {e.message}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
