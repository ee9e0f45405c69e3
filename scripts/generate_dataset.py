"""
Coffee Retail Dataset Generator
Writes a reproducible demo snapshot (city, customers, products, sales CSVs)
"""

import argparse
from pathlib import Path

from coffee_expansion.config.logging import configure_logging
from coffee_expansion.data.generators import SnapshotGenerator

OUTPUT_DIR = Path(__file__).parent.parent / "data"


def main():
    parser = argparse.ArgumentParser(description="Generate the demo coffee sales dataset")
    parser.add_argument("--output-dir", type=Path, default=OUTPUT_DIR)
    parser.add_argument("--customers", type=int, default=500)
    parser.add_argument("--sales", type=int, default=10_000)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    configure_logging(log_format="text")

    generator = SnapshotGenerator(seed=args.seed)
    snapshot = generator.generate(customers=args.customers, sales=args.sales)
    written = generator.write_csv(snapshot, args.output_dir)

    print("=" * 50)
    print("DATASET GENERATION COMPLETE")
    print("=" * 50)
    for name, path in written.items():
        print(f"  {name}: {path}")
    counts = snapshot.row_counts()
    print(f"\n  {counts['cities']} cities, {counts['customers']:,} customers, "
          f"{counts['products']} products, {counts['sales']:,} sales")


if __name__ == "__main__":
    main()
