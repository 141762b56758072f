#!/usr/bin/env python3
"""
import_paper.py - Import a paper JSON file into the database

Usage:
    python import_paper.py --file output/paper-explained.json
    python import_paper.py --file output/paper.json --skip-existing
"""

import argparse
import sys
from pathlib import Path

from database import get_paper_by_name, init_db, save_paper
from pipeline.paper_file import load_paper_file


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import extracted questions from JSON file to database")
    parser.add_argument("-f", "--file", type=str, required=True, help="Path to JSON file (from dry-run output)")
    parser.add_argument("--skip-existing", action="store_true",
                        help="Skip if paper with same name already exists")
    args = parser.parse_args(argv)

    file_path = Path(args.file).resolve()

    print("=" * 60)
    print("IMPORT TO DATABASE")
    print("=" * 60)
    print(f"File: {file_path}")
    print("=" * 60)

    if not file_path.exists():
        print(f"\n[ERROR] File not found: {file_path}")
        return 1

    try:
        paper = load_paper_file(file_path)
    except ValueError as e:
        print(f"\n[ERROR] {e}")
        return 1

    print(f"\nPaper: {paper.name}")
    print(f"Source: {paper.source}")
    print(f"Questions: {len(paper.questions)}")

    init_db()

    if args.skip_existing and get_paper_by_name(paper.name):
        print(f'\n[SKIP] Paper "{paper.name}" already exists.')
        return 0

    print("\n[INFO] Saving to database...")
    paper_id = save_paper(paper)
    print(f"   Created paper: {paper.name} (ID: {paper_id})")
    print(f"   Inserted {len(paper.questions)} questions ({paper.explained_count} with explanations)")

    print("\n[OK] Import complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
