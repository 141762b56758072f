#!/usr/bin/env python3
"""
delete_paper.py - Delete a paper and all of its questions

Usage:
    python delete_paper.py --id 3
"""

import argparse
import sys

from database import delete_paper, get_paper, init_db


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Delete a paper and all its associated data")
    parser.add_argument("-i", "--id", type=int, required=True, help="Paper ID to delete")
    args = parser.parse_args(argv)

    init_db()
    paper = get_paper(args.id)
    if not paper:
        print(f"[ERROR] Paper with ID {args.id} not found")
        return 1

    print("=" * 60)
    print("DELETING PAPER")
    print("=" * 60)
    print(f"ID:        {paper['id']}")
    print(f"Name:      {paper['name']}")
    print(f"Questions: {paper['question_count']}")
    print("=" * 60)

    deleted = delete_paper(args.id)
    print(f"   Deleted {deleted} questions")
    print("   Deleted paper")

    print(f'\n[OK] Paper "{paper["name"]}" deleted successfully')
    return 0


if __name__ == "__main__":
    sys.exit(main())
