#!/usr/bin/env python3
"""
list_papers.py - Show papers in the database and which questions still lack explanations

Usage:
    python list_papers.py
    python list_papers.py --missing     # also list questions without explanations
"""

import argparse
import sys

from config import CHOICE_LABELS
from database import get_paper_summaries, get_questions, init_db


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="List papers in the database")
    parser.add_argument("--missing", action="store_true",
                        help="List questions without explanations")
    args = parser.parse_args(argv)

    init_db()
    papers = get_paper_summaries()
    print(f"Papers in database: {len(papers)}")

    for p in papers:
        print(f'  - ID: {p["id"]} "{p["name"]}" ({p["source"]})')
        print(f'    Questions: {p["questions"]}, With explanations: {p["with_explanations"]}')

        if not args.missing or p["questions"] == p["with_explanations"]:
            continue

        print("\n    Questions WITHOUT explanations:")
        for q in get_questions(p["id"]):
            if q["explanation"] is not None:
                continue
            idx = q["correct_choice"]
            label = CHOICE_LABELS[idx] if 0 <= idx < len(CHOICE_LABELS) else str(idx)
            print(f'      [{q["order_index"]}] correct: {label}, choices: {len(q["choices"])}')
            print(f'          "{q["question_text"][:70]}..."')
        print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
