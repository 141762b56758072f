#!/usr/bin/env python3
"""
combine_papers.py - Join two paper JSON files that are parts of the same paper

Useful when a paper was ingested in two page ranges. Questions from the
second file continue the numbering of the first; tokens and cost are summed.

Usage:
    python combine_papers.py --first output/part1.json --second output/part2.json \
        --output output/combined.json
"""

import argparse
import sys

from pipeline.paper_file import combine_papers, load_paper_file, save_paper_file


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Combine two paper JSON files")
    parser.add_argument("--first", type=str, required=True, help="First part (earlier pages)")
    parser.add_argument("--second", type=str, required=True, help="Second part (later pages)")
    parser.add_argument("-o", "--output", type=str, required=True, help="Combined output file")
    parser.add_argument("-n", "--name", type=str, help="Name for the combined paper (default: first part's name)")
    args = parser.parse_args(argv)

    try:
        first = load_paper_file(args.first)
        second = load_paper_file(args.second)
    except (OSError, ValueError) as e:
        print(f"[ERROR] {e}")
        return 1

    combined = combine_papers(first, second, name=args.name)
    output_path = save_paper_file(combined, args.output)

    stats = combined.stats
    print(f"[OK] Combined {len(first.questions)} + {len(second.questions)} = "
          f"{len(combined.questions)} questions")
    print(f"Output written to: {output_path}")
    print("Stats:")
    print(f"   - Total questions: {stats['totalQuestions']}")
    print(f"   - Pages processed: {stats['pagesProcessed']}")
    print(f"   - Estimated cost: {stats['estimatedCost']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
