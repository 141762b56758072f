#!/usr/bin/env python3
"""
generate_explanations.py - Generate explanations for MCQ questions using Gemini

Reads a paper JSON file (from ingest.py --dry-run), asks Gemini to explain
every question that has a marked correct answer, and writes the result to
an output file. The output file doubles as a checkpoint: it is saved every
--batch-size questions, and --resume picks up from it.

Usage:
    export GEMINI_API_KEY="your-key"
    python generate_explanations.py --file output/paper.json
    python generate_explanations.py --file output/paper.json --batch-size 25
    python generate_explanations.py --file output/paper.json --resume --skip-existing
"""

import argparse
import logging
import sys
from pathlib import Path

from tqdm import tqdm

from config import DEFAULT_BATCH_SIZE
from pipeline.errors import PipelineError
from pipeline.explanation_generator import ExplanationBackfill, find_pending, load_job_input
from pipeline.paper_file import explained_output_path
from utils.gemini_client import GeminiClient
from utils.usage import format_cost


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate explanations for MCQ questions using Gemini AI")
    parser.add_argument("-f", "--file", type=str, required=True, help="Path to JSON file with questions")
    parser.add_argument("-o", "--output", type=str,
                        help="Output file path (default: same as input with -explained suffix)")
    parser.add_argument("-b", "--batch-size", type=int, default=DEFAULT_BATCH_SIZE,
                        help="Number of questions to process before saving checkpoint")
    parser.add_argument("--resume", action="store_true", help="Resume from existing output file if it exists")
    parser.add_argument("--skip-existing", action="store_true", help="Skip questions that already have explanations")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def run(args) -> int:
    input_path = Path(args.file).resolve()
    output_path = Path(args.output).resolve() if args.output else explained_output_path(input_path)

    print("=" * 60)
    print("GENERATE EXPLANATIONS")
    print("=" * 60)
    print(f"Input:         {input_path}")
    print(f"Output:        {output_path}")
    print(f"Batch size:    {args.batch_size}")
    print(f"Resume:        {args.resume}")
    print(f"Skip existing: {args.skip_existing}")
    print("=" * 60)

    client = GeminiClient()

    try:
        paper = load_job_input(input_path, output_path, resume=args.resume)
    except (OSError, ValueError) as e:
        print(f"\n[ERROR] Failed to read file: {e}")
        return 1

    print(f"\nPaper: {paper.name}")
    print(f"Source: {paper.source}")
    print(f"Total questions: {len(paper.questions)}")

    pending = find_pending(paper, args.skip_existing)
    skipped = len(paper.questions) - len(pending)
    if skipped:
        print(f"Skipped (already explained or no answer marked): {skipped}")
    print(f"Questions to process: {len(pending)}")

    if not pending:
        print("\n[OK] All questions already have explanations!")

    with tqdm(total=len(pending), desc="Explanations", unit="q") as bar:
        def on_progress(attempted, total, processed, errors):
            bar.update(1)
            bar.set_postfix(tokens=f"{client.cumulative_usage.total_tokens:,}", errors=errors)

        backfill = ExplanationBackfill(
            client,
            output_path,
            batch_size=args.batch_size,
            skip_existing=args.skip_existing,
            on_progress=on_progress,
        )
        result = backfill.run(paper)

    print("\n" + "=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print(f"Questions processed: {result.processed}")
    print(f"Errors: {result.errors}")
    print(f"Total tokens used: {result.tokens_used:,}")
    print(f"Estimated cost: {format_cost(client.cumulative_cost)}")
    print(f"\n[OK] Output saved to: {output_path}")

    if result.errors:
        print(f"\n[WARN] {result.errors} questions failed. "
              "Run again with --resume --skip-existing to retry.")

    print("\nTo import to database:")
    print(f'   python import_paper.py --file "{output_path}"')
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        return run(args)
    except PipelineError as e:
        print(f"\n[ERROR] {e.kind}: {e}")
        return 1
    except ValueError as e:
        print(f"\n[ERROR] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
