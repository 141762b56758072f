#!/usr/bin/env python3
"""
ingest.py - Extract MCQ questions from one paper in a PDF using Gemini

Pages are converted to images one at a time and sent to Gemini for
vision-based extraction. The result is either saved to the SQLite database
or, with --dry-run, written to a paper JSON file for review, explanation
backfill (generate_explanations.py) and a later import (import_paper.py).

Usage:
    export GEMINI_API_KEY="your-key"
    python ingest.py --file book.pdf --name "SK Vol 1" --source "SK Book Series" --start 5 --end 40
    python ingest.py --file book.pdf --name "SK Vol 1" --source "SK" --start 5 --end 40 --dry-run
    python ingest.py --check                    # Test the Gemini connection
"""

import argparse
import logging
import sys
from pathlib import Path

import psutil
from tqdm import tqdm

from config import OUTPUT_DIR, PDF_SCALE
from database import init_db, save_paper
from pipeline.errors import PipelineError
from pipeline.paper_file import build_paper_data, default_output_path, save_paper_file
from pipeline.pdf_loader import PDFLoader, validate_page_range
from pipeline.question_extractor import QuestionExtractor
from pipeline.validator import generate_validation_report, validate_paper
from utils.gemini_client import create_client
from utils.usage import estimate_cost, format_cost


def get_memory() -> str:
    """Get current memory usage."""
    mem = psutil.virtual_memory()
    return f"{mem.percent:.1f}%"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Ingest MCQ questions from a single paper in a PDF")
    parser.add_argument("-f", "--file", type=str, help="Path to PDF file")
    parser.add_argument("-n", "--name", type=str, help="Paper name")
    parser.add_argument("-s", "--source", type=str, help="Source name (e.g., 'SK Book Series')")
    parser.add_argument("--start", type=int, help="Start page number (PDF page, 1-indexed)")
    parser.add_argument("--end", type=int, help="End page number (PDF page, 1-indexed)")
    parser.add_argument("-d", "--dry-run", action="store_true",
                        help="Preview extraction without saving to database")
    parser.add_argument("-o", "--output", type=str, default=str(OUTPUT_DIR),
                        help="Output directory for dry-run JSON")
    parser.add_argument("--scale", type=float, default=PDF_SCALE,
                        help="Render scale (higher = sharper pages, more tokens)")
    parser.add_argument("--check", action="store_true", help="Test the Gemini connection and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    if not args.check:
        missing = [opt for opt in ("file", "name", "source", "start", "end")
                   if getattr(args, opt) is None]
        if missing:
            parser.error("the following arguments are required: "
                         + ", ".join(f"--{m}" for m in missing))
    return args


def run(args) -> int:
    client = create_client()

    if args.check:
        print("[INIT] Connecting to Gemini...")
        if client.test_connection():
            print(f"[OK] Gemini connected (model: {client.model_name})")
            return 0
        print("[ERROR] Gemini connection failed!")
        return 1

    pdf_path = Path(args.file).resolve()
    page_total = args.end - args.start + 1

    print("=" * 60)
    print("PDF PAPER INGESTION")
    print("=" * 60)
    print(f"File:   {pdf_path}")
    print(f"Paper:  {args.name}")
    print(f"Source: {args.source}")
    print(f"Pages:  {args.start} - {args.end} ({page_total} pages)")
    print(f"Mode:   {'DRY RUN' if args.dry_run else 'LIVE'}")
    print("=" * 60)

    if not pdf_path.exists():
        print(f"[ERROR] File not found: {pdf_path}")
        return 1

    loader = PDFLoader(scale=args.scale)
    total_pages = loader.get_page_count(pdf_path)
    print(f"\n[INFO] PDF has {total_pages} total pages")

    range_error = validate_page_range(args.start, args.end, total_pages)
    if range_error:
        print(f"[ERROR] {range_error}")
        return 1

    print(f"[INFO] Memory: {get_memory()}")
    print(f"\n[INFO] Extracting questions from pages {args.start}-{args.end}...\n")

    extractor = QuestionExtractor(client, loader=loader)
    with tqdm(total=page_total, desc="Pages", unit="page") as bar:
        found = 0

        def on_progress(current, total, page_questions):
            nonlocal found
            found += page_questions
            bar.update(1)
            bar.set_postfix(questions=found)

        result = extractor.extract_range(pdf_path, args.start, args.end, on_progress=on_progress)

    paper = build_paper_data(result, args.name, args.source, args.start, args.end)
    cost = format_cost(estimate_cost(result.total_usage))

    print("\n" + "=" * 60)
    print(f"Paper: {args.name}")
    print(f"Pages: {args.start}-{args.end} ({result.pages_processed} pages processed)")
    print(f"Questions extracted: {len(result.questions)}")
    print(f"API Usage: {result.total_usage.total_tokens:,} tokens")
    print(f"Estimated Cost: {cost}")
    print(f"Memory: {get_memory()}")
    print("=" * 60)

    if result.questions:
        print(f'\nSample question: "{result.questions[0].question_text[:80]}..."')

    validation = validate_paper(args.name, result.questions)
    if not validation.is_valid:
        print()
        print(generate_validation_report(validation))

    if args.dry_run:
        output_path = save_paper_file(paper, default_output_path(args.output, args.name))
        print(f"\n[OK] Output saved to: {output_path}")
        print("\nTo import this to the database, run:")
        print(f'   python import_paper.py --file "{output_path}"')
    else:
        print("\n[INFO] Saving to database...")
        init_db()
        paper_id = save_paper(paper)
        print(f"[OK] Created paper: {args.name} (ID: {paper_id}) with {len(paper.questions)} questions")

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


if __name__ == "__main__":
    sys.exit(main())
