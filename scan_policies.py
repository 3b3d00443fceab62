"""
Batch scanning of policy documents into an in-memory policy index.

Processes every PDF, Word (.docx) and Markdown file in a directory:
- Decoder: PyMuPDF / python-docx / Markdown front-matter
- Extractor: heuristic title, sections, effective date and version
- Index: in-memory PolicyIndex, optionally searched once scanning finishes

Usage:
    python scan_policies.py --dir ~/policies/
    python scan_policies.py --dir ~/policies/ --category Security --query "encryption"
    python scan_policies.py --dir ~/policies/ --query "password rotation" --json
"""

import sys
import json
import time
import argparse
import logging
from pathlib import Path
from dotenv import load_dotenv

# Ensure project root is on path
PROJECT_ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(PROJECT_ROOT))
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def collect_files(input_dir: Path) -> list[Path]:
    """Supported documents in the directory, sorted by name."""
    from execution.policy_search.decoders import EXTENSION_MIME_TYPES

    return sorted(
        p for p in input_dir.iterdir()
        if p.is_file() and p.suffix.lower() in EXTENSION_MIME_TYPES
    )


def scan_file(filepath: Path, index, category=None):
    """Parse a single document and add it to the index. Returns the stored policy."""
    from execution.policy_search.decoders import parse_document

    parsed = parse_document(str(filepath))
    if not parsed.sections:
        logger.warning(f"  {filepath.name}: no sections detected")
    return index.add(parsed, str(filepath), category)


def main():
    arg_parser = argparse.ArgumentParser(description="Scan policy documents and search them")
    arg_parser.add_argument(
        "--dir",
        type=str,
        required=True,
        help="Directory containing PDF, .docx and/or .md files",
    )
    arg_parser.add_argument(
        "--category",
        type=str,
        default=None,
        help="Category assigned to every scanned policy (e.g. HR, Security)",
    )
    arg_parser.add_argument(
        "--query",
        type=str,
        default=None,
        help="Search query to run after scanning",
    )
    arg_parser.add_argument(
        "--json",
        action="store_true",
        help="Print search results as JSON",
    )
    args = arg_parser.parse_args()

    input_dir = Path(args.dir).expanduser()
    if not input_dir.is_dir():
        logger.error(f"Directory not found: {input_dir}")
        sys.exit(1)

    files = collect_files(input_dir)
    if not files:
        logger.error(f"No PDF, Word or Markdown files found in {input_dir}")
        sys.exit(1)

    logger.info(f"Found {len(files)} documents in {input_dir}")

    from execution.policy_search.decoders import DocumentDecodeError
    from execution.policy_search.policy_index import PolicyIndex

    index = PolicyIndex()
    start_time = time.time()
    fail_count = 0

    for i, filepath in enumerate(files):
        logger.info(f"[{i + 1}/{len(files)}] {filepath.name}")
        try:
            policy = scan_file(filepath, index, args.category)
            logger.info(f"  -> {policy.title!r}: {len(policy.sections)} sections")
        except DocumentDecodeError as e:
            logger.error(f"  FAILED: {e}")
            fail_count += 1

    elapsed = time.time() - start_time
    logger.info(
        f"Scanned {index.count} policies in {elapsed:.1f}s "
        f"({fail_count} failed)"
    )

    if not args.query:
        return

    results = index.search(args.query, args.category)
    if args.json:
        print(json.dumps(
            {
                "query": args.query,
                "total": len(results),
                "results": [r.to_dict() for r in results],
            },
            indent=2,
        ))
        return

    if not results:
        print(f'No policies found matching "{args.query}".')
        return

    for rank, result in enumerate(results, 1):
        print(f"{rank}. {result.policy.title} (score {result.relevance_score:g})")
        for heading in result.matched_sections:
            print(f"     - {heading}")


if __name__ == "__main__":
    main()
