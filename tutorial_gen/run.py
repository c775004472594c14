#!/usr/bin/env python3
"""
Codebase Tutorial Generator - Main Entry Point

Usage:
    tutorial-gen --dir /path/to/code
    tutorial-gen --repo https://github.com/owner/repo --output ./tutorials
    python -m tutorial_gen.run --dir . --provider anthropic
"""

import os
import sys
import time
import logging
import argparse
from pathlib import Path

from dotenv import load_dotenv

from tutorial_gen.flow import create_tutorial_flow
from tutorial_gen.constants.defaults import (
    DEFAULT_INCLUDE_PATTERNS,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_LANGUAGE,
    DEFAULT_MAX_ABSTRACTIONS,
)
from tutorial_gen.constants.paths import DEFAULT_OUTPUT_DIR
from tutorial_gen.constants.llm import ENV_GITHUB_TOKEN
from tutorial_gen.utils.call_llm import create_llm_provider
from tutorial_gen.utils.response_contract import LLMCallError, ResponseContractError

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        description="Generate a beginner-friendly tutorial from a GitHub repository or local codebase.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tutorial-gen --dir /path/to/project
  tutorial-gen --repo https://github.com/owner/repo --output ./tutorials
  tutorial-gen --dir ./src --include "*.py" --exclude "*test*"
  tutorial-gen --dir . --language spanish --provider gemini
        """
    )

    source_group = parser.add_mutually_exclusive_group(required=True)
    source_group.add_argument(
        "--repo",
        help="URL of the GitHub repository (https or SSH)."
    )
    source_group.add_argument(
        "--dir",
        help="Path to local directory to analyze."
    )

    parser.add_argument(
        "-n", "--name",
        help="Project name (optional, derived from repo/directory if omitted)."
    )
    parser.add_argument(
        "-t", "--token",
        help=f"GitHub personal access token (optional, reads {ENV_GITHUB_TOKEN} env var if not provided)."
    )
    parser.add_argument(
        "-o", "--output",
        default=DEFAULT_OUTPUT_DIR,
        help=f"Output directory for the tutorial (default: ./{DEFAULT_OUTPUT_DIR})."
    )
    parser.add_argument(
        "-i", "--include",
        nargs="+",
        help="Include file patterns (e.g., '*.py' '*.js'). Defaults to common code files."
    )
    parser.add_argument(
        "-e", "--exclude",
        nargs="+",
        help="Exclude file patterns (e.g., 'tests/*' 'docs/*'). Defaults to test/build directories."
    )
    parser.add_argument(
        "-s", "--max-size",
        type=int,
        default=DEFAULT_MAX_FILE_SIZE,
        help=f"Maximum file size in bytes (default: {DEFAULT_MAX_FILE_SIZE}, about 100KB)."
    )
    parser.add_argument(
        "--language",
        default=DEFAULT_LANGUAGE,
        help=f"Language for the generated tutorial (default: {DEFAULT_LANGUAGE})."
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Disable LLM response caching (default: caching enabled)."
    )
    parser.add_argument(
        "--max-abstractions",
        type=int,
        default=DEFAULT_MAX_ABSTRACTIONS,
        help=f"Maximum number of abstractions to identify (default: {DEFAULT_MAX_ABSTRACTIONS})."
    )
    parser.add_argument(
        "--provider",
        help="LLM provider: openai, gemini, anthropic, openrouter or generic "
             "(default: detected from environment variables)."
    )
    parser.add_argument(
        "--model",
        help="Model name for the chosen provider (default: provider's configured model)."
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging."
    )
    return parser


def main(argv=None):
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    local_dir = None
    if args.dir:
        dir_path = Path(args.dir).resolve()
        if not dir_path.is_dir():
            print(f"Error: Directory does not exist: {args.dir}")
            sys.exit(1)
        local_dir = str(dir_path)

    github_token = None
    if args.repo:
        github_token = args.token or os.environ.get(ENV_GITHUB_TOKEN)
        if not github_token:
            print("Warning: No GitHub token provided. You might hit rate limits for public repositories.")

    try:
        llm = create_llm_provider(args.provider, model=args.model)
    except ValueError as e:
        print(f"LLM Provider: Not configured - {e}")
        sys.exit(1)

    shared = {
        "repo_url": args.repo,
        "local_dir": local_dir,
        "project_name": args.name,
        "github_token": github_token,
        "output_dir": args.output,
        "include_patterns": set(args.include) if args.include else DEFAULT_INCLUDE_PATTERNS,
        "exclude_patterns": set(args.exclude) if args.exclude else DEFAULT_EXCLUDE_PATTERNS,
        "max_file_size": args.max_size,
        "language": args.language,
        "use_cache": not args.no_cache,
        "max_abstraction_num": args.max_abstractions,
        "llm": llm,
        # Outputs will be populated by the nodes
        "files": [],
        "abstractions": [],
        "relationships": {},
        "chapter_order": [],
        "chapters": [],
        "final_output_dir": None
    }

    print("=" * 60)
    print("Codebase Tutorial Generator")
    print("=" * 60)
    print(f"Source: {args.repo or local_dir}")
    print(f"Language: {args.language.capitalize()}")
    print(f"LLM Caching: {'Disabled' if args.no_cache else 'Enabled'}")
    print(f"LLM Provider: {llm.provider_type} ({llm.model})")
    print(f"Output: {args.output}")
    print("=" * 60)

    start_time = time.time()

    tutorial_flow = create_tutorial_flow()
    try:
        tutorial_flow.run(shared)
    except (ResponseContractError, LLMCallError) as e:
        logger.debug("Pipeline aborted", exc_info=True)
        print(f"\n❌ Tutorial generation failed: {e}")
        sys.exit(1)

    elapsed = time.time() - start_time
    if elapsed >= 60:
        time_str = f"{elapsed/60:.1f} minutes"
    else:
        time_str = f"{elapsed:.1f} seconds"

    print(f"\n{'=' * 60}")
    print("✅ Tutorial generated successfully!")
    print(f"   Output: {shared['final_output_dir']}")
    print(f"   Time: {time_str}")
    print(f"{'=' * 60}")


if __name__ == "__main__":
    main()
