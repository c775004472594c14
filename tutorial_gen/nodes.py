"""
================================================================================
CODEBASE TUTORIAL GENERATOR - PROCESSING NODES
================================================================================
PocketFlow wrappers around the pipeline stages in `tutorial_gen.core`.

NODE ARCHITECTURE (PocketFlow Pattern):
=======================================
Each node follows the prep → exec → post lifecycle:

    prep(shared)                  - READ from shared store, prepare data
         ↓
    exec(prep_res)               - PROCESS (call the stage function)
         ↓
    post(shared, prep_res, exec_res) - WRITE to shared store, return action

The nodes hold no logic of their own beyond moving data in and out of the
shared store; validation and prompting live in the stage functions so they
can be called (and tested) without a flow.

SHARED STORE STRUCTURE:
======================
    shared = {
        # Input (set by run.py)
        "repo_url": str or None,      # GitHub URL if using repo
        "local_dir": str or None,     # Local path if using directory
        "project_name": str or None,  # Derived from the source when None
        "github_token": str or None,
        "output_dir": str,
        "include_patterns": set,
        "exclude_patterns": set,
        "max_file_size": int,
        "language": str,
        "use_cache": bool,
        "max_abstraction_num": int,
        "llm": LLMProvider,           # Created from the environment when absent

        # Output (populated by nodes)
        "files": list,                # [(path, content), ...]
        "abstractions": list,         # [{"name", "description", "file_indices"}, ...]
        "relationships": dict,        # {"summary", "relationships"}
        "chapter_order": list,        # [abstraction_index, ...]
        "chapters": list,             # [{"chapter_number", "title", "filename", ...}, ...]
        "final_output_dir": str,
    }
================================================================================
"""

import logging
import os

from pocketflow import Node

from tutorial_gen.constants.defaults import (
    DEFAULT_LANGUAGE,
    DEFAULT_MAX_ABSTRACTIONS,
    DEFAULT_MAX_FILE_SIZE,
)
from tutorial_gen.constants.paths import DEFAULT_OUTPUT_DIR
from tutorial_gen.core.analyze_relationships import analyze_relationships
from tutorial_gen.core.combine_tutorial import combine_tutorial
from tutorial_gen.core.identify_abstractions import identify_abstractions
from tutorial_gen.core.order_chapters import order_chapters
from tutorial_gen.core.write_chapters import write_chapters
from tutorial_gen.utils.call_llm import create_llm_provider
from tutorial_gen.utils.crawl_github_files import crawl_github_files, parse_github_url
from tutorial_gen.utils.crawl_local_files import crawl_local_files

logger = logging.getLogger(__name__)


def get_llm(shared):
    """The run's LLM provider; detected from the environment on first use."""
    llm = shared.get("llm")
    if llm is None:
        llm = create_llm_provider()
        shared["llm"] = llm
    return llm


def derive_project_name(repo_url, local_dir):
    if repo_url:
        try:
            return parse_github_url(repo_url)["repo"]
        except ValueError:
            return repo_url.rstrip("/").split("/")[-1].replace(".git", "")
    return os.path.basename(os.path.abspath(local_dir))


def _stage_options(shared):
    return {
        "project_name": shared["project_name"],
        "llm": get_llm(shared),
        "language": shared.get("language", DEFAULT_LANGUAGE),
        "use_cache": shared.get("use_cache", True),
    }


# =============================================================================
# NODE 1: FetchRepo - Get source files from a GitHub repo or local directory
# =============================================================================
class FetchRepo(Node):
    """
    Crawl the source and store [(path, content), ...] as shared["files"].

    Also fills in shared["project_name"] when the caller left it empty.
    """

    def prep(self, shared):
        repo_url = shared.get("repo_url")
        local_dir = shared.get("local_dir")
        if not repo_url and not local_dir:
            raise ValueError("Either repo_url or local_dir must be provided.")

        if not shared.get("project_name"):
            shared["project_name"] = derive_project_name(repo_url, local_dir)

        return {
            "repo_url": repo_url,
            "local_dir": local_dir,
            "token": shared.get("github_token"),
            "include_patterns": shared.get("include_patterns"),
            "exclude_patterns": shared.get("exclude_patterns"),
            "max_file_size": shared.get("max_file_size") or DEFAULT_MAX_FILE_SIZE,
        }

    def exec(self, prep_res):
        if prep_res["repo_url"]:
            print(f"Crawling repository: {prep_res['repo_url']}...")
            result = crawl_github_files(
                repo_url=prep_res["repo_url"],
                token=prep_res["token"],
                include_patterns=prep_res["include_patterns"],
                exclude_patterns=prep_res["exclude_patterns"],
                max_file_size=prep_res["max_file_size"],
                use_relative_paths=True,
            )
        else:
            print(f"Crawling directory: {prep_res['local_dir']}...")
            result = crawl_local_files(
                directory=prep_res["local_dir"],
                include_patterns=prep_res["include_patterns"],
                exclude_patterns=prep_res["exclude_patterns"],
                max_file_size=prep_res["max_file_size"],
                use_relative_paths=True,
            )

        files_list = list(result.get("files", {}).items())
        if not files_list:
            raise ValueError("Failed to fetch files - no files matched the patterns")
        print(f"Fetched {len(files_list)} files.")
        return files_list

    def post(self, shared, prep_res, exec_res):
        shared["files"] = exec_res


# =============================================================================
# NODE 2: IdentifyAbstractions
# =============================================================================
class IdentifyAbstractions(Node):
    def prep(self, shared):
        options = _stage_options(shared)
        options["max_abstractions"] = shared.get("max_abstraction_num", DEFAULT_MAX_ABSTRACTIONS)
        return shared["files"], options

    def exec(self, prep_res):
        files_data, options = prep_res
        return identify_abstractions(files_data, **options)

    def post(self, shared, prep_res, exec_res):
        shared["abstractions"] = exec_res


# =============================================================================
# NODE 3: AnalyzeRelationships
# =============================================================================
class AnalyzeRelationships(Node):
    def prep(self, shared):
        return shared["abstractions"], shared["files"], _stage_options(shared)

    def exec(self, prep_res):
        abstractions, files_data, options = prep_res
        return analyze_relationships(abstractions, files_data, **options)

    def post(self, shared, prep_res, exec_res):
        shared["relationships"] = exec_res


# =============================================================================
# NODE 4: OrderChapters
# =============================================================================
class OrderChapters(Node):
    def prep(self, shared):
        return shared["abstractions"], shared.get("relationships"), _stage_options(shared)

    def exec(self, prep_res):
        abstractions, analysis, options = prep_res
        return order_chapters(abstractions, analysis, **options)

    def post(self, shared, prep_res, exec_res):
        shared["chapter_order"] = exec_res


# =============================================================================
# NODE 5: WriteChapters
# =============================================================================
class WriteChapters(Node):
    """
    Write all chapters in one exec().

    A plain Node rather than a BatchNode: each chapter prompt needs the
    digests of the chapters before it, so the items are not independent.
    """

    def prep(self, shared):
        return (
            shared["chapter_order"],
            shared["abstractions"],
            shared["files"],
            _stage_options(shared),
        )

    def exec(self, prep_res):
        chapter_order, abstractions, files_data, options = prep_res
        return write_chapters(chapter_order, abstractions, files_data, **options)

    def post(self, shared, prep_res, exec_res):
        shared["chapters"] = exec_res


# =============================================================================
# NODE 6: CombineTutorial
# =============================================================================
class CombineTutorial(Node):
    """Write index.md and the chapter files; store the directory path."""

    def prep(self, shared):
        return {
            "project_name": shared["project_name"],
            "output_dir": shared.get("output_dir") or DEFAULT_OUTPUT_DIR,
            "analysis": shared["relationships"],
            "abstractions": shared["abstractions"],
            "chapters": shared["chapters"],
            "repo_url": shared.get("repo_url"),
        }

    def exec(self, prep_res):
        return combine_tutorial(**prep_res)

    def post(self, shared, prep_res, exec_res):
        shared["final_output_dir"] = exec_res
        print(f"\nTutorial generation complete! Files are in: {exec_res}")
