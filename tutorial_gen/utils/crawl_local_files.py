"""
Local Directory Crawler - Cross-platform compatible (Windows, macOS, Linux)
"""

import os
import fnmatch
import logging
from pathlib import Path

import pathspec

logger = logging.getLogger(__name__)


def _matches_any(patterns, *candidates):
    return any(
        fnmatch.fnmatch(candidate, pattern)
        for pattern in patterns
        for candidate in candidates
    )


def _load_gitignore(directory: Path):
    gitignore_path = directory / ".gitignore"
    if not gitignore_path.exists():
        return None
    try:
        with open(gitignore_path, "r", encoding="utf-8-sig") as f:
            spec = pathspec.PathSpec.from_lines("gitwildmatch", f.readlines())
        logger.info(f"Loaded .gitignore patterns from {gitignore_path}")
        return spec
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read or parse .gitignore file {gitignore_path}: {e}")
        return None


def crawl_local_files(
    directory,
    include_patterns=None,
    exclude_patterns=None,
    max_file_size=None,
    use_relative_paths=True,
):
    """
    Crawl files in a local directory with cross-platform support.

    Files are visited in sorted order so that the resulting file indices are
    stable between runs on the same tree.

    Args:
        directory (str): Path to local directory
        include_patterns (set): File patterns to include (e.g. {"*.py", "*.js"})
        exclude_patterns (set): File patterns to exclude (e.g. {"tests/*"})
        max_file_size (int): Maximum file size in bytes
        use_relative_paths (bool): Whether to use paths relative to directory

    Returns:
        dict: {"files": {filepath: content}, "stats": {...}}
    """
    directory = Path(directory).resolve()
    if not directory.is_dir():
        raise ValueError(f"Directory does not exist: {directory}")

    include_patterns = set(include_patterns or ())
    exclude_patterns = set(exclude_patterns or ())
    gitignore_spec = _load_gitignore(directory)

    all_files = []
    for root, dirs, files in os.walk(directory):
        root_path = Path(root)

        # Prune excluded directories early so we never descend into them
        kept_dirs = []
        for d in sorted(dirs):
            dirpath_rel = (root_path / d).relative_to(directory).as_posix()
            if gitignore_spec and gitignore_spec.match_file(dirpath_rel + "/"):
                continue
            if exclude_patterns and _matches_any(exclude_patterns, dirpath_rel, d):
                continue
            kept_dirs.append(d)
        dirs[:] = kept_dirs

        for filename in sorted(files):
            all_files.append(root_path / filename)

    files_dict = {}
    skipped_files = []
    total_files = len(all_files)

    for processed, filepath in enumerate(all_files, 1):
        relpath = filepath.relative_to(directory).as_posix()
        key = relpath if use_relative_paths else filepath.as_posix()

        excluded = bool(gitignore_spec and gitignore_spec.match_file(relpath))
        if not excluded and exclude_patterns:
            excluded = _matches_any(exclude_patterns, relpath)
        included = not include_patterns or _matches_any(include_patterns, relpath, filepath.name)

        if excluded or not included:
            status = "skipped (excluded)"
        elif max_file_size and filepath.stat().st_size > max_file_size:
            status = "skipped (size limit)"
            skipped_files.append((relpath, filepath.stat().st_size))
        else:
            try:
                with open(filepath, "r", encoding="utf-8-sig") as f:
                    files_dict[key] = f.read()
                status = "processed"
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Could not read file {filepath}: {e}")
                status = "skipped (read error)"

        percentage = int((processed / total_files) * 100)
        print(f"\033[92mProgress: {processed}/{total_files} ({percentage}%) {relpath} [{status}]\033[0m")

    return {
        "files": files_dict,
        "stats": {
            "downloaded_count": len(files_dict),
            "skipped_count": len(skipped_files),
            "skipped_files": skipped_files,
            "base_path": str(directory),
            "include_patterns": include_patterns,
            "exclude_patterns": exclude_patterns,
            "source": "local",
        },
    }


if __name__ == "__main__":
    import sys

    test_dir = sys.argv[1] if len(sys.argv) > 1 else "."

    print(f"--- Crawling directory: {test_dir} ---")
    files_data = crawl_local_files(
        test_dir,
        include_patterns={"*.py", "*.md"},
        exclude_patterns={"*.pyc", "__pycache__/*", ".venv/*", ".git/*"},
    )
    print(f"\nFound {len(files_data['files'])} files:")
    for path in files_data["files"]:
        print(f"  {path}")
