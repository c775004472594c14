import os
import time
import base64
import fnmatch
import logging
import tempfile
from typing import Union, Set
from urllib.parse import urlparse

import git
import requests

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
REQUEST_TIMEOUT = (30, 30)
REF_SEGMENTS = ("tree", "blob", "commit")


def parse_github_url(url: str) -> dict:
    """
    Split a GitHub URL into owner, repo, ref and sub-path.

    ``https://github.com/owner/repo/tree/main/src/pkg`` becomes
    ``{"owner": "owner", "repo": "repo", "ref": "main", "path": "src/pkg"}``.
    A missing ref is returned as None, meaning "the default branch".
    Branch names containing "/" cannot be told apart from the path here;
    crawl_github_files() resolves those against the branch list.

    Raises:
        ValueError: If the URL does not name at least an owner and a repo
    """
    parsed = urlparse(url.strip())
    parts = [p for p in parsed.path.strip("/").split("/") if p]
    if len(parts) < 2:
        raise ValueError(f"Invalid GitHub URL: {url}")

    owner, repo = parts[0], parts[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]

    ref, path = None, ""
    if len(parts) > 3 and parts[2] in REF_SEGMENTS:
        ref = parts[3]
        path = "/".join(parts[4:])
    elif len(parts) > 2 and parts[2] not in REF_SEGMENTS:
        ref = parts[2]
        path = "/".join(parts[3:])

    return {"owner": owner, "repo": repo, "ref": ref, "path": path}


def _normalize_patterns(patterns):
    if not patterns:
        return set()
    if isinstance(patterns, str):
        return {patterns}
    return set(patterns)


def crawl_github_files(
    repo_url,
    token=None,
    max_file_size: int = 1 * 1024 * 1024,  # 1 MB
    use_relative_paths: bool = False,
    include_patterns: Union[str, Set[str]] = None,
    exclude_patterns: Union[str, Set[str]] = None
):
    """
    Crawl files from a specific path in a GitHub repository at a specific commit.

    Args:
        repo_url (str): URL of the GitHub repository with optional ref and path
                        (e.g., 'https://github.com/microsoft/autogen/tree/e45a157/python/packages/autogen-core')
                        SSH URLs (git@...) and URLs ending in .git are cloned instead.
        token (str, optional): GitHub personal access token. Required for private
            repositories, recommended for public ones to avoid rate limits.
        max_file_size (int, optional): Maximum file size in bytes to download (default: 1 MB)
        use_relative_paths (bool, optional): If True, file paths will be relative to the specified subdirectory
        include_patterns (str or set of str, optional): Patterns of files to include. If None, all files are included.
        exclude_patterns (str or set of str, optional): Patterns of files to exclude. If None, no files are excluded.

    Returns:
        dict: {"files": {path: content}, "stats": {...}}
    """
    include_patterns = _normalize_patterns(include_patterns)
    exclude_patterns = _normalize_patterns(exclude_patterns)

    def should_include_file(file_path: str, file_name: str) -> bool:
        if include_patterns and not any(
            fnmatch.fnmatch(file_name, p) or fnmatch.fnmatch(file_path, p) for p in include_patterns
        ):
            return False
        return not any(fnmatch.fnmatch(file_path, p) for p in exclude_patterns)

    if repo_url.startswith("git@") or repo_url.endswith(".git"):
        return _crawl_cloned_repo(
            repo_url, max_file_size, should_include_file, include_patterns, exclude_patterns
        )

    parsed = parse_github_url(repo_url)
    owner, repo = parsed["owner"], parsed["repo"]

    headers = {"Accept": "application/vnd.github.v3+json"}
    if token:
        headers["Authorization"] = f"token {token}"

    ref, specific_path = _resolve_ref(owner, repo, parsed["ref"], parsed["path"], headers)

    files = {}
    skipped_files = []

    def get_with_rate_limit(url, params=None):
        while True:
            response = requests.get(url, headers=headers, params=params, timeout=REQUEST_TIMEOUT)
            if response.status_code == 403 and "rate limit exceeded" in response.text.lower():
                reset_time = int(response.headers.get("X-RateLimit-Reset", 0))
                wait_time = max(reset_time - time.time(), 0) + 1
                print(f"Rate limit exceeded. Waiting for {wait_time:.0f} seconds...")
                time.sleep(wait_time)
                continue
            return response

    def fetch_contents(path):
        url = f"{GITHUB_API_URL}/repos/{owner}/{repo}/contents/{path}"
        params = {"ref": ref} if ref is not None else {}
        response = get_with_rate_limit(url, params)

        if response.status_code == 404:
            if not path:
                hint = (
                    "If this is a private repository, provide a GitHub token via --token "
                    "or the GITHUB_TOKEN environment variable."
                    if not token else
                    "Verify the repository exists and the token has access to it."
                )
                raise ValueError(f"Repository {owner}/{repo} not found (404). {hint}")
            logger.warning(f"Path '{path}' not found in {owner}/{repo} (404), skipping.")
            return
        if response.status_code != 200:
            logger.warning(f"Error fetching {path}: {response.status_code} - {response.text[:200]}")
            return

        contents = response.json()
        # Handle both single file and directory responses
        if not isinstance(contents, list):
            contents = [contents]

        for item in contents:
            item_path = item["path"]
            if use_relative_paths and specific_path and item_path.startswith(specific_path):
                rel_path = item_path[len(specific_path):].lstrip("/")
            else:
                rel_path = item_path

            if item["type"] == "dir":
                if any(
                    fnmatch.fnmatch(item_path, p) or fnmatch.fnmatch(rel_path, p)
                    for p in exclude_patterns
                ):
                    continue
                fetch_contents(item_path)
                continue
            if item["type"] != "file":
                continue

            if not should_include_file(rel_path, item["name"]):
                print(f"Skipping {rel_path}: Does not match include/exclude patterns")
                continue

            file_size = item.get("size", 0)
            if file_size > max_file_size:
                skipped_files.append((item_path, file_size))
                print(f"Skipping {rel_path}: File size ({file_size} bytes) exceeds limit ({max_file_size} bytes)")
                continue

            content = _download_file(item, headers, max_file_size)
            if content is None:
                skipped_files.append((item_path, file_size))
                continue
            files[rel_path] = content
            print(f"Downloaded: {rel_path} ({file_size} bytes)")

    fetch_contents(specific_path)

    return {
        "files": files,
        "stats": {
            "downloaded_count": len(files),
            "skipped_count": len(skipped_files),
            "skipped_files": skipped_files,
            "base_path": specific_path if use_relative_paths else None,
            "include_patterns": include_patterns,
            "exclude_patterns": exclude_patterns,
            "source": "github_api",
        },
    }


def _resolve_ref(owner, repo, ref, path, headers):
    """
    Work out which part of "ref/path" is the ref.

    Branch names may contain "/", so the longest branch name that prefixes
    the combined string wins. Otherwise the first segment is used as given
    (a commit SHA, tag or single-segment branch).
    """
    if ref is None:
        return None, path

    combined = f"{ref}/{path}" if path else ref
    url = f"{GITHUB_API_URL}/repos/{owner}/{repo}/branches"
    response = requests.get(url, headers=headers, params={"per_page": 100}, timeout=REQUEST_TIMEOUT)
    if response.status_code != 200:
        logger.warning(
            f"Could not list branches of {owner}/{repo} ({response.status_code}); using ref '{ref}' as given."
        )
        return ref, path

    names = [branch.get("name", "") for branch in response.json()]
    matches = [
        name for name in names
        if name and (combined == name or combined.startswith(name + "/"))
    ]
    if not matches:
        return ref, path
    branch = max(matches, key=len)
    return branch, combined[len(branch):].lstrip("/")


def _download_file(item, headers, max_file_size):
    """Fetch a single file's text; returns None when it cannot or should not be used."""
    rel = item["path"]
    if item.get("download_url"):
        response = requests.get(item["download_url"], headers=headers, timeout=REQUEST_TIMEOUT)
        content_length = int(response.headers.get("content-length", 0))
        if content_length > max_file_size:
            print(f"Skipping {rel}: Content length ({content_length} bytes) exceeds limit ({max_file_size} bytes)")
            return None
        if response.status_code != 200:
            logger.warning(f"Failed to download {rel}: {response.status_code}")
            return None
        return response.text

    # Alternative method if download_url is not available
    response = requests.get(item["url"], headers=headers, timeout=REQUEST_TIMEOUT)
    if response.status_code != 200:
        logger.warning(f"Failed to get content for {rel}: {response.status_code}")
        return None
    data = response.json()
    if data.get("encoding") != "base64" or "content" not in data:
        logger.warning(f"Unexpected content format for {rel}")
        return None
    if len(data["content"]) * 0.75 > max_file_size:  # Approximate decoded size
        print(f"Skipping {rel}: Encoded content exceeds size limit")
        return None
    try:
        return base64.b64decode(data["content"]).decode("utf-8")
    except UnicodeDecodeError:
        logger.warning(f"Skipping {rel}: not UTF-8 text")
        return None


def _crawl_cloned_repo(repo_url, max_file_size, should_include_file, include_patterns, exclude_patterns):
    """Clone an SSH/.git URL into a temp dir and read matching files from it."""
    files = {}
    skipped_files = []

    with tempfile.TemporaryDirectory() as tmpdirname:
        print(f"Cloning repo {repo_url} to temp dir {tmpdirname} ...")
        try:
            git.Repo.clone_from(repo_url, tmpdirname, depth=1)
        except git.GitCommandError as e:
            raise ValueError(f"Error cloning repo {repo_url}: {e}") from e

        for root, dirs, filenames in os.walk(tmpdirname):
            dirs[:] = sorted(d for d in dirs if d != ".git")
            for filename in sorted(filenames):
                abs_path = os.path.join(root, filename)
                rel_path = os.path.relpath(abs_path, tmpdirname).replace(os.sep, "/")

                try:
                    file_size = os.path.getsize(abs_path)
                except OSError:
                    continue

                if file_size > max_file_size:
                    skipped_files.append((rel_path, file_size))
                    print(f"Skipping {rel_path}: size {file_size} exceeds limit {max_file_size}")
                    continue

                if not should_include_file(rel_path, filename):
                    continue

                try:
                    with open(abs_path, "r", encoding="utf-8-sig") as f:
                        files[rel_path] = f.read()
                    print(f"Added {rel_path} ({file_size} bytes)")
                except (OSError, UnicodeDecodeError) as e:
                    logger.warning(f"Failed to read {rel_path}: {e}")

    return {
        "files": files,
        "stats": {
            "downloaded_count": len(files),
            "skipped_count": len(skipped_files),
            "skipped_files": skipped_files,
            "base_path": None,
            "include_patterns": include_patterns,
            "exclude_patterns": exclude_patterns,
            "source": "ssh_clone",
        },
    }
