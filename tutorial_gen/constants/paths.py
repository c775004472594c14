"""
================================================================================
PATH AND FILE CONSTANTS
================================================================================
Names of everything the generator writes to disk: the tutorial tree, the
response cache and the LLM transcript log. Relative names resolve against
the current working directory unless an environment variable overrides
them (see constants/llm.py: LOG_DIR, LLM_CACHE_FILE).
================================================================================
"""

# =============================================================================
# TUTORIAL OUTPUT
# =============================================================================
# output/<project_name>/index.md, output/<project_name>/01_<slug>.md, ...
DEFAULT_OUTPUT_DIR = "output"
INDEX_FILE_NAME = "index.md"
CHAPTER_FILE_FORMAT = "{num:02d}_{slug}.md"
FALLBACK_CHAPTER_SLUG = "chapter"    # Used when a title leaves no usable characters

# =============================================================================
# RESPONSE CACHE
# =============================================================================
CACHE_FILE_NAME = "llm_cache.json"

# =============================================================================
# LLM TRANSCRIPT LOG - logs/llm_calls_YYYYMMDD.log
# =============================================================================
LOGS_DIR_NAME = "logs"
LOG_FILE_PREFIX = "llm_calls_"
LOG_DATE_FORMAT = "%Y%m%d"
LOG_LINE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
