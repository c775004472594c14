"""
================================================================================
DEFAULT VALUES CONSTANTS
================================================================================
This file contains all default values for command-line arguments, file
patterns and the response-contract pipeline.
This is the single source of truth for application defaults.
================================================================================
"""

# =============================================================================
# DEFAULT ARGUMENT VALUES
# =============================================================================
DEFAULT_MAX_FILE_SIZE = 100000  # Maximum file size in bytes (about 100KB)
DEFAULT_LANGUAGE = "english"    # Default tutorial language
DEFAULT_MAX_ABSTRACTIONS = 10   # Maximum number of abstractions to identify

# =============================================================================
# RESPONSE CONTRACT
# =============================================================================
ERROR_EXCERPT_LENGTH = 500      # Max chars of raw LLM text embedded in errors
CHAPTER_DIGEST_LENGTH = 500     # Chars of each written chapter carried forward
MERMAID_MAX_LABEL_LENGTH = 30   # Edge labels longer than this are truncated

NO_ABSTRACTIONS_SUMMARY = "No abstractions provided to analyze."
NO_PROJECT_SUMMARY = "No project summary provided."

ATTRIBUTION_FOOTER = (
    "Generated by [AI Codebase Knowledge Builder]"
    "(https://github.com/The-Pocket/Tutorial-Codebase-Knowledge)"
)

# =============================================================================
# FILE PATTERNS
# =============================================================================
DEFAULT_INCLUDE_PATTERNS = {
    "*.py", "*.js", "*.jsx", "*.ts", "*.tsx", "*.go", "*.java", "*.pyi", "*.pyx",
    "*.c", "*.cs", "*.cc", "*.cpp", "*.h", "*.md", "*.rst", "Dockerfile",
    "Makefile", "*.yaml", "*.yml",
}

DEFAULT_EXCLUDE_PATTERNS = {
    "assets/*", "data/*", "images/*", "public/*", "static/*", "temp/*",
    "*docs/*",
    "*venv/*",
    "*.venv/*",
    "*test*",
    "*tests/*",
    "*examples/*",
    "v1/*",
    "*dist/*",
    "*build/*",
    "*experimental/*",
    "*deprecated/*",
    "*misc/*",
    "*legacy/*",
    ".git/*", ".github/*", ".next/*", ".vscode/*",
    "*obj/*",
    "*bin/*",
    "*node_modules/*",
    "*.log"
}
