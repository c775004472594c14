"""
Codebase Tutorial Generator - Constants Package

This package contains all configuration constants, magic numbers,
and default values used throughout the application.
"""

from .llm import (
    # LLM Provider Tags
    LLM_PROVIDER_OPENAI,
    LLM_PROVIDER_GEMINI,
    LLM_PROVIDER_ANTHROPIC,
    LLM_PROVIDER_OPENROUTER,
    LLM_PROVIDER_GENERIC,
    LLM_PROVIDER_ALIASES,

    # Environment Variable Names
    ENV_LLM_PROVIDER,
    ENV_OPENAI_API_KEY,
    ENV_OPENAI_MODEL,
    ENV_GEMINI_API_KEY,
    ENV_GEMINI_PROJECT_ID,
    ENV_GEMINI_LOCATION,
    ENV_GEMINI_MODEL,
    ENV_ANTHROPIC_API_KEY,
    ENV_ANTHROPIC_MODEL,
    ENV_OPENROUTER_API_KEY,
    ENV_OPENROUTER_MODEL,
    ENV_OPENROUTER_REFERER,
    ENV_OPENROUTER_TITLE,
    ENV_LLM_API_BASE_URL,
    ENV_LLM_API_KEY,
    ENV_LLM_MODEL,
    ENV_LLM_MAX_RETRIES,
    ENV_LLM_RETRY_WAIT,
    ENV_LOG_DIR,
    ENV_LLM_CACHE_FILE,
    ENV_GITHUB_TOKEN,

    # Default Model Values
    DEFAULT_OPENAI_MODEL,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_GEMINI_LOCATION,
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_OPENROUTER_MODEL,
    DEFAULT_GENERIC_MODEL,
    DEFAULT_GENERIC_BASE_URL,

    # API URLs
    OPENROUTER_API_URL,

    # LLM Configuration
    DEFAULT_TEMPERATURE,
    DEFAULT_MAX_TOKENS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_LLM_MAX_RETRIES,
    DEFAULT_LLM_RETRY_WAIT,

    # App Metadata
    DEFAULT_OPENROUTER_REFERER,
    DEFAULT_OPENROUTER_TITLE,
)

from .paths import (
    # Output, Cache and Log Locations
    LOGS_DIR_NAME,
    CACHE_FILE_NAME,
    DEFAULT_OUTPUT_DIR,
    INDEX_FILE_NAME,
    CHAPTER_FILE_FORMAT,
    FALLBACK_CHAPTER_SLUG,

    # Transcript Log Format
    LOG_FILE_PREFIX,
    LOG_DATE_FORMAT,
    LOG_LINE_FORMAT,
)

from .defaults import (
    # Default Argument Values
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_LANGUAGE,
    DEFAULT_MAX_ABSTRACTIONS,

    # Response Contract
    ERROR_EXCERPT_LENGTH,
    CHAPTER_DIGEST_LENGTH,
    MERMAID_MAX_LABEL_LENGTH,
    NO_ABSTRACTIONS_SUMMARY,
    NO_PROJECT_SUMMARY,
    ATTRIBUTION_FOOTER,

    # File Patterns
    DEFAULT_INCLUDE_PATTERNS,
    DEFAULT_EXCLUDE_PATTERNS,
)

__all__ = [
    # LLM Provider Tags
    'LLM_PROVIDER_OPENAI',
    'LLM_PROVIDER_GEMINI',
    'LLM_PROVIDER_ANTHROPIC',
    'LLM_PROVIDER_OPENROUTER',
    'LLM_PROVIDER_GENERIC',
    'LLM_PROVIDER_ALIASES',

    # Environment Variable Names
    'ENV_LLM_PROVIDER',
    'ENV_OPENAI_API_KEY',
    'ENV_OPENAI_MODEL',
    'ENV_GEMINI_API_KEY',
    'ENV_GEMINI_PROJECT_ID',
    'ENV_GEMINI_LOCATION',
    'ENV_GEMINI_MODEL',
    'ENV_ANTHROPIC_API_KEY',
    'ENV_ANTHROPIC_MODEL',
    'ENV_OPENROUTER_API_KEY',
    'ENV_OPENROUTER_MODEL',
    'ENV_OPENROUTER_REFERER',
    'ENV_OPENROUTER_TITLE',
    'ENV_LLM_API_BASE_URL',
    'ENV_LLM_API_KEY',
    'ENV_LLM_MODEL',
    'ENV_LLM_MAX_RETRIES',
    'ENV_LLM_RETRY_WAIT',
    'ENV_LOG_DIR',
    'ENV_LLM_CACHE_FILE',
    'ENV_GITHUB_TOKEN',

    # Default Model Values
    'DEFAULT_OPENAI_MODEL',
    'DEFAULT_GEMINI_MODEL',
    'DEFAULT_GEMINI_LOCATION',
    'DEFAULT_ANTHROPIC_MODEL',
    'DEFAULT_OPENROUTER_MODEL',
    'DEFAULT_GENERIC_MODEL',
    'DEFAULT_GENERIC_BASE_URL',

    # API URLs
    'OPENROUTER_API_URL',

    # LLM Configuration
    'DEFAULT_TEMPERATURE',
    'DEFAULT_MAX_TOKENS',
    'DEFAULT_REQUEST_TIMEOUT',
    'DEFAULT_LLM_MAX_RETRIES',
    'DEFAULT_LLM_RETRY_WAIT',

    # App Metadata
    'DEFAULT_OPENROUTER_REFERER',
    'DEFAULT_OPENROUTER_TITLE',

    # Output, Cache and Log Locations
    'LOGS_DIR_NAME',
    'CACHE_FILE_NAME',
    'DEFAULT_OUTPUT_DIR',
    'INDEX_FILE_NAME',
    'CHAPTER_FILE_FORMAT',
    'FALLBACK_CHAPTER_SLUG',

    # Transcript Log Format
    'LOG_FILE_PREFIX',
    'LOG_DATE_FORMAT',
    'LOG_LINE_FORMAT',

    # Default Argument Values
    'DEFAULT_MAX_FILE_SIZE',
    'DEFAULT_LANGUAGE',
    'DEFAULT_MAX_ABSTRACTIONS',

    # Response Contract
    'ERROR_EXCERPT_LENGTH',
    'CHAPTER_DIGEST_LENGTH',
    'MERMAID_MAX_LABEL_LENGTH',
    'NO_ABSTRACTIONS_SUMMARY',
    'NO_PROJECT_SUMMARY',
    'ATTRIBUTION_FOOTER',

    # File Patterns
    'DEFAULT_INCLUDE_PATTERNS',
    'DEFAULT_EXCLUDE_PATTERNS',
]
