"""
================================================================================
LLM PROVIDER CONSTANTS
================================================================================
This file contains all constants related to LLM providers, API configuration,
and model defaults. This is the single source of truth for LLM configuration.

PROVIDER PRIORITY (checked in this order when no provider tag is given):
=========================================================================
1. OPENAI_API_KEY     → Uses OpenAI API
2. GEMINI_API_KEY     → Uses Google Gemini API
3. GEMINI_PROJECT_ID  → Uses Vertex AI (requires ADC setup)
4. ANTHROPIC_API_KEY  → Uses Anthropic Claude API
5. OPENROUTER_API_KEY → Uses OpenRouter (access to many models)
6. LLM_API_BASE_URL   → Uses any OpenAI-compatible API (Ollama, etc.)
================================================================================
"""

# =============================================================================
# LLM PROVIDER TAGS
# =============================================================================
LLM_PROVIDER_OPENAI = "openai"
LLM_PROVIDER_GEMINI = "gemini"
LLM_PROVIDER_ANTHROPIC = "anthropic"
LLM_PROVIDER_OPENROUTER = "openrouter"
LLM_PROVIDER_GENERIC = "generic"

# Alternative names accepted by the provider factory
LLM_PROVIDER_ALIASES = {
    "chatgpt": LLM_PROVIDER_OPENAI,
    "claude": LLM_PROVIDER_ANTHROPIC,
    "ollama": LLM_PROVIDER_GENERIC,
    "vertex": LLM_PROVIDER_GEMINI,
}

# =============================================================================
# ENVIRONMENT VARIABLE NAMES
# =============================================================================
# Provider selection
ENV_LLM_PROVIDER = "LLM_PROVIDER"

# OpenAI
ENV_OPENAI_API_KEY = "OPENAI_API_KEY"
ENV_OPENAI_MODEL = "OPENAI_MODEL"

# Gemini / Vertex AI
ENV_GEMINI_API_KEY = "GEMINI_API_KEY"
ENV_GEMINI_PROJECT_ID = "GEMINI_PROJECT_ID"
ENV_GEMINI_LOCATION = "GEMINI_LOCATION"
ENV_GEMINI_MODEL = "GEMINI_MODEL"

# Anthropic
ENV_ANTHROPIC_API_KEY = "ANTHROPIC_API_KEY"
ENV_ANTHROPIC_MODEL = "ANTHROPIC_MODEL"

# OpenRouter
ENV_OPENROUTER_API_KEY = "OPENROUTER_API_KEY"
ENV_OPENROUTER_MODEL = "OPENROUTER_MODEL"
ENV_OPENROUTER_REFERER = "OPENROUTER_REFERER"
ENV_OPENROUTER_TITLE = "OPENROUTER_TITLE"

# Generic OpenAI-compatible API
ENV_LLM_API_BASE_URL = "LLM_API_BASE_URL"
ENV_LLM_API_KEY = "LLM_API_KEY"
ENV_LLM_MODEL = "LLM_MODEL"

# Transport retry policy
ENV_LLM_MAX_RETRIES = "LLM_MAX_RETRIES"
ENV_LLM_RETRY_WAIT = "LLM_RETRY_WAIT"

# Logging / cache
ENV_LOG_DIR = "LOG_DIR"
ENV_LLM_CACHE_FILE = "LLM_CACHE_FILE"

# GitHub
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"

# =============================================================================
# DEFAULT MODEL VALUES
# =============================================================================
DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_GEMINI_LOCATION = "us-central1"
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-sonnet-latest"
DEFAULT_OPENROUTER_MODEL = "openai/gpt-4o"
DEFAULT_GENERIC_MODEL = "llama3.2"
DEFAULT_GENERIC_BASE_URL = "http://localhost:11434"

# =============================================================================
# API URLs
# =============================================================================
OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"

# =============================================================================
# LLM CONFIGURATION
# =============================================================================
DEFAULT_TEMPERATURE = 0.7     # Balanced creativity vs consistency
DEFAULT_MAX_TOKENS = 8192     # Anthropic requires an explicit ceiling
DEFAULT_REQUEST_TIMEOUT = 300  # Seconds for HTTP-based providers

# Transport failures only; contract violations are never retried
DEFAULT_LLM_MAX_RETRIES = 3
DEFAULT_LLM_RETRY_WAIT = 10   # Seconds between attempts

# =============================================================================
# APP METADATA (for OpenRouter tracking)
# =============================================================================
DEFAULT_OPENROUTER_REFERER = "https://github.com"
DEFAULT_OPENROUTER_TITLE = "Codebase Tutorial Generator"
