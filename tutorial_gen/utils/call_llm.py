"""
================================================================================
CODEBASE TUTORIAL GENERATOR - LLM ADAPTERS
================================================================================
This is the BRAIN of the tutorial generator - the LLM calling interface.

Every stage talks to an `LLMProvider` through a single capability:

    provider.generate_content(prompt, options) -> str

One subclass exists per vendor; `create_llm_provider(tag)` picks one. The
pipeline stages never branch on which vendor is behind the call.

PROVIDER PRIORITY (used when no tag is given, checked in this order):
=====================================================================
1. OPENAI_API_KEY     → OpenAIProvider
2. GEMINI_API_KEY     → GeminiProvider
3. GEMINI_PROJECT_ID  → GeminiProvider (Vertex AI, requires ADC setup)
4. ANTHROPIC_API_KEY  → AnthropicProvider
5. OPENROUTER_API_KEY → OpenRouterProvider
6. LLM_API_BASE_URL   → GenericProvider (Ollama, LM Studio, vLLM, ...)

CACHING:
========
Responses are cached to llm_cache.json to avoid redundant API calls.
This saves money and time when re-running on the same codebase.
Use --no-cache flag to disable caching.

RETRIES:
========
Transport failures (connection errors, timeouts, rate limits) are retried
here, LLM_MAX_RETRIES times with LLM_RETRY_WAIT seconds in between. Nothing
above this layer retries.

LOGGING:
========
All prompts and responses are logged to logs/llm_calls_YYYYMMDD.log
This is essential for debugging and understanding LLM behavior.
================================================================================
"""

# =============================================================================
# IMPORTS
# =============================================================================
import os
import sys
import json
import time
import logging
from datetime import datetime

import requests
from dotenv import load_dotenv

from tutorial_gen.constants.llm import (
    LLM_PROVIDER_OPENAI,
    LLM_PROVIDER_GEMINI,
    LLM_PROVIDER_ANTHROPIC,
    LLM_PROVIDER_OPENROUTER,
    LLM_PROVIDER_GENERIC,
    LLM_PROVIDER_ALIASES,
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
    DEFAULT_OPENAI_MODEL,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_GEMINI_LOCATION,
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_OPENROUTER_MODEL,
    DEFAULT_GENERIC_MODEL,
    DEFAULT_GENERIC_BASE_URL,
    OPENROUTER_API_URL,
    DEFAULT_TEMPERATURE,
    DEFAULT_MAX_TOKENS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_LLM_MAX_RETRIES,
    DEFAULT_LLM_RETRY_WAIT,
    DEFAULT_OPENROUTER_REFERER,
    DEFAULT_OPENROUTER_TITLE,
)
from tutorial_gen.constants.paths import (
    LOGS_DIR_NAME,
    CACHE_FILE_NAME,
    LOG_FILE_PREFIX,
    LOG_DATE_FORMAT,
    LOG_LINE_FORMAT,
)

load_dotenv()  # Load environment variables from .env file

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
# Named logger for the prompt/response transcript; it writes to its own file
# and does not propagate, so the console stays readable.
logger = logging.getLogger("llm_logger")
logger.setLevel(logging.INFO)
logger.propagate = False


def _ensure_log_handler() -> None:
    """Attach the dated file handler on first use (not at import time)."""
    if logger.handlers:
        return
    log_directory = os.getenv(ENV_LOG_DIR, os.path.join(os.getcwd(), LOGS_DIR_NAME))
    os.makedirs(log_directory, exist_ok=True)
    log_file = os.path.join(
        log_directory, f"{LOG_FILE_PREFIX}{datetime.now().strftime(LOG_DATE_FORMAT)}.log"
    )
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(
        logging.Formatter(LOG_LINE_FORMAT)
    )
    logger.addHandler(file_handler)


# =============================================================================
# CACHE
# =============================================================================
def get_cache_file() -> str:
    """Location of the prompt -> response cache (LLM_CACHE_FILE overrides)."""
    return os.getenv(ENV_LLM_CACHE_FILE, os.path.join(os.getcwd(), CACHE_FILE_NAME))


def load_cache(cache_file: str | None = None) -> dict:
    """
    Load the LLM response cache from disk.

    The cache is a simple JSON file mapping prompts to their responses.
    A missing or unreadable cache is treated as empty.

    Returns:
        dict: The cache dictionary, or empty dict if cache doesn't exist
    """
    cache_file = cache_file or get_cache_file()
    if os.path.exists(cache_file):
        try:
            with open(cache_file, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load cache: {e}")
    return {}


def save_cache(cache: dict, cache_file: str | None = None) -> None:
    """Save the LLM response cache to disk."""
    cache_file = cache_file or get_cache_file()
    try:
        with open(cache_file, "w", encoding="utf-8") as f:
            json.dump(cache, f, indent=2)
    except OSError as e:
        logger.warning(f"Failed to save cache: {e}")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


# =============================================================================
# PROVIDER BASE CLASS
# =============================================================================
class LLMProvider:
    """
    Capability interface shared by every vendor adapter.

    Subclasses implement `_generate(prompt, options)`; this class wraps it
    with transcript logging, the on-disk cache and transport retries.

    Recognised options (all optional):
        use_cache (bool): Serve/fill the cache (default True)
        model (str): Override the instance model for this call
        temperature (float): Override the instance temperature
        max_tokens (int): Output ceiling, where the vendor supports it
    """

    provider_type = None
    default_model = None

    # Errors treated as transient; vendor classes extend this with SDK errors
    transient_errors = (
        requests.exceptions.RequestException,
        ConnectionError,
        TimeoutError,
    )

    def __init__(
        self,
        model=None,
        temperature=DEFAULT_TEMPERATURE,
        max_retries=None,
        retry_wait=None,
        cache_file=None,
    ):
        self.model = model or self.default_model
        self.temperature = temperature
        self.max_retries = (
            max_retries if max_retries is not None
            else _env_int(ENV_LLM_MAX_RETRIES, DEFAULT_LLM_MAX_RETRIES)
        )
        self.retry_wait = (
            retry_wait if retry_wait is not None
            else _env_float(ENV_LLM_RETRY_WAIT, DEFAULT_LLM_RETRY_WAIT)
        )
        self.cache_file = cache_file

    def __repr__(self):
        return f"{type(self).__name__}(model={self.model!r})"

    def generate_content(self, prompt: str, options: dict | None = None) -> str:
        """
        Send a prompt and return the model's raw text output.

        Raises:
            Whatever the vendor raised once retries are exhausted, or
            immediately for non-transient errors.
        """
        options = dict(options or {})
        use_cache = options.pop("use_cache", True)
        _ensure_log_handler()
        start_time = time.time()

        logger.info(f"PROMPT ({self.provider_type}/{self._model_for(options)}): {prompt}")

        if use_cache:
            cache = load_cache(self.cache_file)
            if prompt in cache:
                logger.info("CACHE HIT: Using cached response")
                print("  💾 Cache HIT")
                return cache[prompt]

        print(f"  ☁️  {self.provider_type} ({self._model_for(options)})...", end=" ", flush=True)
        response_text = self._generate_with_retries(prompt, options)

        elapsed = time.time() - start_time
        time_str = f"{elapsed/60:.1f}m" if elapsed >= 60 else f"{elapsed:.1f}s"
        logger.info(f"RESPONSE: {response_text}")
        print(f"✓ {len(response_text):,} chars ({time_str})")

        if use_cache:
            cache = load_cache(self.cache_file)
            cache[prompt] = response_text
            save_cache(cache, self.cache_file)

        return response_text

    def _generate_with_retries(self, prompt, options):
        attempts = max(1, self.max_retries)
        for attempt in range(attempts):
            try:
                text = self._generate(prompt, options)
            except Exception as e:
                if not self._is_transient(e):
                    raise
                logger.warning(
                    f"{self.provider_type} call failed (attempt {attempt + 1}/{attempts}): {e}"
                )
                if attempt == attempts - 1:
                    print("✗")
                    raise
                if self.retry_wait > 0:
                    time.sleep(self.retry_wait)
                continue
            if text is None:
                raise ValueError(f"{self.provider_type} returned an empty response")
            return text

    def _is_transient(self, error):
        return isinstance(error, self.transient_errors)

    def _model_for(self, options):
        return options.get("model") or self.model

    def _temperature_for(self, options):
        return options.get("temperature", self.temperature)

    def _generate(self, prompt: str, options: dict) -> str:
        raise NotImplementedError


# =============================================================================
# PROVIDER-SPECIFIC IMPLEMENTATIONS
# =============================================================================
class OpenAIProvider(LLMProvider):
    """
    OpenAI API through the official SDK.

    Environment variables:
    - OPENAI_API_KEY: Required - your OpenAI API key
    - OPENAI_MODEL: Optional - model to use (default: gpt-4o)
    """

    provider_type = LLM_PROVIDER_OPENAI

    def __init__(self, model=None, api_key=None, **kwargs):
        super().__init__(model=model or os.getenv(ENV_OPENAI_MODEL, DEFAULT_OPENAI_MODEL), **kwargs)
        self.api_key = api_key or os.getenv(ENV_OPENAI_API_KEY)
        if not self.api_key:
            raise ValueError(f"{ENV_OPENAI_API_KEY} environment variable not set")
        try:
            import openai
        except ImportError:
            raise ImportError("OpenAI package not installed. Run: pip install openai")
        self.transient_errors = self.transient_errors + (
            openai.APIConnectionError,
            openai.APITimeoutError,
            openai.RateLimitError,
        )

    def _generate(self, prompt, options):
        from openai import OpenAI

        client = OpenAI(api_key=self.api_key)
        response = client.chat.completions.create(
            model=self._model_for(options),
            messages=[{"role": "user", "content": prompt}],
            temperature=self._temperature_for(options),
        )
        return response.choices[0].message.content


class GeminiProvider(LLMProvider):
    """
    Google Gemini through google-genai.

    Supports two modes:
    1. API Key mode (GEMINI_API_KEY) - Simpler, recommended
    2. Vertex AI mode (GEMINI_PROJECT_ID) - Requires ADC setup

    IMPORTANT: API key is checked FIRST to avoid Vertex AI ADC issues!
    """

    provider_type = LLM_PROVIDER_GEMINI

    def __init__(self, model=None, api_key=None, **kwargs):
        super().__init__(model=model or os.getenv(ENV_GEMINI_MODEL, DEFAULT_GEMINI_MODEL), **kwargs)
        self.api_key = api_key or os.getenv(ENV_GEMINI_API_KEY)
        self.project_id = os.getenv(ENV_GEMINI_PROJECT_ID)
        self.location = os.getenv(ENV_GEMINI_LOCATION, DEFAULT_GEMINI_LOCATION)
        if not self.api_key and not self.project_id:
            raise ValueError(f"Either {ENV_GEMINI_API_KEY} or {ENV_GEMINI_PROJECT_ID} must be set")
        try:
            from google.genai import errors
        except ImportError:
            raise ImportError("Google GenAI package not installed. Run: pip install google-genai")
        self.transient_errors = self.transient_errors + (errors.ServerError,)

    def _client(self):
        from google import genai

        if self.api_key:
            return genai.Client(api_key=self.api_key)
        # Vertex AI mode - requires Application Default Credentials
        return genai.Client(vertexai=True, project=self.project_id, location=self.location)

    def _generate(self, prompt, options):
        from google.genai import types

        response = self._client().models.generate_content(
            model=self._model_for(options),
            contents=[prompt],
            config=types.GenerateContentConfig(temperature=self._temperature_for(options)),
        )
        return response.text


class AnthropicProvider(LLMProvider):
    """
    Anthropic Claude through the official SDK.

    Environment variables:
    - ANTHROPIC_API_KEY: Required
    - ANTHROPIC_MODEL: Optional - model to use
    """

    provider_type = LLM_PROVIDER_ANTHROPIC

    def __init__(self, model=None, api_key=None, **kwargs):
        super().__init__(model=model or os.getenv(ENV_ANTHROPIC_MODEL, DEFAULT_ANTHROPIC_MODEL), **kwargs)
        self.api_key = api_key or os.getenv(ENV_ANTHROPIC_API_KEY)
        if not self.api_key:
            raise ValueError(f"{ENV_ANTHROPIC_API_KEY} environment variable not set")
        try:
            import anthropic
        except ImportError:
            raise ImportError("Anthropic package not installed. Run: pip install anthropic")
        self.transient_errors = self.transient_errors + (
            anthropic.APIConnectionError,
            anthropic.APITimeoutError,
            anthropic.RateLimitError,
        )

    def _generate(self, prompt, options):
        import anthropic

        client = anthropic.Anthropic(api_key=self.api_key)
        message = client.messages.create(
            model=self._model_for(options),
            max_tokens=options.get("max_tokens", DEFAULT_MAX_TOKENS),
            temperature=self._temperature_for(options),
            messages=[{"role": "user", "content": prompt}],
        )
        return "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )


class _ChatCompletionsProvider(LLMProvider):
    """Shared plumbing for OpenAI-compatible /chat/completions endpoints over requests."""

    def _post_chat(self, url, headers, prompt, options):
        payload = {
            "model": self._model_for(options),
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self._temperature_for(options),
        }
        if "max_tokens" in options:
            payload["max_tokens"] = options["max_tokens"]
        response = requests.post(url, headers=headers, json=payload, timeout=DEFAULT_REQUEST_TIMEOUT)
        response.raise_for_status()
        return response.json()["choices"][0]["message"]["content"]

    def _is_transient(self, error):
        # 4xx other than 429 are configuration errors (bad key, bad model)
        if isinstance(error, requests.exceptions.HTTPError) and error.response is not None:
            status = error.response.status_code
            return status == 429 or status >= 500
        return super()._is_transient(error)


class OpenRouterProvider(_ChatCompletionsProvider):
    """
    OpenRouter - a gateway to many LLM providers.

    Environment variables:
    - OPENROUTER_API_KEY: Required - your OpenRouter API key
    - OPENROUTER_MODEL: Model to use (default: openai/gpt-4o)
    - OPENROUTER_REFERER: HTTP referer for tracking (default: https://github.com)
    - OPENROUTER_TITLE: App title for tracking
    """

    provider_type = LLM_PROVIDER_OPENROUTER

    def __init__(self, model=None, api_key=None, **kwargs):
        super().__init__(model=model or os.getenv(ENV_OPENROUTER_MODEL, DEFAULT_OPENROUTER_MODEL), **kwargs)
        self.api_key = api_key or os.getenv(ENV_OPENROUTER_API_KEY)
        if not self.api_key:
            raise ValueError(f"{ENV_OPENROUTER_API_KEY} environment variable not set")

    def _generate(self, prompt, options):
        # OpenRouter requires specific headers for tracking
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": os.getenv(ENV_OPENROUTER_REFERER, DEFAULT_OPENROUTER_REFERER),
            "X-Title": os.getenv(ENV_OPENROUTER_TITLE, DEFAULT_OPENROUTER_TITLE),
        }
        return self._post_chat(OPENROUTER_API_URL, headers, prompt, options)


class GenericProvider(_ChatCompletionsProvider):
    """
    Any OpenAI-compatible server: Ollama, LM Studio, vLLM, LocalAI...

    Environment variables:
    - LLM_API_BASE_URL: The base URL (default: http://localhost:11434)
    - LLM_API_KEY: Optional API key (not needed for local models)
    - LLM_MODEL: Model to use (default: llama3.2)
    """

    provider_type = LLM_PROVIDER_GENERIC

    def __init__(self, model=None, base_url=None, api_key=None, **kwargs):
        super().__init__(model=model or os.getenv(ENV_LLM_MODEL, DEFAULT_GENERIC_MODEL), **kwargs)
        self.base_url = base_url or os.getenv(ENV_LLM_API_BASE_URL, DEFAULT_GENERIC_BASE_URL)
        self.api_key = api_key if api_key is not None else os.getenv(ENV_LLM_API_KEY, "")

    def _generate(self, prompt, options):
        url = f"{self.base_url.rstrip('/')}/v1/chat/completions"
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return self._post_chat(url, headers, prompt, options)


PROVIDER_CLASSES = {
    LLM_PROVIDER_OPENAI: OpenAIProvider,
    LLM_PROVIDER_GEMINI: GeminiProvider,
    LLM_PROVIDER_ANTHROPIC: AnthropicProvider,
    LLM_PROVIDER_OPENROUTER: OpenRouterProvider,
    LLM_PROVIDER_GENERIC: GenericProvider,
}


# =============================================================================
# PROVIDER DETECTION & FACTORY
# =============================================================================
def detect_llm_provider() -> str:
    """
    Determine which LLM provider to use based on environment variables.

    LLM_PROVIDER wins when set; otherwise API keys are checked in priority
    order and the FIRST configured provider is used.

    Returns:
        str: A provider tag ("openai", "gemini", "anthropic", "openrouter", "generic")

    Raises:
        ValueError: If no provider is configured
    """
    explicit = os.getenv(ENV_LLM_PROVIDER)
    if explicit:
        return normalize_provider_tag(explicit)
    if os.getenv(ENV_OPENAI_API_KEY):
        return LLM_PROVIDER_OPENAI
    elif os.getenv(ENV_GEMINI_API_KEY) or os.getenv(ENV_GEMINI_PROJECT_ID):
        return LLM_PROVIDER_GEMINI
    elif os.getenv(ENV_ANTHROPIC_API_KEY):
        return LLM_PROVIDER_ANTHROPIC
    elif os.getenv(ENV_OPENROUTER_API_KEY):
        return LLM_PROVIDER_OPENROUTER
    elif os.getenv(ENV_LLM_API_BASE_URL):
        return LLM_PROVIDER_GENERIC
    raise ValueError(
        f"No LLM provider configured. Set one of: "
        f"{ENV_OPENAI_API_KEY}, {ENV_GEMINI_API_KEY}, {ENV_GEMINI_PROJECT_ID}, "
        f"{ENV_ANTHROPIC_API_KEY}, {ENV_OPENROUTER_API_KEY}, or {ENV_LLM_API_BASE_URL}"
    )


def normalize_provider_tag(tag: str) -> str:
    """Lower-case a provider tag and resolve aliases ("chatgpt" -> "openai")."""
    name = tag.strip().lower()
    name = LLM_PROVIDER_ALIASES.get(name, name)
    if name not in PROVIDER_CLASSES:
        supported = ", ".join(sorted(set(PROVIDER_CLASSES) | set(LLM_PROVIDER_ALIASES)))
        raise ValueError(f"Unsupported LLM provider: {tag!r}. Supported providers are: {supported}.")
    return name


def create_llm_provider(provider: str | None = None, **kwargs) -> LLMProvider:
    """
    Factory for LLM providers.

    Args:
        provider: Provider tag (case-insensitive, aliases accepted). When
            omitted the provider is detected from the environment.
        **kwargs: Passed to the provider constructor (model, temperature,
            max_retries, retry_wait, cache_file, ...)

    Raises:
        ValueError: Unknown tag or missing credentials
    """
    tag = normalize_provider_tag(provider) if provider else detect_llm_provider()
    return PROVIDER_CLASSES[tag](**kwargs)


# =============================================================================
# CONVENIENCE WRAPPER
# =============================================================================
def call_llm(prompt: str, use_cache: bool = True) -> str:
    """
    One-shot call through the provider detected from the environment.

    Args:
        prompt: The prompt to send to the LLM
        use_cache: Whether to use caching (default: True)

    Returns:
        str: The LLM response text
    """
    return create_llm_provider().generate_content(prompt, {"use_cache": use_cache})


# =============================================================================
# TEST SCRIPT
# =============================================================================
if __name__ == "__main__":
    # Verify your API key is working:  python -m tutorial_gen.utils.call_llm
    try:
        provider = create_llm_provider()
        print(f"Using LLM provider: {provider}")

        test_prompt = "Say hello in one sentence."
        print(f"Testing with prompt: {test_prompt}")

        response = provider.generate_content(test_prompt, {"use_cache": False})
        print(f"Response: {response}")

    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)
