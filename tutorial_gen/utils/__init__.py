"""
Codebase Tutorial Generator - Utils Package
"""

from .call_llm import LLMProvider, call_llm, create_llm_provider, detect_llm_provider
from .crawl_github_files import crawl_github_files, parse_github_url
from .crawl_local_files import crawl_local_files
from .response_contract import (
    LLMCallError,
    ResponseContractError,
    parse_reference,
    parse_structured_response,
)

__all__ = [
    'LLMProvider',
    'call_llm',
    'create_llm_provider',
    'detect_llm_provider',
    'crawl_github_files',
    'parse_github_url',
    'crawl_local_files',
    'LLMCallError',
    'ResponseContractError',
    'parse_reference',
    'parse_structured_response',
]
