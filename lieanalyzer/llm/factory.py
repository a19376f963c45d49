"""
LLM Provider factory.
"""

from lieanalyzer.llm import LLMProvider


def get_provider(provider_name: str = "gemini") -> LLMProvider:
    """Factory — returns the configured LLM provider."""
    if provider_name == "gemini":
        from lieanalyzer.llm.gemini import GeminiProvider
        return GeminiProvider()
    raise ValueError(f"Unknown LLM provider: {provider_name}")
