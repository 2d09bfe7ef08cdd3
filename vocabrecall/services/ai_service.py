"""
AI Service - LLM enrichment for vocabulary flashcards.

Fetches, for one word:
- Meaning in the learner's language
- US/UK phonetic symbols
- Four IELTS example sentences (Simple, Complex, Compound, Compound-Complex)
- Meanings of the word's synonyms
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import aiohttp

from ..config import Config
from ..exceptions import (
    MalformedResponseError,
    MissingCredentialsError,
    RateLimitedError,
    UpstreamError,
)
from ..models import EnrichmentResult

logger = logging.getLogger(__name__)


@dataclass
class AIConfig:
    """Configuration for the enrichment provider."""
    api_key: Optional[str] = None
    base_url: str = "https://api.groq.com/openai/v1"
    model: str = "llama-3.3-70b-versatile"
    temperature: float = 0.7
    timeout: int = 30
    target_language: str = "Indonesian"

    @classmethod
    def from_config(cls) -> "AIConfig":
        """Create config from application settings (environment / .env)."""
        return cls(
            api_key=Config.GROQ_API_KEY or None,
            base_url=Config.GROQ_API_URL,
            model=Config.AI_MODEL,
            temperature=Config.AI_TEMPERATURE,
            timeout=Config.AI_TIMEOUT,
            target_language=Config.AI_TARGET_LANGUAGE,
        )


class EnrichmentProvider(ABC):
    """
    Contract for anything that can enrich a word.

    Implementations raise an EnrichmentError subclass on failure so callers
    can tell missing credentials, rate limiting, upstream failures and
    malformed answers apart.
    """

    @abstractmethod
    async def enrich(self, word: str, synonyms: Optional[Sequence[str]] = None) -> EnrichmentResult:
        """Fetch enrichment for a word."""
        pass

    async def close(self) -> None:
        """Close any open resources (sessions, connections, etc.)."""
        pass

    async def __aenter__(self) -> "EnrichmentProvider":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class GroqEnrichmentProvider(EnrichmentProvider):
    """Groq chat completions (OpenAI-compatible) enrichment provider."""

    SYSTEM_PROMPT = "You are an IELTS tutor that provides vocabulary examples in JSON format."

    def __init__(self, config: Optional[AIConfig] = None):
        self.config = config or AIConfig.from_config()
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_lock = asyncio.Lock()

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create a shared aiohttp session."""
        async with self._session_lock:
            if self._session is None or self._session.closed:
                timeout = aiohttp.ClientTimeout(total=self.config.timeout)
                self._session = aiohttp.ClientSession(timeout=timeout)
            return self._session

    async def close(self) -> None:
        """Close the aiohttp session."""
        async with self._session_lock:
            if self._session and not self._session.closed:
                await self._session.close()
                self._session = None

    def build_prompt(self, word: str, synonyms: Optional[Sequence[str]] = None) -> str:
        """User prompt asking for the JSON enrichment object."""
        language = self.config.target_language
        synonym_line = ""
        if synonyms:
            quoted = ", ".join(f'"{s}"' for s in synonyms)
            synonym_line = (
                f"\nAlso give the {language} meaning of each of these synonyms, "
                f"in the same order, as \"synonymMeanings\": {quoted}."
            )

        return f"""Act as an IELTS Writing Expert and {language} Translator. For the vocabulary word "{word}", generate its {language} meaning/translation, exactly 4 example sentences (with their {language} translations), and its phonetic symbols in JSON format.
The sentences must be high-quality and suitable for IELTS Writing Task 2.
Provide one of each type: "Simple", "Complex", "Compound", "Compound-Complex".
Also provide the phonetic symbols for American (US) and British (UK) English.{synonym_line}

IMPORTANT: You MUST return ONLY a JSON object. No intro text, no conversational filler.
Response format:
{{
  "meaning": "{language} translation of the main word",
  "definition": "short English definition",
  "phonetics": {{"us": "/.../", "uk": "/.../"}},
  "examples": [
    {{"type": "Simple", "text": "English sentence...", "translation": "{language} translation..."}},
    {{"type": "Complex", "text": "English sentence...", "translation": "{language} translation..."}},
    {{"type": "Compound", "text": "English sentence...", "translation": "{language} translation..."}},
    {{"type": "Compound-Complex", "text": "English sentence...", "translation": "{language} translation..."}}
  ],
  "synonymMeanings": ["..."]
}}"""

    @staticmethod
    def parse_completion(data: Dict[str, Any]) -> EnrichmentResult:
        """
        Turn a chat-completions response body into an EnrichmentResult.

        Raises:
            MalformedResponseError: If the message content is not the expected JSON object
        """
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError(f"Unexpected completion shape: {e}") from e

        try:
            payload = json.loads(content)
        except (TypeError, ValueError) as e:
            raise MalformedResponseError(f"Completion is not JSON: {str(content)[:200]}") from e

        try:
            return EnrichmentResult.from_payload(payload)
        except ValueError as e:
            raise MalformedResponseError(str(e)) from e

    @staticmethod
    def _retry_after(headers: Any) -> Optional[float]:
        value = headers.get("Retry-After") if headers else None
        try:
            return float(value) if value is not None else None
        except ValueError:
            return None

    async def enrich(self, word: str, synonyms: Optional[Sequence[str]] = None) -> EnrichmentResult:
        """Generate enrichment using the Groq API."""
        if not self.is_configured:
            raise MissingCredentialsError("GROQ_API_KEY is not configured")

        session = await self._get_session()
        url = f"{self.config.base_url.rstrip('/')}/chat/completions"

        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

        payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": self.SYSTEM_PROMPT},
                {"role": "user", "content": self.build_prompt(word, synonyms)},
            ],
            "response_format": {"type": "json_object"},
            "temperature": self.config.temperature,
        }

        logger.debug("Requesting enrichment for %r", word)
        try:
            async with session.post(url, headers=headers, json=payload) as response:
                if response.status == 429:
                    raise RateLimitedError(
                        f"Groq rate limit hit for {word!r}",
                        retry_after=self._retry_after(response.headers),
                    )
                if response.status != 200:
                    error = await response.text()
                    raise UpstreamError(
                        f"Groq API error {response.status}: {error[:200]}",
                        status=response.status,
                    )
                try:
                    data = await response.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError) as e:
                    raise MalformedResponseError(f"Response body is not JSON: {e}") from e
        except asyncio.TimeoutError as e:
            raise UpstreamError("Groq API timeout") from e
        except aiohttp.ClientError as e:
            raise UpstreamError(f"Groq API connection error: {e}") from e

        return self.parse_completion(data)


def create_enrichment_provider(config: Optional[AIConfig] = None) -> EnrichmentProvider:
    """
    Create the configured provider, wrapped in the retry policy.

    Args:
        config: Provider configuration (uses environment if None)

    Returns:
        Provider with capped exponential backoff
    """
    from .retry import RetryPolicy, RetryingEnrichmentProvider

    return RetryingEnrichmentProvider(
        GroqEnrichmentProvider(config),
        RetryPolicy.from_config(),
    )


def synonyms_for_prompt(synonyms: List[str], limit: int = 8) -> List[str]:
    """Cap the number of synonyms sent upstream to keep prompts short."""
    return synonyms[:limit]
