"""LLM service for OpenAI-compatible chat completion backends (Ollama by default)."""
import time
from typing import Any, Dict, Sequence

import httpx
from openai import APIConnectionError, AsyncOpenAI

from pdfchat.exceptions import GenerationError, ServiceUnavailableError
from pdfchat.models.document import ScoredChunk
from pdfchat.prompts import AnswerPrompt
from pdfchat.utils.logger import logger
from pdfchat.utils.metrics import GENERATION_SECONDS


class LLMService:
    """Service for generating answers from ranked document excerpts."""

    def __init__(
        self,
        api_key: str = "ollama",
        base_url: str = "http://localhost:11434/v1",
        model: str = "gemma3:1b",
        temperature: float = 0.2,
        top_p: float = 0.8,
        max_tokens: int = 800,
        timeout_seconds: float = 120.0,
        context_preview_chars: int = 800,
        health_timeout_seconds: float = 5.0,
    ):
        """
        Initialize LLM service.

        Args:
            api_key: API key for the backend (Ollama ignores it but the SDK requires one)
            base_url: OpenAI-compatible base URL, including the ``/v1`` prefix
            model: Model name to use
            temperature: Sampling temperature
            top_p: Nucleus sampling cutoff
            max_tokens: Maximum tokens to generate
            timeout_seconds: HTTP timeout for a single request
            context_preview_chars: Longest excerpt included in the prompt
            health_timeout_seconds: Timeout for the availability probe (no retries)
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.top_p = top_p
        self.max_tokens = max_tokens
        self.context_preview_chars = context_preview_chars
        self.health_timeout_seconds = health_timeout_seconds

        http_client = httpx.AsyncClient(timeout=timeout_seconds)
        self.client = AsyncOpenAI(
            api_key=api_key or "ollama",
            base_url=self.base_url,
            http_client=http_client,
        )
        logger.info(f"LLM service configured for {self.base_url} (model: {model})")

    def build_prompt(self, question: str, chunks: Sequence[ScoredChunk]) -> str:
        """Build the answer prompt for a question and its ranked chunks."""
        return AnswerPrompt.build(question, chunks, self.context_preview_chars)

    async def generate_answer(self, question: str, chunks: Sequence[ScoredChunk]) -> Dict[str, Any]:
        """
        Generate an answer grounded in the ranked chunks.

        Args:
            question: User's question
            chunks: Ranked chunks, most relevant first

        Returns:
            Dictionary with answer, token_usage, and response_time_ms

        Raises:
            ServiceUnavailableError: If the backend cannot be reached or times out
            GenerationError: If the backend call fails otherwise
        """
        start_time = time.time()
        prompt = self.build_prompt(question, chunks)

        try:
            with GENERATION_SECONDS.time():
                response = await self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": AnswerPrompt.SYSTEM_MESSAGE},
                        {"role": "user", "content": prompt},
                    ],
                    temperature=self.temperature,
                    top_p=self.top_p,
                    max_tokens=self.max_tokens,
                )
        except APIConnectionError as e:
            logger.error(f"LLM backend unreachable at {self.base_url}: {str(e)}")
            raise ServiceUnavailableError(f"LLM backend unreachable at {self.base_url}")
        except Exception as e:
            logger.error(f"Error calling LLM backend at {self.base_url}: {str(e)}", exc_info=True)
            raise GenerationError(f"Failed to generate answer: {str(e)}")

        answer = response.choices[0].message.content or "Unable to generate response."

        token_usage = None
        if response.usage is not None:
            token_usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        response_time_ms = (time.time() - start_time) * 1000

        logger.info(
            "LLM response generated",
            extra={
                "token_usage": token_usage,
                "response_time_ms": response_time_ms,
                "answer_length": len(answer),
            },
        )

        return {
            "answer": answer,
            "token_usage": token_usage,
            "response_time_ms": response_time_ms,
        }

    async def is_available(self) -> bool:
        """Probe the backend by listing its models."""
        try:
            await self.client.with_options(
                timeout=self.health_timeout_seconds, max_retries=0
            ).models.list()
            return True
        except Exception as e:
            logger.warning(f"LLM backend unavailable at {self.base_url}: {str(e)}")
            return False

    async def close(self):
        """Close HTTP client."""
        await self.client.close()
