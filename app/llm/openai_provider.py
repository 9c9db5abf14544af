import logging
from typing import Dict, List, Optional

from openai import OpenAI, OpenAIError, APIError, APITimeoutError

from app.core.config import OPENAI_API_KEY, ANALYSIS_TIMEOUT_SECONDS
from app.llm.provider import LLMProvider, LLMResponse

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 2000


class OpenAIProvider(LLMProvider):
    """LLMProvider backed by the official OpenAI SDK."""

    def __init__(self, api_key: Optional[str] = None, timeout: Optional[float] = None):
        self.api_key = api_key or OPENAI_API_KEY
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY not configured")
        self.timeout = timeout or ANALYSIS_TIMEOUT_SECONDS
        # max_retries=0: a failed analysis is resubmitted by the caller
        self.client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        logger.info(f"OpenAI provider initialized: timeout={self.timeout}s")

    def chat(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        extra = {"response_format": {"type": "json_object"}} if json_mode else {}
        try:
            completion = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens or DEFAULT_MAX_TOKENS,
                **extra
            )
        except APITimeoutError:
            logger.error(f"OpenAI request timed out after {self.timeout}s: model={model}")
            raise
        except APIError as e:
            logger.error(f"OpenAI API error: model={model}, error={type(e).__name__}: {e}")
            raise

        if not completion.choices:
            logger.error(f"OpenAI completion had no choices: model={model}")
            raise OpenAIError("OpenAI returned a completion with no choices")

        choice = completion.choices[0]
        usage = completion.usage
        response = LLMResponse(
            content=choice.message.content or "",
            model=completion.model or model,
            tokens_in=usage.prompt_tokens if usage else 0,
            tokens_out=usage.completion_tokens if usage else 0,
            finish_reason=choice.finish_reason,
        )
        if response.truncated:
            logger.warning(f"OpenAI completion hit max_tokens: model={model}, tokens_out={response.tokens_out}")
        return response
