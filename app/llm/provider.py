"""
Chat-completion provider interface used by the Analysis Oracle.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass
class LLMResponse:
    """One completion and what it cost."""
    content: str
    model: str = ""
    tokens_in: int = 0
    tokens_out: int = 0
    finish_reason: Optional[str] = None

    @property
    def truncated(self) -> bool:
        return self.finish_reason == "length"


class LLMProvider(ABC):
    """Anything that can turn a chat transcript into one completion."""

    @abstractmethod
    def chat(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """
        Generate a chat completion.

        Args:
            messages: [{"role": ..., "content": ...}, ...]
            model: Model identifier
            temperature: Sampling temperature
            max_tokens: Completion limit, provider default when None
            json_mode: Ask the provider to constrain output to one JSON object

        Raises:
            openai.OpenAIError (or the provider's equivalent) on timeout or API failure
        """
        pass
