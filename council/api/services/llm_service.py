"""
Model invocation service

Streams persona replies from an OpenAI-compatible endpoint through LangChain
"""
import logging
from typing import Any, AsyncIterator, List, Optional

from langchain_core.messages import BaseMessage, SystemMessage
from langchain_openai import ChatOpenAI

from ..config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def chunk_text(content: Any) -> str:
    """Flatten a streamed chunk's content (plain string or content blocks) to text"""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text") or ""))
        return "".join(parts)
    return ""


class LLMService:
    """Create chat models and stream their text output"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    def create_llm(self, model_id: str, temperature: Optional[float] = None) -> ChatOpenAI:
        """
        Create a streaming chat model

        Args:
            model_id: Model identifier on the configured endpoint
            temperature: Sampling temperature, None = service default
        """
        return ChatOpenAI(
            model=model_id,
            api_key=self.settings.openai_api_key or None,
            base_url=self.settings.openai_base_url,
            temperature=self.settings.llm_temperature if temperature is None else temperature,
            timeout=self.settings.llm_timeout_seconds,
            streaming=True,
        )

    async def stream_text(
        self,
        *,
        model_id: str,
        system_prompt: str,
        messages: List[BaseMessage],
        temperature: Optional[float] = None,
    ) -> AsyncIterator[str]:
        """
        Stream a reply token by token

        Yields:
            Non-empty text fragments in arrival order
        """
        llm = self.create_llm(model_id, temperature)
        langchain_messages: List[BaseMessage] = [SystemMessage(content=system_prompt), *messages]

        logger.info(f"[LLM] Streaming {len(langchain_messages)} messages to {model_id}")
        total_chars = 0
        async for chunk in llm.astream(langchain_messages):
            text = chunk_text(chunk.content)
            if text:
                total_chars += len(text)
                yield text
        logger.info(f"[LLM] Stream from {model_id} finished ({total_chars} chars)")
