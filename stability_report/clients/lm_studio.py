"""Chat-completion client for the local LM Studio server.

LM Studio speaks the OpenAI chat-completions protocol, so the standard
``ChatOpenAI`` model is pointed at its base URL.
"""

import asyncio
import logging

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import SecretStr

from stability_report.config import get_settings

logger = logging.getLogger(__name__)

TEMPERATURE = 0.3
MAX_TOKENS = 4000


class EmptyCompletionError(Exception):
    """The model answered, but with no usable text."""


def create_llm() -> ChatOpenAI:
    """Build the chat model for the configured LM Studio server.

    Retries are disabled: one attempt per report, the caller falls back on failure.
    """
    settings = get_settings()
    return ChatOpenAI(
        model=settings.lm_studio_model,
        api_key=SecretStr(settings.lm_studio_api_key),
        base_url=settings.lm_studio_url or None,
        temperature=TEMPERATURE,
        max_tokens=MAX_TOKENS,  # pyright: ignore[reportCallIssue]
        max_retries=0,
    )


async def complete(system_prompt: str, prompt: str, timeout: float | None = None) -> str:
    """Send one system + user message pair and return the reply text.

    Raises:
        TimeoutError: No reply within ``timeout`` seconds.
        EmptyCompletionError: The reply had no text content.
        Exception: Any transport or API error from the OpenAI client.
    """
    settings = get_settings()
    llm = create_llm()
    messages = [SystemMessage(content=system_prompt), HumanMessage(content=prompt)]

    logger.debug("Sending request to LM Studio at %s", settings.lm_studio_url)
    response = await asyncio.wait_for(
        llm.ainvoke(messages),
        timeout=timeout if timeout is not None else settings.ai_timeout_seconds,
    )

    content = response.content
    text = content if isinstance(content, str) else ""
    if not text.strip():
        raise EmptyCompletionError("No response content from LM Studio")
    return text
