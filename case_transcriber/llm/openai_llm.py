"""
Speaker re-labeling through an OpenAI compatible chat API
Supports OpenAI / DeepSeek / Groq / Ollama and any other compatible endpoint

Anthropic-style endpoints go through AnthropicLLM instead
"""
import logging
from typing import Sequence

from openai import OpenAI

from case_transcriber.llm.base import SpeakerRelabeler
from case_transcriber.llm.prompts import SYSTEM_PROMPT, build_user_prompt

logger = logging.getLogger(__name__)


class OpenAILLM(SpeakerRelabeler):
    """
    Generic OpenAI compatible LLM

    Base URLs:
    - OpenAI:   https://api.openai.com/v1
    - DeepSeek: https://api.deepseek.com/v1
    - Ollama:   http://localhost:11434/v1
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        timeout: float = 60.0,
    ):
        self.model = model
        self.temperature = temperature
        self.client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)
        logger.info(f"[LLM] ready: model={model}, base_url={base_url}")

    def relabel(self, transcript: str, labels: Sequence[str]) -> str:
        user_prompt = build_user_prompt(transcript, labels)
        logger.info(f"[LLM] relabeling: model={self.model}, prompt_len={len(user_prompt)}")

        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.temperature,
        )

        content = (response.choices[0].message.content or "").strip()
        logger.info(f"[LLM] done: output_len={len(content)}")
        return content


class AnthropicLLM(SpeakerRelabeler):
    """
    Anthropic SDK LLM (also covers Anthropic compatible gateways such as MiniMax)

    Requires: pip install anthropic
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.anthropic.com",
        model: str = "claude-3-5-haiku-latest",
        temperature: float = 0.2,
        timeout: float = 60.0,
    ):
        try:
            import anthropic
        except ImportError:
            raise ImportError("Install the anthropic SDK: pip install anthropic")

        self.model = model
        self.temperature = temperature
        self.client = anthropic.Anthropic(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )
        logger.info(f"[AnthropicLLM] ready: model={model}, base_url={base_url}")

    def relabel(self, transcript: str, labels: Sequence[str]) -> str:
        user_prompt = build_user_prompt(transcript, labels)
        logger.info(f"[AnthropicLLM] relabeling: model={self.model}, prompt_len={len(user_prompt)}")

        response = self.client.messages.create(
            model=self.model,
            max_tokens=8192,
            system=SYSTEM_PROMPT,
            messages=[
                {"role": "user", "content": [{"type": "text", "text": user_prompt}]}
            ],
            temperature=self.temperature,
        )

        content = ""
        for block in response.content:
            if block.type == "text":
                content = block.text.strip()
                break

        logger.info(f"[AnthropicLLM] done: output_len={len(content)}")
        return content
