# llm/responder.py
"""
LLM text generation for itineraries and small talk.
OpenAI when a key is configured, otherwise a local Ollama model when
enabled. Returns None when no LLM is available so callers can fall back
to canned text.
"""

from typing import Optional, List, Dict, Any

import httpx
from loguru import logger
from openai import OpenAI

from ..config import settings
from ..schemas.chat_schemas import HistoryMessage


class LLMResponder:
    def __init__(
        self,
        client: Optional[Any] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.model = model or settings.OPENAI_MODEL
        self.client = client
        self.transport = transport

        if self.client is None and settings.use_openai:
            try:
                self.client = OpenAI(api_key=settings.OPENAI_API_KEY)
            except Exception as e:
                logger.warning(f"LLMResponder: OpenAI init failed: {e}")

    @property
    def available(self) -> bool:
        return self.client is not None or settings.OLLAMA_ENABLED

    def _call_openai(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float
    ) -> Optional[str]:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature
            )
            return response.choices[0].message.content
        except Exception as e:
            logger.error(f"OpenAI API error: {e}")
            return None

    async def _call_ollama(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float
    ) -> Optional[str]:
        # Ollama's generate endpoint takes one flat prompt
        prompt = ""
        for msg in messages:
            if msg["role"] == "system":
                prompt += f"{msg['content']}\n\n"
            else:
                role = "User" if msg["role"] == "user" else "Assistant"
                prompt += f"{role}: {msg['content']}\n"
        prompt += "Assistant:"

        try:
            async with httpx.AsyncClient(timeout=60.0, transport=self.transport) as client:
                response = await client.post(
                    f"{settings.OLLAMA_BASE_URL}/api/generate",
                    json={
                        "model": settings.OLLAMA_MODEL,
                        "prompt": prompt,
                        "stream": False,
                        "options": {
                            "temperature": temperature,
                            "num_predict": max_tokens
                        }
                    }
                )
            if response.status_code != 200:
                logger.error(f"Ollama error: {response.status_code}")
                return None
            return response.json().get("response") or None
        except httpx.ConnectError:
            logger.error("Cannot connect to Ollama. Make sure Ollama is running.")
            return None
        except Exception as e:
            logger.error(f"Ollama API error: {e}")
            return None

    async def generate(
        self,
        prompt: str,
        system_prompt: str,
        history: Optional[List[HistoryMessage]] = None,
        max_tokens: int = 500,
        temperature: float = 0.7
    ) -> Optional[str]:
        """
        Generate a reply.

        Args:
            prompt: User-side prompt
            system_prompt: Instructions for the model
            history: Earlier turns placed between system prompt and prompt

        Returns:
            Generated text, or None when no LLM answered
        """
        messages = [{"role": "system", "content": system_prompt}]
        for msg in history or []:
            messages.append({"role": msg.role, "content": msg.content})
        messages.append({"role": "user", "content": prompt})

        if self.client is not None:
            return self._call_openai(messages, max_tokens, temperature)
        if settings.OLLAMA_ENABLED:
            return await self._call_ollama(messages, max_tokens, temperature)

        logger.warning("No LLM configured for text generation")
        return None
