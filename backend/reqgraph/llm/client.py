import re
from typing import Dict, List, Optional

import requests

from reqgraph.config import LLM_API_KEY, LLM_BASE_URL, LLM_TIMEOUT
from reqgraph.llm.base import LLMClient


class ChatCompletionsClient(LLMClient):
    """
    Minimal OpenAI-compatible /chat/completions client.
    """

    def __init__(
        self,
        model: str,
        base_url: str = LLM_BASE_URL,
        temperature: float = 0.2,
        api_key: Optional[str] = LLM_API_KEY,
        timeout: float = LLM_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.api_key = api_key
        self.timeout = timeout

    def generate(
        self,
        messages: List[Dict],
        response_format: str = "text",
        temperature: Optional[float] = None,
    ) -> str:
        url = f"{self.base_url}/chat/completions"

        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
        }
        if response_format == "json":
            payload["response_format"] = {"type": "json_object"}

        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        response = requests.post(
            url,
            json=payload,
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()

        content = response.json()["choices"][0]["message"]["content"] or ""

        # models like to wrap JSON in markdown fences
        if response_format == "json":
            content = re.sub(r"^```(?:json)?\s*", "", content.strip())
            content = re.sub(r"\s*```$", "", content.strip())

        return content
