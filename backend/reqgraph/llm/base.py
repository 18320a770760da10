from abc import ABC, abstractmethod
from typing import Dict, List, Optional


class LLMClient(ABC):
    @abstractmethod
    def generate(
        self,
        messages: List[Dict],
        response_format: str = "text",
        temperature: Optional[float] = None,
    ) -> str:
        """Generate assistant text from chat messages"""
        pass
