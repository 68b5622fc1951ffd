"""Base agent class: configuration, generation calls and metrics."""

from abc import ABC, abstractmethod
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional, Union

from ..config import LoggerMixin
from ..config.jurisdictions import AgentConfig
from ..services.providers import (
    ChatMessage, GenerationError, GenerationOptions, GenerationProvider, ProviderError
)


class BaseAgent(ABC, LoggerMixin):
    """Abstract base class for all agents in the system."""

    def __init__(self, config: AgentConfig, generation_provider: GenerationProvider):
        self.config = config
        self.generation_provider = generation_provider
        self.metrics = {
            "requests": 0,
            "failed_requests": 0,
            "generation_calls": 0,
            "errors": 0,
            "start_time": datetime.now(UTC),
            "last_activity": None
        }

    @abstractmethod
    async def process_query(self, query: str, context: Optional[Dict[str, Any]] = None) -> Any:
        """Answer a query. Must be implemented by subclasses."""
        pass

    async def generate_response(
        self,
        messages: Union[str, List[ChatMessage]],
        json_mode: bool = False,
        system_prompt: Optional[str] = None
    ) -> str:
        """Single generation call with this agent's prompt, temperature and token limit."""
        if isinstance(messages, str):
            messages = [ChatMessage(role="user", content=messages)]

        options = GenerationOptions(
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            json_mode=json_mode
        )

        self.metrics["generation_calls"] += 1
        self.metrics["last_activity"] = datetime.now(UTC)

        try:
            return await self.generation_provider.complete(
                system_prompt or self.config.system_prompt, messages, options
            )
        except ProviderError:
            self.metrics["errors"] += 1
            self.logger.error(f"Generation failed for agent {self.config.id}")
            raise
        except Exception as e:
            self.metrics["errors"] += 1
            self.logger.error(f"Generation failed for agent {self.config.id}: {e}")
            raise GenerationError(f"Failed to generate response: {e}") from e

    def get_id(self) -> str:
        return self.config.id

    def get_name(self) -> str:
        return self.config.name

    def get_metrics(self) -> Dict[str, Any]:
        uptime = (datetime.now(UTC) - self.metrics["start_time"]).total_seconds()
        last_activity = self.metrics["last_activity"]

        return {
            **self.metrics,
            "agent_id": self.config.id,
            "start_time": self.metrics["start_time"].isoformat(),
            "last_activity": last_activity.isoformat() if last_activity else None,
            "uptime_seconds": uptime
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.config.id})"
