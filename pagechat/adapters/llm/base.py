from abc import ABC, abstractmethod

class LLM(ABC):
    @abstractmethod
    async def generate(self, prompt: str, model: str, timeout: float | None = None) -> str:
        ...

    @abstractmethod
    async def list_models(self) -> list[str]:
        ...
