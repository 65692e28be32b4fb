from pagechat.adapters.llm.ollama import OllamaLLM
from pagechat.services.gateway_service import ModelGateway

_gateway: ModelGateway | None = None

def get_llm():
    return OllamaLLM()

def get_gateway() -> ModelGateway:
    global _gateway
    if _gateway is None:
        _gateway = ModelGateway(get_llm())
    return _gateway

def set_gateway(gateway: ModelGateway | None) -> None:
    global _gateway
    _gateway = gateway
