from .base import Connector, PromptResponse
from .genericopenai import GenericOpenAIConnector

__all__ = [
    "Connector",
    "PromptResponse",
    "GenericOpenAIConnector",
]
