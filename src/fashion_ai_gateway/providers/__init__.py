"""Provider implementations, one per backend family."""

from .base import CompletionRequest, FashionProvider
from .gemini import GeminiProvider
from .host import OnDeviceProvider
from .openai import OpenAIProvider, VeniceProvider
from .proxy import ServerProxyProvider
from .writer import LightweightProvider

__all__ = [
    "CompletionRequest",
    "FashionProvider",
    "OnDeviceProvider",
    "LightweightProvider",
    "ServerProxyProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "VeniceProvider",
]
