from .base import BaseLlmProvider, LlmProviderError, LlmResponse, LlmUnavailableError
from .gemini_provider import GeminiProvider
from .ollama import OllamaProvider
