"""Model factory for the generative backend."""

from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIModel
from pydantic_ai.providers.openai import OpenAIProvider

SUPPORTED_PROVIDERS = ("openai",)


def get_model(provider: str, model_name: str, api_key: str | None = None) -> Model:
    """Build the pydantic_ai model serving one stage.

    Args:
        provider: Provider name from settings
        model_name: Provider model id, e.g. "gpt-4o-mini"
        api_key: Provider key; when empty the provider falls back to its
            environment variable

    Raises:
        ValueError: If the provider is not supported
    """
    if provider == "openai":
        return OpenAIModel(model_name, provider=OpenAIProvider(api_key=api_key or None))

    raise ValueError(f"Unsupported LLM provider: {provider}. Supported: {', '.join(SUPPORTED_PROVIDERS)}")
