"""Small builders shared across test modules."""

from __future__ import annotations

from lumen_ai.providers.models import BackendFamily, ProviderConfig


class RecordingSleep:
    """Async sleep replacement that records requested delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_provider(provider_id: str, family: BackendFamily = BackendFamily.OPENAI, **overrides) -> ProviderConfig:
    """ProviderConfig whose api_key doubles as the fake-client lookup key."""
    fields = {
        "id": provider_id,
        "name": provider_id,
        "backend_family": family,
        "model_id": f"{provider_id}-model",
        "api_key": provider_id,
        "cost_per_input_token": 0.00001,
        "cost_per_output_token": 0.00003,
    }
    fields.update(overrides)
    return ProviderConfig(**fields)
