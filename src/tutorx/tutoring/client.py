"""Shared OpenAI client handling for the tutoring providers."""

from openai import AsyncOpenAI

from tutorx.errors import GenerationFailed
from tutorx.models.profile import SubscriptionTier, UserProfile


class OpenAIProvider:
    """Base for providers backed by OpenAI.

    The client is created on first use so the app can start without a key.

    Args:
        api_key: OpenAI API key.
        default_model: Model for FREE and PREMIUM learners.
        pro_model: Model for PRO learners.
        client: Pre-built client (tests inject a mock here).
    """

    def __init__(
        self,
        api_key: str | None,
        default_model: str = "gpt-4o-mini",
        pro_model: str = "gpt-4o",
        client: AsyncOpenAI | None = None,
    ):
        self.api_key = api_key
        self.default_model = default_model
        self.pro_model = pro_model
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise GenerationFailed("AI_ENGINE_OFFLINE: No valid API key detected.")
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    def model_for(self, profile: UserProfile | None) -> str:
        if profile is not None and profile.tier == SubscriptionTier.PRO:
            return self.pro_model
        return self.default_model
