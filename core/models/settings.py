"""Per-account preference document, stored as JSONB on the account row."""

from pydantic import BaseModel


THEMES = ("light", "dark", "system")

# Model label -> requires a paid tier
AI_MODELS: dict[str, bool] = {
    "Soul Lite (Fast)": False,
    "Soul Pro (Advanced)": True,
    "Soul Custom (Beta)": True,
}


class AccountSettings(BaseModel):
    """Full settings document with defaults for unset keys."""

    theme: str = "dark"
    language: str = "en"
    ai_model: str = "Soul Lite (Fast)"
    response_tone: str = "neutral"
    default_search_type: str = "text"
    data_retention: bool = True
    notifications_enabled: bool = True


class SettingsUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""

    theme: str | None = None
    language: str | None = None
    ai_model: str | None = None
    response_tone: str | None = None
    default_search_type: str | None = None
    data_retention: bool | None = None
    notifications_enabled: bool | None = None

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class SettingsView(BaseModel):
    """GET/PATCH response body."""

    settings: AccountSettings
    tier: str
    is_pro: bool
