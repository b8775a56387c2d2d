"""Chat relay and application configuration."""

from pydantic import BaseModel, Field


class ChatConfig(BaseModel):
    """
    Chat relay configuration.

    Secrets are not stored here; they come from Vault at startup.
    """

    # Completion
    history_window: int = Field(
        default=6,
        description="Trailing conversation turns forwarded as context",
        ge=0,
        le=50,
    )
    max_tokens: int = Field(
        default=4096,
        description="Maximum output tokens per reply",
        ge=64,
        le=8192,
    )
    temperature: float = Field(
        default=0.7,
        description="Sampling temperature",
        ge=0.0,
        le=1.0,
    )

    # Image search
    image_count: int = Field(
        default=4,
        description="Images attached to every chat reply",
        ge=0,
        le=10,
    )

    # PDF output
    pdf_output_dir: str = Field(
        default="generated_pdfs",
        description="Directory generated PDFs are written to",
    )
    public_base_url: str = Field(
        default="",
        description="Prefix for generated PDF links; empty gives root-relative URLs",
    )

    # HTTP
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Browser origins allowed to call the API",
    )
