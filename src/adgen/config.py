"""Configuration management."""

import os
from typing import Optional

from pydantic import BaseModel, Field
from dotenv import load_dotenv

from .errors import ConfigurationError

# Load environment variables
load_dotenv()


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


class Config(BaseModel):
    """Application configuration."""

    # API Keys
    xai_api_key: str = Field(
        default_factory=lambda: os.getenv("XAI_API_KEY", ""),
        description="xAI API key"
    )
    xai_base_url: str = Field(
        default_factory=lambda: os.getenv("XAI_BASE_URL", "https://api.x.ai/v1"),
        description="Base URL of the xAI REST API"
    )

    # Durable storage
    google_cloud_project: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_PROJECT", ""),
        description="Google Cloud project ID"
    )
    media_bucket: str = Field(
        default_factory=lambda: os.getenv("ADGEN_MEDIA_BUCKET", ""),
        description="GCS bucket that generated media is persisted to"
    )

    # Model settings
    chat_model: str = Field(
        default_factory=lambda: os.getenv("ADGEN_CHAT_MODEL", "grok-4-1-fast"),
        description="Reasoning model used to plan scenes"
    )
    prompt_model: str = Field(
        default_factory=lambda: os.getenv("ADGEN_PROMPT_MODEL", "grok-4-1-fast-reasoning"),
        description="Model used to draft clip prompts"
    )
    video_model: str = Field(
        default_factory=lambda: os.getenv("ADGEN_VIDEO_MODEL", "grok-imagine-video"),
        description="Video generation / edit model"
    )
    image_model: str = Field(
        default_factory=lambda: os.getenv("ADGEN_IMAGE_MODEL", "grok-imagine-image"),
        description="Image generation model"
    )

    # Timeouts
    step_timeout: float = Field(
        default_factory=lambda: _env_float("ADGEN_STEP_TIMEOUT", 120.0),
        description="Deadline in seconds for a single non-polling remote call",
        gt=0
    )
    poll_interval: float = Field(
        default_factory=lambda: _env_float("ADGEN_POLL_INTERVAL", 5.0),
        description="Seconds between video status checks",
        ge=0
    )
    poll_max_attempts: int = Field(
        default_factory=lambda: _env_int("ADGEN_POLL_MAX_ATTEMPTS", 180),
        description="Status checks before a video is considered timed out",
        gt=0
    )
    poll_timeout_margin: float = Field(
        default_factory=lambda: _env_float("ADGEN_POLL_TIMEOUT_MARGIN", 30.0),
        description="Slack added on top of the poll loop's own bound",
        ge=0
    )

    # Remote video edits only accept short source videos
    edit_max_duration: int = 8

    @property
    def poll_timeout(self) -> float:
        """Deadline for a whole poll loop, always looser than its attempt bound."""
        return self.poll_interval * self.poll_max_attempts + self.poll_timeout_margin

    def validate_required(self) -> None:
        """Validate that required credentials are set."""
        if not self.xai_api_key:
            raise ConfigurationError("XAI_API_KEY is not configured")

    def validate_storage(self) -> Optional[str]:
        """Validate the durable storage settings.

        Returns:
            The bucket name without the ``gs://`` scheme, or None when
            persistence is not configured.

        Raises:
            ConfigurationError: If the bucket is not a GCS URI.
        """
        if not self.media_bucket:
            return None

        if not self.media_bucket.startswith("gs://"):
            raise ConfigurationError(
                f"ADGEN_MEDIA_BUCKET must be a GCS URI starting with 'gs://'. "
                f"Got: {self.media_bucket}"
            )
        return self.media_bucket[5:].rstrip("/")


# Global config instance
config = Config()
