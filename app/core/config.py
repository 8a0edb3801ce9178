"""Configuration management for the Publ.IA chat service."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # OpenAI configuration (required)
    OPENAI_API_KEY: str = Field(..., description="OpenAI API key")

    # Environment
    PUBLIA_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Storage
    PDF_BUCKET: str = Field(default="pdf-files", description="Storage bucket for attached PDFs")

    # Segmenter
    CHUNK_SIZE: int = Field(default=1400, description="Characters per document window")
    CHUNK_OVERLAP: int = Field(default=200, description="Characters shared by consecutive windows")
    MAX_CHUNKS: int = Field(default=400, description="Max windows produced per document")

    # Relevance selection
    MAX_SELECTED_CHUNKS: int = Field(default=6, description="Max excerpts sent to the model")
    MAX_SELECTED_CHARS: int = Field(default=9000, description="Character budget for excerpts")
    MIN_CHUNK_SCORE: int = Field(default=1, description="Min distinct query tokens per excerpt")

    # Prompt assembly
    MAX_PROMPT_CHARS: int = Field(default=12000, description="Hard ceiling on prompt text (~3k tokens)")
    MAX_HISTORY_MESSAGES: int = Field(default=8, description="Prior messages included as history")
    CONVERSATION_TITLE_MAX_CHARS: int = Field(
        default=60, description="Length of a title inferred from the first message"
    )

    # Generation
    OPENAI_MODEL_WITH_PDF: str = Field(
        default="gpt-5.1-mini", description="Model used when a PDF file reference is attached"
    )
    OPENAI_MODEL_NO_PDF: str = Field(default="gpt-5.1", description="Model for text-only turns")
    GENERATION_TIMEOUT_SECONDS: float = Field(
        default=120.0, description="Upper bound for a whole generation stream"
    )
    ENABLE_WEB_SEARCH: bool = Field(default=True, description="Attach the web_search tool")

    @model_validator(mode="after")
    def _check_chunk_overlap(self) -> "Settings":
        if self.CHUNK_OVERLAP >= self.CHUNK_SIZE:
            raise ValueError(
                f"CHUNK_OVERLAP ({self.CHUNK_OVERLAP}) must be smaller than "
                f"CHUNK_SIZE ({self.CHUNK_SIZE})"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
