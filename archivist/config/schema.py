"""Configuration schema using Pydantic."""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CoreMemoryConfig(BaseModel):
    """Core memory (always-in-context scratchpad) configuration."""
    max_bytes: int = Field(default=4096, ge=256, description="Byte budget of the serialized document")


class EmbeddingConfig(BaseModel):
    """Embedding provider configuration (OpenAI-compatible /embeddings endpoint)."""
    enabled: bool = True
    api_key: str = ""
    api_base: str = "https://api.together.xyz/v1"
    model: str = "togethercomputer/m2-bert-80M-8k-retrieval"
    timeout: float = Field(default=15.0, gt=0, description="Request timeout in seconds")

    @property
    def available(self) -> bool:
        """Vector search needs an enabled provider with credentials."""
        return self.enabled and bool(self.api_key)


class SearchConfig(BaseModel):
    """Hybrid search (Reciprocal Rank Fusion) tuning."""
    vector_weight: float = Field(default=0.7, ge=0.0)
    keyword_weight: float = Field(default=0.3, ge=0.0)
    k: float = Field(default=60, ge=0, description="RRF smoothing constant")
    limit: int = Field(default=5, ge=1, le=100)


class MemoryConfig(BaseModel):
    """Memory system configuration."""
    core: CoreMemoryConfig = Field(default_factory=CoreMemoryConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)


class Config(BaseSettings):
    """Root configuration for archivist."""
    model_config = SettingsConfigDict(env_prefix="ARCHIVIST_", env_nested_delimiter="__")

    data_dir: str = "~/.archivist/data"
    default_user: str = Field(default="default-user", pattern=r"^[a-zA-Z0-9_-]{1,64}$")
    memory: MemoryConfig = Field(default_factory=MemoryConfig)

    @property
    def data_path(self) -> Path:
        """Get expanded data directory path."""
        return Path(self.data_dir).expanduser()
