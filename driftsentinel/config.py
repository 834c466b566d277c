"""
DriftSentinel Configuration

Settings are read from the environment (prefix DRIFTSENTINEL_) or a local .env file.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine and logging settings"""

    model_config = SettingsConfigDict(
        env_prefix="DRIFTSENTINEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Impact analysis
    max_hops: int = Field(default=3, ge=1, description="BFS traversal bound in hops")
    volume_threshold: int = Field(
        default=10, ge=0, description="Affected count above which severity escalates"
    )
    batch_workers: int = Field(
        default=1, ge=0, description="Worker threads for batch analysis (0 = CPU count)"
    )

    # Topology graph
    strict_graph: bool = Field(
        default=False, description="Reject graphs with duplicate nodes or dangling edges"
    )
    inferred_edge_confidence: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Confidence stamped on inferred edges"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="console", description="console or json")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("console", "json"):
            raise ValueError(f"log_format must be 'console' or 'json', got '{v}'")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance"""
    return Settings()
