"""Cache configuration for school-commons."""

from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .protocols import CacheBackend


class CacheSettings(BaseSettings):
    """Global cache settings.

    Read once at startup; the backend cannot be switched at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="SCHOOL_CACHE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Backend selection
    backend: CacheBackend = Field(default=CacheBackend.MEMORY, description="Active cache backend")
    fallback_to_memory: bool = Field(
        default=True,
        description="Use the in-memory backend when the remote backend is unreachable",
    )
    namespace: str = Field(default="class", min_length=1, description="Top-level key namespace")
    default_ttl_seconds: int = Field(default=300, ge=0, description="Default TTL in seconds")

    # Redis configuration
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    redis_password: Optional[str] = Field(default=None, description="Redis password")
    redis_socket_timeout: float = Field(default=3.0, gt=0, description="Redis command timeout")
    redis_connect_timeout: float = Field(default=5.0, gt=0, description="Redis connection timeout")
    redis_max_connections: int = Field(default=50, ge=1, description="Max Redis connections")
    redis_scan_count: int = Field(default=500, ge=1, description="Keys per SCAN page and DEL batch")

    # Memory cache configuration
    memory_cleanup_interval: int = Field(
        default=60,
        ge=0,
        description="Expired-entry sweep interval in seconds, 0 disables the sweeper",
    )

    def to_redis_kwargs(self) -> Dict[str, Any]:
        """Convert to keyword arguments for redis.asyncio.from_url."""
        kwargs: Dict[str, Any] = {
            "decode_responses": True,
            "socket_timeout": self.redis_socket_timeout,
            "socket_connect_timeout": self.redis_connect_timeout,
            "max_connections": self.redis_max_connections,
            "retry_on_timeout": True,
        }
        if self.redis_password:
            kwargs["password"] = self.redis_password
        return kwargs
