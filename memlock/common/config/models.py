import logging
from typing import Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

class LockSettings(BaseSettings):
    # sleep between lock attempts, in seconds
    wait_time: float = 0.020
    # retries after the first failed attempt; worst-case wait is max_lock_tries * wait_time
    max_lock_tries: int = 25
    # must stay well above max_lock_tries * wait_time
    lock_ttl: int = 60
    default_expiry: int = 3600
    lock_prefix: str = "lock:"
    ownership_tokens: bool = True

    model_config = SettingsConfigDict(env_prefix="MEMLOCK_LOCK_")

    @property
    def max_wait(self) -> float:
        return self.max_lock_tries * self.wait_time

    @model_validator(mode="after")
    def check_ttl_margin(self) -> "LockSettings":
        if self.lock_ttl <= self.max_wait * 10:
            logger.warning(
                f"lock_ttl={self.lock_ttl}s leaves little margin over the maximum lock wait of {self.max_wait:.3f}s"
            )
        return self

class RedisConfig(BaseSettings):
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    username: Optional[str] = None
    password: Optional[str] = None
    pool_size: Optional[int] = None
    socket_timeout: Optional[float] = None
    tls: bool = False

    @property
    def url(self) -> str:
        scheme = "rediss" if self.tls else "redis"
        auth = f":{self.password}@" if self.password else ""
        return f"{scheme}://{auth}{self.host}:{self.port}/{self.db}"

    model_config = SettingsConfigDict(env_prefix="REDIS_")

class LoggingConfig(BaseSettings):
    level: str = "INFO"
    format: str = "json"

    model_config = SettingsConfigDict(env_prefix="LOG_")

class AppConfig(BaseSettings):
    name: str = "memlock"
    node_id: str = "node-1"
    # "redis" or "local"
    backend: str = "redis"

    lock: LockSettings = LockSettings()
    redis: RedisConfig = RedisConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(env_prefix="MEMLOCK_", env_file=".env", env_nested_delimiter="__")
