from .error import (
    MemlockError, CacheServiceError, SerializationError, LockTimeoutError, ConfigError
)
