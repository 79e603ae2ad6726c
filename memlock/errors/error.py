class MemlockError(Exception):
    """Base error for memlock"""
    def __init__(self, message: str = None, source: Exception = None):
        self.message = message
        self.source = source
        super().__init__(self.__str__())

    def __str__(self):
        msg = self.message or self.__class__.__name__
        if self.source:
            return f"{msg}: {self.source}"
        return msg

class CacheServiceError(MemlockError):
    pass

class SerializationError(CacheServiceError):
    pass

class LockTimeoutError(MemlockError):
    pass

class ConfigError(MemlockError):
    pass
