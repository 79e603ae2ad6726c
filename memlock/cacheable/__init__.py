from .service import CacheBackend, RedisBackend, LocalBackend, CacheAccessor
from .codec import encode_value, decode_value
from .locked import LockedCache

__all__ = [
    'CacheBackend',
    'RedisBackend',
    'LocalBackend',
    'CacheAccessor',
    'encode_value',
    'decode_value',
    'LockedCache',
]
