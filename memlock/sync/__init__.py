from .lock import LockManager

__all__ = [
    'LockManager',
]
