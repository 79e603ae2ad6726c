from .encrypt import crc32, obfuscate_key
from .logger import JsonFormatter, setup_logging

__all__ = [
	"crc32",
	"obfuscate_key",
	"JsonFormatter",
	"setup_logging",
]
