import zlib

def crc32(input_bytes: bytes) -> int:
    """
    Computes the CRC32 checksum of the input bytes as an unsigned integer.
    Used for key obfuscation only; it offers no secrecy.
    """
    return zlib.crc32(input_bytes) & 0xFFFFFFFF

def obfuscate_key(key: str) -> str:
    return str(crc32(key.encode("utf-8")))
