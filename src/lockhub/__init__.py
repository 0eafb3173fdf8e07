"""lockhub: TTL-bounded named locks shared across processes through Redis."""

__all__ = ["__version__"]

__version__ = "0.1.0"
