from .interface import TrustStore
from .memory import MemoryTrustStore

__all__ = [
    'TrustStore',
    'MemoryTrustStore',
]
