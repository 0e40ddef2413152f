from .store import MemoryKvStore
