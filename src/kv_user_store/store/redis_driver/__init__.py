from .store import RedisKvStore
