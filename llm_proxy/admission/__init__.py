from .bucket import TokenBucket
from .guard import RateCostGuard

__all__ = ["RateCostGuard", "TokenBucket"]
