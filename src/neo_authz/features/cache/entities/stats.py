"""Cache statistics."""

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class CacheStats:
    """Counters for one cache layer."""
    
    hits: int = 0
    misses: int = 0
    sets: int = 0
    invalidations: int = 0
    evictions: int = 0
    errors: int = 0
    stale_writes: int = 0
    
    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0
    
    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["hit_rate"] = self.hit_rate
        return data
