from .fetchers import ControlledFetcher, DelayedFetcher, RaisingFetcher

__all__ = [
    "ControlledFetcher",
    "DelayedFetcher",
    "RaisingFetcher",
]
