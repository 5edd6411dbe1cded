from .feed import FeedSession, FeedState

__all__ = ["FeedSession", "FeedState"]
