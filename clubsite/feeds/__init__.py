"""Feed Resolver/Aggregator — named content feeds and the social cache."""
from .aggregator import feed_view, merge, order_newsletters, parse_timestamp, projects_view
from .models import FeedItem, FeedName, Lookup, Outcome, SocialCache, parse_feed_name
from .remote_store import RemoteStore
from .resolver import DataSourceResolver, ResolvedFeed
from .social import SocialFeedFetcher, map_post

__all__ = [
    "feed_view",
    "merge",
    "order_newsletters",
    "parse_timestamp",
    "projects_view",
    "FeedItem",
    "FeedName",
    "Lookup",
    "Outcome",
    "SocialCache",
    "parse_feed_name",
    "RemoteStore",
    "DataSourceResolver",
    "ResolvedFeed",
    "SocialFeedFetcher",
    "map_post",
]
