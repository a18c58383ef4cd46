"""FollowGate identity providers and follow predicates."""

from followgate.providers.base import ExternalIdentity, FollowPredicate, IdentityProvider
from followgate.providers.twitter import TwitterFollowPredicate, TwitterProvider

__all__ = [
    "ExternalIdentity",
    "FollowPredicate",
    "IdentityProvider",
    "TwitterFollowPredicate",
    "TwitterProvider",
]
