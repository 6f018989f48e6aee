"""Field resolver: eligibility and pairing of source and target fields."""

from graphmapper.core.resolver.models import FieldPair, MatchLedger, RuleOwner
from graphmapper.core.resolver.operations import (
    is_candidate,
    passes_policy,
    resolve_pairs,
    type_filter_applies,
)

__all__ = [
    # Models
    "FieldPair",
    "MatchLedger",
    "RuleOwner",
    # Operations
    "is_candidate",
    "passes_policy",
    "resolve_pairs",
    "type_filter_applies",
]
