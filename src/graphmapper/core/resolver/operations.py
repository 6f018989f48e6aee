"""Field resolution: eligibility checks and symmetric name matching."""

from __future__ import annotations

from graphmapper.core.descriptor.models import FieldDescriptor, MapAllPolicy, TypeDescriptor
from graphmapper.core.resolver.models import FieldPair, MatchLedger, RuleOwner
from graphmapper.core.types import full_name


def type_filter_applies(field: FieldDescriptor, other_type: type) -> bool:
    """Check a rule's type filter against the other side's runtime type.

    Args:
        field: Field whose rule may carry a type filter.
        other_type: Runtime type of the object on the other side of the mapping.

    Returns:
        True if the field has no filter or the filter names ``other_type``
        (case-insensitive), False otherwise.
    """
    if field.rule is None or not field.rule.type_filter:
        return True
    return field.rule.type_filter.casefold() == full_name(other_type).casefold()


def passes_policy(field: FieldDescriptor, owner: TypeDescriptor) -> bool:
    """Check a rule-less field against the owner's class-level policy.

    DECLARED_ONLY keeps fields declared on the owner itself; INHERITED_ONLY keeps
    fields declared on base classes, optionally restricted to an allow-list.
    """
    policy = owner.policy
    if policy is None or policy.kind is MapAllPolicy.NONE:
        return False
    if policy.kind is MapAllPolicy.ALL:
        return True
    declared_here = field.declaring_type is owner.type
    if policy.kind is MapAllPolicy.DECLARED_ONLY:
        return declared_here
    if declared_here:
        return False
    return policy.allowed_bases is None or field.declaring_type in policy.allowed_bases


def is_candidate(field: FieldDescriptor, owner: TypeDescriptor, other_type: type) -> bool:
    """Decide if a field takes part in mapping from its owner's declarations.

    An exclude rule always wins. An include rule qualifies the field on its own
    (subject to its type filter); otherwise the class-level policy decides.

    Args:
        field: Field to check.
        owner: Descriptor of the type declaring the rules.
        other_type: Runtime type of the object on the other side.

    Returns:
        True if the field is a mapping candidate.
    """
    if field.rule is not None:
        if field.rule.exclude:
            return False
        return type_filter_applies(field, other_type)
    return passes_policy(field, owner)


def resolve_pairs(
    source: TypeDescriptor,
    target: TypeDescriptor,
    ledger: MatchLedger | None = None,
) -> list[FieldPair]:
    """Match fields of a source type with fields of a target type.

    Runs the source-owned pass when either side declares rules, and the
    target-owned pass when the target declares rules or when neither side
    does (plain types map every field by name). A counterpart is looked up by
    the owning field's effective name; excluded counterparts never match.

    Args:
        source: Descriptor of the source object's runtime type.
        target: Descriptor of the target type.
        ledger: Optional ledger recording which eligible fields matched.

    Returns:
        Pairs in pass order (source-owned first), without duplicates.
    """
    ledger = ledger if ledger is not None else MatchLedger()
    target_annotated = target.is_annotated
    source_pass = target_annotated or source.is_annotated
    pairs: list[FieldPair] = []
    seen: set[tuple[str, str]] = set()

    def add(pair: FieldPair) -> None:
        key = (pair.source.name, pair.target.name)
        if key not in seen:
            seen.add(key)
            pairs.append(pair)

    if source_pass:
        for field in source.fields:
            if not field.readable or not is_candidate(field, source, target.type):
                continue
            counterpart = target.find(field.effective_name)
            matched = counterpart is not None and counterpart.writable and not counterpart.excluded
            ledger.record(source.type, field.name, matched)
            if matched:
                add(FieldPair(source=field, target=counterpart, owner=RuleOwner.SOURCE))  # type: ignore[arg-type]

    if target_annotated or not source_pass:
        for field in target.fields:
            if target_annotated and not is_candidate(field, target, source.type):
                continue
            if field.excluded:
                continue
            counterpart = source.find(field.effective_name)
            matched = (
                counterpart is not None
                and counterpart.readable
                and field.writable
                and not counterpart.excluded
            )
            ledger.record(target.type, field.name, matched)
            if matched:
                add(FieldPair(source=counterpart, target=field, owner=RuleOwner.TARGET))  # type: ignore[arg-type]

    return pairs
