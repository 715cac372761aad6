# /classifier/matcher.py

from typing import Any, NamedTuple, Optional, Tuple

from classifier.logger import get_logger
from classifier.models import MatchType, NodeGroup
from classifier.rules import evaluate_rules

logger = get_logger(__name__)


class OwnMatch(NamedTuple):
    """Outcome of matching a single group in isolation."""
    matched: bool
    match_type: Optional[MatchType] = None
    matched_rules: Tuple[int, ...] = ()

NO_MATCH = OwnMatch(False)


def is_pinned(group: NodeGroup, certname: str) -> bool:
    return certname in group.pinned_nodes


def is_catch_all(group: NodeGroup) -> bool:
    return not group.rules and group.match_all_nodes


def environment_allows(group: NodeGroup, node_environment: Optional[str]) -> bool:
    """
    Environment groups assign their environment and never filter on it.
    Other groups with an environment only accept nodes already in it.
    """
    if group.is_environment_group or group.environment is None:
        return True
    return group.environment == node_environment


def match_own(group: NodeGroup, facts: Any, certname: str, node_environment: Optional[str]) -> OwnMatch:
    """
    Decides whether a group matches a node on its own merit, ignoring the hierarchy.
    A pin short-circuits rule evaluation. A catch-all group satisfies its own
    condition here; gating it on its parent is the hierarchy resolver's job.
    """
    if is_pinned(group, certname):
        match_type, matched_rules = MatchType.PINNED, ()
    elif group.rules:
        matched, matched_rules = evaluate_rules(group, facts)
        if not matched:
            return NO_MATCH
        match_type = MatchType.RULES
    elif group.match_all_nodes:
        match_type, matched_rules = MatchType.RULES, ()
    else:
        return NO_MATCH

    if not environment_allows(group, node_environment):
        logger.debug(
            f"Group '{group.id}' filtered out node '{certname}': "
            f"environment '{node_environment}' is not '{group.environment}'"
        )
        return NO_MATCH
    return OwnMatch(True, match_type, tuple(matched_rules))


def matches_own(group: NodeGroup, facts: Any, certname: str, node_environment: Optional[str]) -> bool:
    return match_own(group, facts, certname, node_environment).matched
