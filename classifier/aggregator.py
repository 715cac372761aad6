# /classifier/aggregator.py

import copy
from typing import Any, Callable, Dict, List, Optional

from classifier.config import settings
from classifier.hierarchy import GroupIndex, Resolution
from classifier.logger import get_logger
from classifier.models import ClassificationResult, GroupMatch, MatchType, NodeGroup

logger = get_logger(__name__)


def _tie_break_key(index: GroupIndex, tie_break: str) -> Callable[[str], Any]:
    if tie_break == "group_id":
        return lambda group_id: group_id
    if tie_break == "name":
        return lambda group_id: index.get(group_id).name
    if tie_break == "input_order":
        return lambda group_id: index.positions[group_id]
    raise ValueError(f"Unknown merge tie-break '{tie_break}'")


def merge_order(index: GroupIndex, group_ids: List[str], tie_break: Optional[str] = None) -> List[NodeGroup]:
    """
    Orders contributing groups for merging: shallower groups first, so every
    ancestor is applied before its descendants and the deeper group wins.
    Unrelated groups at the same depth are ordered by the tie-break, then by input position.
    """
    key = _tie_break_key(index, tie_break or settings.MERGE_TIE_BREAK)
    ordered = sorted(
        group_ids,
        key=lambda group_id: (index.depths[group_id], key(group_id), index.positions[group_id])
    )
    return [index.get(group_id) for group_id in ordered]


class ClassificationAggregator:
    """Synthesizes a ClassificationResult from a node's resolved group set."""

    def __init__(self, index: GroupIndex, tie_break: Optional[str] = None):
        self.index = index
        self.tie_break = tie_break or settings.MERGE_TIE_BREAK
        # Fail on a bad tie-break at construction rather than per node.
        _tie_break_key(index, self.tie_break)

    def _group_matches(self, resolution: Resolution) -> List[GroupMatch]:
        matches = []
        for group_id, outcome in resolution.matched.items():
            group = self.index.get(group_id)
            matches.append(GroupMatch(
                group_id=group.id,
                name=group.name,
                match_type=outcome.match_type,
                matched_rules=list(outcome.matched_rules),
            ))
        for group_id in resolution.inherited:
            group = self.index.get(group_id)
            matches.append(GroupMatch(group_id=group.id, name=group.name, match_type=MatchType.INHERITED))
        return matches

    def aggregate(self, certname: str, resolution: Resolution, node_environment: Optional[str] = None) -> ClassificationResult:
        classes: Dict[str, Dict[str, Any]] = {}
        variables: Dict[str, Any] = {}
        environment = node_environment
        assigned_by = None

        for group in merge_order(self.index, resolution.closure, self.tie_break):
            for class_name, params in group.classes.items():
                merged = classes.setdefault(class_name, {})
                merged.update(copy.deepcopy(params or {}))
            variables.update(copy.deepcopy(group.variables))
            if group.is_environment_group and group.environment:
                environment = group.environment
                assigned_by = group.id

        if assigned_by is not None:
            logger.debug(f"Node '{certname}' assigned environment '{environment}' by group '{assigned_by}'")

        return ClassificationResult(
            certname=certname,
            groups=self._group_matches(resolution),
            classes=classes,
            variables=variables,
            environment=environment,
            warnings=list(resolution.warnings),
        )
