# /classifier/hierarchy.py

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from classifier.config import settings
from classifier.errors import CyclicHierarchyError, DuplicateGroupError, HierarchyDepthError, UnknownParentWarning
from classifier.logger import get_logger
from classifier.matcher import NO_MATCH, OwnMatch, is_catch_all, is_pinned, match_own
from classifier.models import NodeGroup

logger = get_logger(__name__)


class GroupIndex:
    """
    An immutable id -> group index over one group snapshot, with the parent
    chains validated up front: duplicate ids, cycles and chains deeper than
    max_depth raise a HierarchyError; dangling parent ids are kept as warnings
    and those groups are treated as roots.
    """
    def __init__(self, groups: Iterable[NodeGroup], max_depth: Optional[int] = None):
        self.max_depth = settings.MAX_HIERARCHY_DEPTH if max_depth is None else max_depth
        self.groups: Dict[str, NodeGroup] = {}
        self.positions: Dict[str, int] = {}
        for position, group in enumerate(groups):
            if group.id in self.groups:
                logger.error(f"Duplicate group id '{group.id}' in group set")
                raise DuplicateGroupError(group.id)
            self.groups[group.id] = group
            self.positions[group.id] = position

        self.dangling: Dict[str, UnknownParentWarning] = {}
        self.depths: Dict[str, int] = {}
        for group in self.groups.values():
            self.depths[group.id] = self._walk_chain(group)

        for warning in self.dangling.values():
            logger.warning(str(warning))

    def _walk_chain(self, group: NodeGroup) -> int:
        """
        Walks from a group to its root with a visited set and returns the
        group's depth, its number of ancestors (roots are 0). The whole chain is
        walked before the depth limit applies, so a cycle is always reported as one.
        """
        chain: List[str] = []
        visited: Set[str] = set()
        current = group
        while True:
            if current.id in visited:
                logger.error(f"Cyclic parent chain detected at group '{current.id}'")
                raise CyclicHierarchyError(current.id, chain)
            visited.add(current.id)
            chain.append(current.id)
            if current.parent_id is None:
                break
            parent = self.groups.get(current.parent_id)
            if parent is None:
                self.dangling[current.id] = UnknownParentWarning(current.id, current.parent_id)
                break
            current = parent
        depth = len(chain) - 1
        if depth > self.max_depth:
            raise HierarchyDepthError(group.id, depth, self.max_depth)
        return depth

    def __contains__(self, group_id: str) -> bool:
        return group_id in self.groups

    def __len__(self) -> int:
        return len(self.groups)

    def __iter__(self):
        return iter(self.groups.values())

    def get(self, group_id: str) -> NodeGroup:
        return self.groups[group_id]

    def parent(self, group: NodeGroup) -> Optional[NodeGroup]:
        if group.parent_id is None:
            return None
        return self.groups.get(group.parent_id)

    def ancestors(self, group: NodeGroup) -> List[NodeGroup]:
        """Strict ancestors, nearest first."""
        chain = []
        current = self.parent(group)
        while current is not None:
            chain.append(current)
            current = self.parent(current)
        return chain


@dataclass
class Resolution:
    """Matched-group set of one node, with the ancestors pulled in by inheritance."""
    matched: Dict[str, OwnMatch] = field(default_factory=dict)
    inherited: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def closure(self) -> List[str]:
        return list(self.matched) + self.inherited


class _NodeContext:
    """Per-call state: the node's inputs and the effective-match memo."""
    def __init__(self, facts: Any, certname: str, node_environment: Optional[str]):
        self.facts = facts
        self.certname = certname
        self.node_environment = node_environment
        self.memo: Dict[str, OwnMatch] = {}
        self.warnings: Dict[str, str] = {}


class HierarchyResolver:
    def __init__(self, index: GroupIndex):
        self.index = index

    def _note_dangling(self, group: NodeGroup, context: _NodeContext):
        warning = self.index.dangling.get(group.id)
        if warning is not None:
            context.warnings.setdefault(group.id, str(warning))

    def _effective_match(self, group: NodeGroup, context: _NodeContext) -> OwnMatch:
        """
        Groups with rules, and groups pinning this node, match on their own.
        A catch-all group additionally needs its parent to match effectively,
        so it only ever matches within its parent's scope (or everywhere, at the root).
        """
        cached = context.memo.get(group.id)
        if cached is not None:
            return cached

        if is_pinned(group, context.certname) or group.rules:
            result = match_own(group, context.facts, context.certname, context.node_environment)
        elif is_catch_all(group):
            result = match_own(group, context.facts, context.certname, context.node_environment)
            if result.matched:
                self._note_dangling(group, context)
                parent = self.index.parent(group)
                if parent is not None and not self._effective_match(parent, context).matched:
                    result = NO_MATCH
        else:
            result = NO_MATCH

        context.memo[group.id] = result
        return result

    def resolve(self, facts: Any, certname: str, node_environment: Optional[str] = None) -> Resolution:
        context = _NodeContext(facts, certname, node_environment)
        resolution = Resolution()

        for group in self.index:
            outcome = self._effective_match(group, context)
            if outcome.matched:
                resolution.matched[group.id] = outcome

        # Ancestors of matched groups contribute unconditionally, whatever their own match.
        seen = set(resolution.matched)
        for group_id in list(resolution.matched):
            group = self.index.get(group_id)
            self._note_dangling(group, context)
            for ancestor in self.index.ancestors(group):
                self._note_dangling(ancestor, context)
                if ancestor.id not in seen:
                    seen.add(ancestor.id)
                    resolution.inherited.append(ancestor.id)

        resolution.warnings = list(context.warnings.values())
        logger.debug(
            f"Node '{certname}' matched {len(resolution.matched)} group(s), "
            f"inherited {len(resolution.inherited)}"
        )
        return resolution


def resolve(groups: Iterable[NodeGroup], facts: Any, certname: str, node_environment: Optional[str] = None) -> Set[str]:
    """The ids of the groups that effectively match a node (ancestors not included)."""
    resolution = HierarchyResolver(GroupIndex(groups)).resolve(facts, certname, node_environment)
    return set(resolution.matched)
