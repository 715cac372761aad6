# /classifier/errors.py

from dataclasses import dataclass
from typing import List, Optional


class ClassificationError(Exception):
    """Base class for errors surfaced by the classification engine."""


class HierarchyError(ClassificationError):
    """
    The group forest is structurally corrupt. Classification cannot proceed;
    the caller decides whether to fall back to a default classification.
    """
    def __init__(self, message: str, group_id: str):
        super().__init__(message)
        self.group_id = group_id


class CyclicHierarchyError(HierarchyError):
    def __init__(self, group_id: str, chain: List[str]):
        path = " -> ".join(chain + [group_id])
        super().__init__(f"Cyclic parent chain detected at group '{group_id}': {path}", group_id)
        self.chain = chain


class HierarchyDepthError(HierarchyError):
    def __init__(self, group_id: str, depth: int, max_depth: int):
        super().__init__(
            f"Ancestor chain of group '{group_id}' exceeds the maximum depth of {max_depth} (reached {depth}).",
            group_id
        )
        self.depth = depth
        self.max_depth = max_depth


class DuplicateGroupError(HierarchyError):
    def __init__(self, group_id: str):
        super().__init__(f"Group id '{group_id}' is defined more than once.", group_id)


@dataclass(frozen=True)
class UnknownParentWarning:
    """A parent_id that points at no known group. The group is treated as a root."""
    group_id: str
    parent_id: Optional[str]

    def __str__(self) -> str:
        return f"Group '{self.group_id}' references unknown parent '{self.parent_id}'; treating it as a root group."
