# /classifier/engine.py

from typing import Any, Dict, Iterable, List, Optional

from classifier.aggregator import ClassificationAggregator
from classifier.hierarchy import GroupIndex, HierarchyResolver
from classifier.logger import get_logger
from classifier.models import ClassificationResult, MatchType, NodeGroup, NodeRecord, RuleEvaluation
from classifier import rules

logger = get_logger(__name__)


class ClassificationService:
    """
    Classifies nodes against one immutable group snapshot. The snapshot is
    validated once here; every classification afterwards is a pure function of
    the node's inputs, so one service can be shared across threads.
    """
    def __init__(self, groups: Iterable[NodeGroup], max_depth: Optional[int] = None, tie_break: Optional[str] = None):
        self.index = GroupIndex(groups, max_depth=max_depth)
        self.resolver = HierarchyResolver(self.index)
        self.aggregator = ClassificationAggregator(self.index, tie_break=tie_break)
        logger.info(f"Classification snapshot loaded with {len(self.index)} group(s)")

    def classify(self, certname: str, facts: Any, node_environment: Optional[str] = None) -> ClassificationResult:
        """
        The main entry point. Resolves which groups apply to the node and
        merges them into a single classification.

        Args:
            certname: The node's certificate name, checked against pinned nodes.
            facts: The node's fact document.
            node_environment: The environment the node currently runs in.

        Returns:
            A ClassificationResult, computed fresh on every call.
        """
        resolution = self.resolver.resolve(facts, certname, node_environment)
        return self.aggregator.aggregate(certname, resolution, node_environment)

    def classify_many(self, nodes: Iterable[NodeRecord]) -> Dict[str, ClassificationResult]:
        """Classifies each node independently. The mapping keeps the input order."""
        results = {}
        for node in nodes:
            results[node.certname] = self.classify(node.certname, node.facts, node.environment)
        logger.info(f"Classified {len(results)} node(s)")
        return results

    def nodes_in_group(self, group_id: str, nodes: Iterable[NodeRecord]) -> List[str]:
        """
        Certnames that belong to a group through its own rules or a pin.
        Nodes that only inherit the group through a descendant are not members.
        """
        if group_id not in self.index:
            raise KeyError(group_id)
        members = []
        for node in nodes:
            resolution = self.resolver.resolve(node.facts, node.certname, node.environment)
            outcome = resolution.matched.get(group_id)
            if outcome is not None and outcome.match_type in (MatchType.RULES, MatchType.PINNED):
                members.append(node.certname)
        return members

    def explain(self, group_id: str, facts: Any) -> List[RuleEvaluation]:
        return rules.explain(self.index.get(group_id), facts)


def classify(certname: str, facts: Any, node_environment: Optional[str], groups: Iterable[NodeGroup]) -> ClassificationResult:
    """Classifies a single node against a group set."""
    return ClassificationService(groups).classify(certname, facts, node_environment)
