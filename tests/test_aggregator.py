import unittest

import sys
import os
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from classifier.aggregator import ClassificationAggregator, merge_order
from classifier.hierarchy import GroupIndex, HierarchyResolver
from classifier.models import MatchType, NodeGroup

ALWAYS = {"fact_path": "kernel", "operator": "=", "value": "Linux"}
FACTS = {"kernel": "Linux"}

def aggregate(groups, facts=FACTS, node_environment=None, tie_break=None, certname="node1"):
    index = GroupIndex(groups)
    resolution = HierarchyResolver(index).resolve(facts, certname, node_environment)
    return ClassificationAggregator(index, tie_break=tie_break).aggregate(certname, resolution, node_environment)

class TestClassMerge(unittest.TestCase):

    def test_descendant_overrides_ancestor_parameters(self):
        groups = [
            NodeGroup(id="base", classes={"ntp": {"servers": ["a"], "iburst": True}}, variables={"tier": "base", "dc": "x"}),
            NodeGroup(id="web", parent_id="base", rules=[ALWAYS],
                      classes={"ntp": {"servers": ["b"]}, "nginx": {}}, variables={"tier": "web"}),
        ]
        result = aggregate(groups)

        self.assertEqual(result.classes, {"ntp": {"servers": ["b"], "iburst": True}, "nginx": {}})
        self.assertEqual(result.variables, {"tier": "web", "dc": "x"})

    def test_merge_does_not_alias_group_data(self):
        base = NodeGroup(id="base", rules=[ALWAYS], classes={"ntp": {"servers": ["a"]}})
        result = aggregate([base])
        result.classes["ntp"]["servers"].append("z")

        self.assertEqual(base.classes["ntp"]["servers"], ["a"])

    def test_groups_field_tags(self):
        groups = [
            NodeGroup(id="base", name="Base"),
            NodeGroup(id="web", name="Web", parent_id="base", rules=[ALWAYS]),
            NodeGroup(id="pinned", name="Pinned", pinned_nodes=["node1"]),
        ]
        result = aggregate(groups)

        tags = [(g.group_id, g.match_type) for g in result.groups]
        self.assertEqual(tags, [("web", MatchType.RULES), ("pinned", MatchType.PINNED), ("base", MatchType.INHERITED)])
        self.assertEqual(result.groups[0].matched_rules, [0])
        self.assertEqual(result.groups[2].name, "Base")

    def test_unrelated_branches_deeper_group_wins(self):
        groups = [
            NodeGroup(id="root"),
            NodeGroup(id="shallow", rules=[ALWAYS], classes={"app": {"port": 1}}),
            NodeGroup(id="deep", parent_id="root", rules=[ALWAYS], classes={"app": {"port": 2}}),
        ]
        self.assertEqual(aggregate(groups).classes["app"], {"port": 2})

    def test_same_depth_tie_break(self):
        groups = [
            NodeGroup(id="zeta", name="A", rules=[ALWAYS], classes={"app": {"port": 1}}),
            NodeGroup(id="alpha", name="B", rules=[ALWAYS], classes={"app": {"port": 2}}),
        ]
        # Later wins: input order puts alpha last, id order puts zeta last, name order puts alpha (B) last.
        self.assertEqual(aggregate(groups, tie_break="input_order").classes["app"], {"port": 2})
        self.assertEqual(aggregate(groups, tie_break="group_id").classes["app"], {"port": 1})
        self.assertEqual(aggregate(groups, tie_break="name").classes["app"], {"port": 2})

    def test_unknown_tie_break(self):
        with self.assertRaises(ValueError):
            ClassificationAggregator(GroupIndex([]), tie_break="random")

    def test_merge_order_puts_ancestors_first(self):
        index = GroupIndex([
            NodeGroup(id="leaf", parent_id="mid"),
            NodeGroup(id="mid", parent_id="root"),
            NodeGroup(id="root"),
        ])
        ordered = merge_order(index, ["leaf", "mid", "root"], "input_order")
        self.assertEqual([g.id for g in ordered], ["root", "mid", "leaf"])


class TestEnvironment(unittest.TestCase):

    def test_environment_group_assigns(self):
        groups = [NodeGroup(id="homolog", match_all_nodes=True, environment="Homolog", is_environment_group=True)]
        result = aggregate(groups, node_environment="staging")
        self.assertEqual(result.environment, "Homolog")

    def test_node_environment_echoed_without_environment_group(self):
        groups = [NodeGroup(id="prod", rules=[ALWAYS], environment="production")]
        result = aggregate(groups, node_environment="production")
        self.assertEqual(result.environment, "production")
        self.assertEqual([g.group_id for g in result.groups], ["prod"])

        self.assertIsNone(aggregate([], node_environment=None).environment)

    def test_inherited_environment_group_assigns(self):
        groups = [
            NodeGroup(id="env", environment="dev", is_environment_group=True),
            NodeGroup(id="app", parent_id="env", rules=[ALWAYS]),
        ]
        result = aggregate(groups, node_environment="production")
        self.assertEqual(result.environment, "dev")

    def test_last_environment_group_in_merge_order_wins(self):
        groups = [
            NodeGroup(id="env_root", environment="production", is_environment_group=True, rules=[ALWAYS]),
            NodeGroup(id="env_child", parent_id="env_root", environment="canary", is_environment_group=True, rules=[ALWAYS]),
            NodeGroup(id="env_other", environment="legacy", is_environment_group=True, rules=[ALWAYS]),
        ]
        self.assertEqual(aggregate(groups).environment, "canary")

    def test_environment_group_without_environment_is_ignored(self):
        groups = [NodeGroup(id="env", is_environment_group=True, rules=[ALWAYS])]
        self.assertEqual(aggregate(groups, node_environment="staging").environment, "staging")


if __name__ == '__main__':
    unittest.main()
