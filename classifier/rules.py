# /classifier/rules.py

import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from classifier.facts import MISSING, resolve, to_number, to_text, values_equal
from classifier.models import ClassificationRule, NodeGroup, Operator, RuleEvaluation, RuleMatchType

# Every operator answers with a boolean. Malformed operands (a non-list for 'in',
# an invalid pattern, a non-numeric comparison) evaluate to False, never raise.

def _equals(fact_value: Any, rule_value: Any) -> bool:
    return values_equal(fact_value, rule_value)

def _not_equals(fact_value: Any, rule_value: Any) -> bool:
    return not values_equal(fact_value, rule_value)

def _search(fact_value: Any, pattern: Any) -> Optional[bool]:
    if not isinstance(pattern, str):
        return None
    try:
        return re.search(pattern, to_text(fact_value)) is not None
    except re.error:
        return None

def _matches(fact_value: Any, rule_value: Any) -> bool:
    return _search(fact_value, rule_value) is True

def _not_matches(fact_value: Any, rule_value: Any) -> bool:
    return _search(fact_value, rule_value) is False

def _numeric(compare: Callable[[float, float], bool]) -> Callable[[Any, Any], bool]:
    def apply(fact_value: Any, rule_value: Any) -> bool:
        left, right = to_number(fact_value), to_number(rule_value)
        if left is None or right is None:
            return False
        return compare(left, right)
    return apply

def _member(fact_value: Any, rule_value: Any) -> bool:
    return any(values_equal(fact_value, candidate) for candidate in rule_value)

def _in(fact_value: Any, rule_value: Any) -> bool:
    return isinstance(rule_value, list) and _member(fact_value, rule_value)

def _not_in(fact_value: Any, rule_value: Any) -> bool:
    return isinstance(rule_value, list) and not _member(fact_value, rule_value)

OPERATORS: Dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.EQ: _equals,
    Operator.NE: _not_equals,
    Operator.MATCH: _matches,
    Operator.NOT_MATCH: _not_matches,
    Operator.GT: _numeric(lambda a, b: a > b),
    Operator.GE: _numeric(lambda a, b: a >= b),
    Operator.LT: _numeric(lambda a, b: a < b),
    Operator.LE: _numeric(lambda a, b: a <= b),
    Operator.IN: _in,
    Operator.NOT_IN: _not_in,
}


def apply_operator(fact_value: Any, operator: Operator, rule_value: Any) -> bool:
    """
    Applies one operator to an already resolved fact value.

    Absence policy: a MISSING fact is "not equal" to anything and "not a member"
    of any list, so '!=' is True and 'not_in' is True (given a list operand).
    Every other operator, '!~' included, is False on a MISSING fact.
    """
    if fact_value is MISSING:
        if operator == Operator.NE:
            return True
        if operator == Operator.NOT_IN:
            return isinstance(rule_value, list)
        return False
    return OPERATORS[operator](fact_value, rule_value)


def evaluate(facts: Any, rule: ClassificationRule) -> bool:
    """Evaluates one (fact_path, operator, value) rule against a node's facts."""
    return apply_operator(resolve(facts, rule.fact_path), rule.operator, rule.value)


def evaluate_rules(group: NodeGroup, facts: Any) -> Tuple[bool, List[int]]:
    """
    Evaluates all of a group's rules and combines them with its rule_match_type.
    Returns the combined outcome and the indexes of the rules that held.
    An empty rule list never matches here; catch-all groups are decided by the matcher.
    """
    outcomes = [evaluate(facts, rule) for rule in group.rules]
    matched_indexes = [index for index, outcome in enumerate(outcomes) if outcome]
    if not outcomes:
        return False, matched_indexes
    if group.rule_match_type == RuleMatchType.ANY:
        return any(outcomes), matched_indexes
    return all(outcomes), matched_indexes


def explain(group: NodeGroup, facts: Any) -> List[RuleEvaluation]:
    """Per-rule diagnostic of a group against one fact document."""
    evaluations = []
    for index, rule in enumerate(group.rules):
        fact_value = resolve(facts, rule.fact_path)
        present = fact_value is not MISSING
        evaluations.append(RuleEvaluation(
            rule_index=index,
            fact_path=rule.fact_path,
            operator=rule.operator,
            value=rule.value,
            fact_value=fact_value if present else None,
            fact_present=present,
            matched=apply_operator(fact_value, rule.operator, rule.value),
        ))
    return evaluations
