# /classifier/models.py

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# This file holds all the shared Pydantic data structures of the engine.

class Operator(str, Enum):
    EQ = "="
    NE = "!="
    MATCH = "~"
    NOT_MATCH = "!~"
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="
    IN = "in"
    NOT_IN = "not_in"

class RuleMatchType(str, Enum):
    ALL = "all"
    ANY = "any"

class MatchType(str, Enum):
    RULES = "rules"
    PINNED = "pinned"
    INHERITED = "inherited"


class ClassificationRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    fact_path: str = Field(description="Dot-separated path into the node's facts (e.g., 'os.release.major').")
    operator: Operator = Field(description="Comparison applied between the resolved fact and 'value'.")
    value: Any = Field(None, description="Right-hand operand. Must be a list for 'in' and 'not_in'.")


class NodeGroup(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(description="Unique identifier of the group.")
    name: str = Field("", description="Human readable group name.")
    description: Optional[str] = None
    parent_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("parent_id", "parent"),
        description="Parent group id. Root groups have none."
    )
    environment: Optional[str] = Field(None, description="Filtered on, or assigned when is_environment_group is set.")
    is_environment_group: bool = False
    rule_match_type: RuleMatchType = RuleMatchType.ALL
    rules: List[ClassificationRule] = Field(default_factory=list)
    pinned_nodes: List[str] = Field(default_factory=list, description="Certnames assigned to the group regardless of rules.")
    match_all_nodes: bool = Field(False, description="A rule-less group matching every node within its parent's scope.")
    classes: Dict[str, Dict[str, Any]] = Field(default_factory=dict, description="Class name -> class parameters.")
    variables: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("rule_match_type", mode="before")
    @classmethod
    def _lowercase_match_type(cls, value):
        return value.lower() if isinstance(value, str) else value

    @field_validator("classes", mode="before")
    @classmethod
    def _accept_class_list(cls, value):
        # Older group definitions list bare class names without parameters.
        if value is None:
            return {}
        if isinstance(value, (list, tuple)):
            return {name: {} for name in value}
        return value

    @field_validator("rules", "pinned_nodes", "variables", mode="before")
    @classmethod
    def _none_as_empty(cls, value, info):
        if value is None:
            return {} if info.field_name == "variables" else []
        return value


class NodeRecord(BaseModel):
    """A node as supplied by the inventory: its certname, facts and current environment."""
    certname: str
    facts: Dict[str, Any] = Field(default_factory=dict)
    environment: Optional[str] = None


class GroupMatch(BaseModel):
    group_id: str
    name: str
    match_type: MatchType = Field(description="Why the group contributes: own rules, explicit pin, or ancestor inheritance.")
    matched_rules: List[int] = Field(default_factory=list, description="Indexes of the group's rules that held for the node.")


class RuleEvaluation(BaseModel):
    rule_index: int
    fact_path: str
    operator: Operator
    value: Any = None
    fact_value: Any = None
    fact_present: bool
    matched: bool


class ClassificationResult(BaseModel):
    certname: str
    groups: List[GroupMatch] = Field(default_factory=list)
    classes: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    variables: Dict[str, Any] = Field(default_factory=dict)
    environment: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)

    def to_enc(self) -> Dict[str, Any]:
        """
        Renders the result as a Puppet External Node Classifier document.
        Group variables become top-scope parameters.
        """
        dumped = self.model_dump(mode="json")
        document: Dict[str, Any] = {
            "classes": dumped["classes"],
            "parameters": dumped["variables"],
        }
        if self.environment is not None:
            document["environment"] = self.environment
        return document

    def lookup(self, key: str, default: Any = None) -> Any:
        """
        Looks up a class parameter by 'class::name::param'. The last segment is
        the parameter name, the rest is the class name.
        """
        parts = key.split("::")
        if len(parts) < 2:
            return default
        param_name = parts.pop()
        class_params = self.classes.get("::".join(parts))
        if class_params is None:
            return default
        return class_params.get(param_name, default)
