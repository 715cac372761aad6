# /classifier/sources.py

from abc import ABC, abstractmethod
from typing import Dict, List, Optional
import json
import os

from pydantic import TypeAdapter

from classifier.logger import get_logger
from classifier.models import NodeGroup, NodeRecord

logger = get_logger(__name__)

class GroupSource(ABC):
    """Abstract base class for the group store that owns group definitions."""
    @abstractmethod
    def load_groups(self) -> List[NodeGroup]:
        """Loads the full group set and returns it as a list."""
        pass

class FactSource(ABC):
    """Abstract base class for the inventory that supplies per-node facts."""
    @abstractmethod
    def load_facts(self, certname: str) -> Optional[NodeRecord]:
        """Returns the node's facts and current environment, or None for an unknown node."""
        pass

    @abstractmethod
    def list_nodes(self) -> List[NodeRecord]:
        pass


def _read_json(path: str):
    if not os.path.isfile(path):
        raise ValueError(f"The path {path} is not a valid file.")
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


class JsonFileGroupSource(GroupSource):
    """Loads groups from a JSON file holding a list of group objects (or {"groups": [...]})."""
    def __init__(self, path: str):
        self.path = path

    def load_groups(self) -> List[NodeGroup]:
        data = _read_json(self.path)
        if isinstance(data, dict):
            data = data.get('groups', [])
        groups = TypeAdapter(List[NodeGroup]).validate_python(data)
        logger.info(f"Loaded {len(groups)} group(s) from {self.path}")
        return groups


class JsonFileFactSource(FactSource):
    """
    Loads node records from a JSON file holding either a list of
    {"certname", "facts", "environment"} objects or a certname -> facts mapping.
    """
    def __init__(self, path: str):
        self.path = path
        self._nodes: Optional[Dict[str, NodeRecord]] = None

    def _load(self) -> Dict[str, NodeRecord]:
        if self._nodes is None:
            data = _read_json(self.path)
            if isinstance(data, dict):
                data = [{"certname": certname, "facts": facts} for certname, facts in data.items()]
            records = TypeAdapter(List[NodeRecord]).validate_python(data)
            self._nodes = {record.certname: record for record in records}
            logger.info(f"Loaded {len(self._nodes)} node(s) from {self.path}")
        return self._nodes

    def load_facts(self, certname: str) -> Optional[NodeRecord]:
        return self._load().get(certname)

    def list_nodes(self) -> List[NodeRecord]:
        return list(self._load().values())
