# /run_classification.py

import json
import sys
from dotenv import load_dotenv

from classifier.engine import ClassificationService
from classifier.errors import HierarchyError
from classifier.sources import JsonFileFactSource, JsonFileGroupSource

def main(argv=None):
    """
    Classifies one node, or every node, from local JSON files and prints the
    resulting ENC documents.

    Usage: run_classification.py <groups.json> <nodes.json> [certname]
    """
    load_dotenv()
    args = sys.argv[1:] if argv is None else argv

    if len(args) not in (2, 3):
        print("Usage: run_classification.py <groups.json> <nodes.json> [certname]", file=sys.stderr)
        return 2

    groups = JsonFileGroupSource(args[0]).load_groups()
    fact_source = JsonFileFactSource(args[1])

    if len(args) == 3:
        node = fact_source.load_facts(args[2])
        if node is None:
            print(f"Error: node '{args[2]}' not found in {args[1]}.", file=sys.stderr)
            return 1
        nodes = [node]
    else:
        nodes = fact_source.list_nodes()

    try:
        service = ClassificationService(groups)
    except HierarchyError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    results = service.classify_many(nodes)
    print(json.dumps({certname: result.to_enc() for certname, result in results.items()}, indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
