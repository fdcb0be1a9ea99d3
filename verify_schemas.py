#!/usr/bin/env python3
"""Print the table dependency tree and insertion order without touching any data"""
import argparse, json, sys

from dependency_graph import build_dependency_graph, build_dependency_tree, topo_sort
from export_schemas import write_schema_files
from fixture_seeder import read_schema_documents
from mysql_store import connect_mysql
from schema_model import load_table_schemas
from seed_config import add_connection_args, apply_args, load_config
from seed_errors import ConfigError, CycleError, SeedError
from seed_utils import GLOBALS


def verify(documents, protected_patterns):
    """
    Returns: dict with "tree", "order", "external_references", "skipped"
        and, when the graph has a loop, "cycle" instead of "order"
    """
    schemas, skipped = load_table_schemas(documents, protected_patterns)
    graph = build_dependency_graph(schemas)
    report = {
        "tree": build_dependency_tree(graph),
        "external_references": ["{0}.{1} -> {2}".format(r.owner, r.field, r.target) for r in graph.external_refs],
        "skipped": [str(e) for _, e in skipped],
    }
    try:
        report["order"] = topo_sort(graph)
    except CycleError as e:
        report["cycle"] = e.path
    return report


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Verify table schemas: dependency tree, insertion order, cycles")
    add_connection_args(p)
    p.add_argument("--schema-dir", default=None, help="Read exported *.json schemas instead of the live catalog")
    p.add_argument("--out-dir", default=None, help="Also export the schemas to this directory")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    GLOBALS["debug"] = args.debug
    try:
        cfg = apply_args(load_config(args.config), args)
    except ConfigError as e:
        print("Error: Invalid config: {0}".format(e), file=sys.stderr)
        return 1

    conn = connect_mysql(cfg["mysql"], ask_pass=args.ask_pass) if cfg["mysql"]["host"] else None
    try:
        documents = read_schema_documents(cfg, args.schema_dir, conn)
        report = verify(documents, cfg["protected_tables"])
        print(json.dumps(report, indent=2))
        if args.out_dir:
            written = write_schema_files(documents, args.out_dir, "json", cfg["output"]["indent"])
            print(" Wrote {0} schema file(s) to {1}".format(len(written), args.out_dir))
        if "cycle" in report:
            print("Error: Cycle detected involving tables: {0}".format(" -> ".join(report["cycle"])), file=sys.stderr)
            return 1
        return 0
    except SeedError as e:
        print("Error: {0}".format(e), file=sys.stderr)
        return 1
    finally:
        if conn is not None:
            conn.close()

if __name__ == "__main__":
    sys.exit(main())
