#!/usr/bin/env python3
"""Export table JSON schemas from a MySQL catalog to files"""
import argparse, json, os, pprint, sys
from urllib.parse import urlparse

from fixture_seeder import read_schema_documents
from mysql_store import connect_mysql
from schema_model import schema_identity
from seed_config import add_connection_args, apply_args, load_config
from seed_errors import ConfigError, SchemaError, SeedError
from seed_utils import GLOBALS, slugify, split_table_key, warn_print


def schema_file_location(document):
    """
    (directory, name) for a schema document, taken from the last two
    segments of its $id path, or from its title when there is no $id.
    """
    if document.get("$id"):
        parts = [p for p in urlparse(document["$id"]).path.split("/") if p]
        if len(parts) < 2:
            raise SchemaError("Invalid $id format: {0}".format(document["$id"]))
        name = parts[-1][:-len(".json")] if parts[-1].endswith(".json") else parts[-1]
        return parts[-2], name
    namespace, name = split_table_key(schema_identity(document))
    return namespace or "default", name


def render_schema_file(document, name, fmt="json", indent=2):
    if fmt == "py":
        return "{0} = {1}\n".format(slugify(name), pprint.pformat(document, indent=1, width=100, sort_dicts=False))
    return json.dumps(document, indent=indent) + "\n"


def write_schema_files(documents, out_dir, fmt="json", indent=2):
    """
    Write one file per schema under out_dir/<namespace>/.

    Documents without any identity are skipped with a warning.

    Returns: list of written paths
    """
    written = []
    for document in documents:
        try:
            directory, name = schema_file_location(document)
        except SchemaError as e:
            warn_print("Skipping schema: {0}".format(e))
            continue
        target_dir = os.path.join(out_dir, directory)
        os.makedirs(target_dir, exist_ok=True)
        path = os.path.join(target_dir, "{0}.{1}".format(name, fmt))
        with open(path, "w", encoding="utf-8") as f:
            f.write(render_schema_file(document, name, fmt, indent))
        written.append(path)
    return written


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Export table JSON schemas from a MySQL catalog")
    add_connection_args(p)
    p.add_argument("--out-dir", default=None, help="Output directory (default: ./output)")
    p.add_argument("--format", choices=("json", "py"), default="json", help="File format (default: json)")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    GLOBALS["debug"] = args.debug
    try:
        cfg = apply_args(load_config(args.config), args)
    except ConfigError as e:
        print("Error: Invalid config: {0}".format(e), file=sys.stderr)
        return 1
    if not cfg["mysql"]["host"]:
        print("Error: A MySQL host is required", file=sys.stderr)
        return 1

    conn = connect_mysql(cfg["mysql"], ask_pass=args.ask_pass)
    try:
        documents = read_schema_documents(cfg, conn=conn)
        written = write_schema_files(documents, cfg["output"]["out_dir"], args.format, cfg["output"]["indent"])
        print(" Wrote {0} schema file(s) to {1}".format(len(written), cfg["output"]["out_dir"]))
        return 0
    except SeedError as e:
        print("Error: {0}".format(e), file=sys.stderr)
        return 1
    finally:
        conn.close()

if __name__ == "__main__":
    sys.exit(main())
