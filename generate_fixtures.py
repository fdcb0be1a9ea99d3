#!/usr/bin/env python3
"""Seed a MySQL database with referentially consistent fixture rows"""
import argparse, json, sys

from fixture_seeder import FixtureSeeder, read_schema_documents
from fixture_store import format_run_summary
from mysql_store import MysqlFixtureBackend, connect_mysql
from seed_config import add_connection_args, apply_args, load_config
from seed_errors import ConfigError, CycleError, SeedError
from seed_utils import GLOBALS
from sql_output import SqlScriptBackend
from value_provider import ValueProvider

EXIT_OK, EXIT_ERROR, EXIT_INSERT_FAILURES = 0, 1, 2


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Generate fixture rows from table JSON schemas and insert them in dependency order")
    add_connection_args(p)
    p.add_argument("--schema-dir", default=None, help="Read exported *.json schemas instead of the live catalog")
    p.add_argument("--rows", type=int, default=None, help="Rows per table (default: 5)")
    p.add_argument("--seed", type=int, default=None, help="Random seed for scalar values")
    p.add_argument("--purge", action="store_true", help="Delete existing rows of non-protected tables first")
    p.add_argument("--disable-fk-checks", action="store_true", help="Turn off FOREIGN_KEY_CHECKS while purging")
    p.add_argument("--out-sql", default=None, help="Write INSERT statements to this file instead of executing them")
    p.add_argument("--out-delete", default=None, help="With --out-sql, write DELETE statements to this file")
    p.add_argument("--print-order", action="store_true", help="Print the insertion order as JSON")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    GLOBALS["debug"] = args.debug
    try:
        cfg = apply_args(load_config(args.config), args)
    except ConfigError as e:
        print("Error: Invalid config: {0}".format(e), file=sys.stderr)
        return EXIT_ERROR

    conn = None
    if cfg["mysql"]["host"]:
        conn = connect_mysql(cfg["mysql"], ask_pass=args.ask_pass)
    elif not args.out_sql:
        print("Error: A MySQL host is required unless --out-sql is given", file=sys.stderr)
        return EXIT_ERROR
    try:
        documents = read_schema_documents(cfg, args.schema_dir, conn)
        lookup = MysqlFixtureBackend(conn) if conn is not None else None
        seeder = FixtureSeeder(cfg, ValueProvider(seed=args.seed), lookup=lookup)
        seeder.load(documents)

        backend = SqlScriptBackend() if args.out_sql else lookup
        result = seeder.run(backend, purge=args.purge or bool(args.out_delete),
                            disable_fk_checks=args.disable_fk_checks)
        if args.print_order:
            print(json.dumps(result.order))
        if args.out_sql:
            backend.write_output(args.out_sql, args.out_delete, seed=args.seed)
            print(" Wrote INSERT statements to {0}".format(args.out_sql))
            if args.out_delete:
                print(" Wrote DELETE statements to {0}".format(args.out_delete))

        for line in format_run_summary(result.store, result.inserted, result.purge_errors):
            print(line)
        if result.store.errors or result.purge_errors:
            return EXIT_INSERT_FAILURES
        return EXIT_OK
    except CycleError as e:
        print("Error: {0}".format(e), file=sys.stderr)
        print("  Break the loop by removing one foreignTable reference from: {0}".format(
            ", ".join(e.path[:-1])), file=sys.stderr)
        return EXIT_ERROR
    except SeedError as e:
        print("Error: {0}".format(e), file=sys.stderr)
        return EXIT_ERROR
    except Exception as e:
        print("Error: {0}".format(e), file=sys.stderr)
        if GLOBALS["debug"]:
            import traceback
            traceback.print_exc()
        return EXIT_ERROR
    finally:
        if conn is not None:
            conn.close()

if __name__ == "__main__":
    sys.exit(main())
