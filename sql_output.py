#!/usr/bin/env python3
"""SQL script backend: renders fixture inserts and purges to files instead of executing them"""
import sys
from contextlib import contextmanager
from datetime import datetime, timezone

from seed_utils import render_delete_statement, render_insert_statement


class SqlScriptBackend(object):
    """Collects INSERT and DELETE statements in execution order."""

    def __init__(self):
        self.insert_sql_lines = []
        self.delete_sql_lines = []
        self._current_table = None

    def insert(self, table, record):
        if table != self._current_table:
            self.insert_sql_lines.append("\n-- Inserting rows into {0}\n".format(table))
            self._current_table = table
        self.insert_sql_lines.append(render_insert_statement(table, record))

    def delete_all(self, table):
        self.delete_sql_lines.append("\n-- Deleting rows from {0}\n".format(table))
        self.delete_sql_lines.append(render_delete_statement(table))

    @contextmanager
    def foreign_key_checks_disabled(self):
        self.delete_sql_lines.append("SET FOREIGN_KEY_CHECKS=0;\n")
        try:
            yield
        finally:
            self.delete_sql_lines.append("SET FOREIGN_KEY_CHECKS=1;\n")

    def write_output(self, out_sql_path, out_delete_path=None, seed=None):
        header = "-- Fixture data generated {0}\n-- Seed: {1}\n\n".format(
            datetime.now(timezone.utc).isoformat(timespec="seconds"), seed)
        try:
            with open(out_sql_path, "w", encoding="utf-8") as f:
                f.write(header)
                if not out_delete_path:
                    f.writelines(self.delete_sql_lines)
                f.writelines(self.insert_sql_lines)
                f.write("\n-- End of inserts\n")
        except IOError as e:
            print("Error writing {0}: {1}".format(out_sql_path, e), file=sys.stderr)
            sys.exit(1)

        if out_delete_path:
            try:
                with open(out_delete_path, "w", encoding="utf-8") as f:
                    f.write("-- DELETE statements (reverse order)\n-- WARNING: Review before running!\n\n")
                    f.writelines(self.delete_sql_lines)
                    f.write("\n-- End of deletes\n")
            except IOError as e:
                print("Error writing {0}: {1}".format(out_delete_path, e), file=sys.stderr)
                sys.exit(1)
