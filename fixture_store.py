#!/usr/bin/env python3
"""Fixture store, population in dependency order, and the writer that persists it"""
import sys

from seed_errors import InsertionError, PurgeError, SeedError
from seed_utils import debug_print


class FixtureStore(object):
    """
    Rows synthesized during one run, per table, in generation order.

    Also collects the non-fatal diagnostics of the run (unresolved references,
    failed lookups, failed inserts and purges).
    """

    def __init__(self):
        self._tables = {}
        self.warnings = []
        self.errors = []

    def rows(self, table):
        return tuple(self._tables.get(table, ()))

    def append(self, table, record):
        self._tables.setdefault(table, []).append(record)

    def tables(self):
        return list(self._tables)

    def counts(self):
        return {t: len(rows) for t, rows in self._tables.items()}

    def add_warning(self, warning):
        debug_print("WARNING: {0}".format(warning))
        self.warnings.append(warning)

    def add_error(self, error):
        debug_print("Error: {0}".format(error))
        self.errors.append(error)

    def __contains__(self, table):
        return table in self._tables

    def __len__(self):
        return sum(len(rows) for rows in self._tables.values())


def populate(ordered_tables, schemas, synthesizer, per_table_count, table_rows=None, store=None):
    """
    Synthesize rows table by table in insertion order.

    Each row is appended as soon as it is built, so later tables (and later
    rows of a self-referencing table) can point at it.

    Args:
        ordered_tables: table identities, parents before children
        schemas: dict of identity -> TableSchema
        synthesizer: RowSynthesizer
        per_table_count: rows per table
        table_rows: optional dict of identity -> row count overrides
        store: FixtureStore to fill (a new one by default)

    Returns: FixtureStore
    """
    if store is None:
        store = FixtureStore()
    table_rows = table_rows or {}
    for table in ordered_tables:
        schema = schemas.get(table)
        if schema is None:
            raise SeedError("No schema for table {0}".format(table))
        if schema.protected:
            debug_print("Skipping protected table {0}".format(table))
            continue
        count = int(table_rows.get(table, per_table_count))
        for index in range(count):
            store.append(table, synthesizer.synthesize(schema, index, store))
        debug_print("Synthesized {0} rows for {1}".format(count, table))
    return store


class FixtureWriter(object):
    """
    Persists a FixtureStore through a backend exposing insert() and
    delete_all() (and foreign_key_checks_disabled() for purges that turn off
    referential checks).

    Failures are collected per record or per table; they never stop the batch.
    """

    def __init__(self, backend, is_protected):
        """
        Args:
            backend: MysqlFixtureBackend, SqlScriptBackend or compatible
            is_protected: callable(table) -> bool; protected tables are never
                purged or written
        """
        self.backend = backend
        self.is_protected = is_protected

    def purge(self, ordered_tables, disable_fk_checks=False):
        """
        Delete prior rows from every non-protected table, children first.

        Returns: list of PurgeError
        """
        tables = [t for t in reversed(ordered_tables) if not self.is_protected(t)]
        if disable_fk_checks:
            with self.backend.foreign_key_checks_disabled():
                return self._purge_tables(tables)
        return self._purge_tables(tables)

    def _purge_tables(self, tables):
        errors = []
        for table in tables:
            try:
                self.backend.delete_all(table)
                print("Cleared data from {0}".format(table))
            except Exception as e:
                error = PurgeError(table, e)
                print("Error: {0}".format(error), file=sys.stderr)
                errors.append(error)
        return errors

    def flush(self, store, ordered_tables=None):
        """
        Insert every record, one statement per record, in table order.

        Returns: dict of table -> number of rows inserted
        """
        if ordered_tables is None:
            ordered_tables = store.tables()
        inserted = {}
        for table in ordered_tables:
            if self.is_protected(table) or table not in store:
                continue
            inserted[table] = 0
            for record in store.rows(table):
                try:
                    self.backend.insert(table, record)
                    inserted[table] += 1
                except Exception as e:
                    error = InsertionError(table, record, e)
                    print("Error: {0}".format(error), file=sys.stderr)
                    store.add_error(error)
            debug_print("Inserted {0} rows into {1}".format(inserted[table], table))
        return inserted


def format_run_summary(store, inserted, purge_errors=()):
    """Lines describing attempted vs inserted rows and every diagnostic."""
    lines = ["Run summary:"]
    attempted = store.counts()
    for table in attempted:
        lines.append("  {0}: {1} attempted, {2} inserted".format(
            table, attempted[table], inserted.get(table, 0)))
    if store.warnings:
        lines.append("Unresolved references ({0}):".format(len(store.warnings)))
        for w in store.warnings:
            lines.append("  - {0}".format(w))
        generated = [w for w in store.warnings if getattr(w, "generated_key", False)]
        if generated:
            lines.append("  {0} reference(s) point at database-assigned keys (AUTO_INCREMENT or generated "
                         "columns); those columns were left out, so NOT NULL foreign keys will fail to "
                         "insert".format(len(generated)))
    errors = list(purge_errors) + list(store.errors)
    if errors:
        lines.append("Errors ({0}):".format(len(errors)))
        for e in errors:
            lines.append("  - {0}".format(e))
    return lines
