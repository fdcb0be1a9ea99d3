#!/usr/bin/env python3
"""Seeding pipeline shared by the export, generate and verify scripts"""
from collections import namedtuple

from dependency_graph import build_dependency_graph, topo_sort
from fixture_store import FixtureWriter, populate
from row_synthesizer import RowSynthesizer
from schema_introspector import SchemaConverter
from schema_model import load_schema_dir, load_table_schemas
from seed_errors import ConfigError
from seed_utils import debug_print, table_matches_any, warn_print

SeedResult = namedtuple("SeedResult", ["order", "store", "inserted", "purge_errors"])


def read_schema_documents(cfg, schema_dir=None, conn=None):
    """
    JSON-Schema table documents from exported files or from the live catalog.

    Raises:
        ConfigError: neither a schema directory nor schemas to convert
    """
    if schema_dir:
        return load_schema_dir(schema_dir)
    if conn is None:
        raise ConfigError("A MySQL host or --schema-dir is required")
    if not cfg["input"]["schemas"]:
        raise ConfigError("No schemas configured: set input.schemas or pass --schemas")
    converter = SchemaConverter(conn, cfg["input"]["schemas"], cfg["input"]["include"],
                                cfg["input"]["exclude"], cfg["output"]["base_url"])
    return converter.convert()


class FixtureSeeder(object):
    """
    Runs one seeding pass: schemas -> dependency graph -> insertion order ->
    synthesized rows -> backend.

    Handles:
    - Parsing schema documents (unusable ones are skipped with a warning)
    - Cycle detection before anything touches the database
    - Optional purge of earlier fixture rows, children first
    - Best-effort inserts with every failure collected in the store
    """

    def __init__(self, config, provider, lookup=None):
        """
        Args:
            config: merged config dict (see seed_config)
            provider: scalar value provider
            lookup: existing-key lookup for protected tables, or None
        """
        self.config = config
        self.provider = provider
        self.lookup = lookup
        self.protected_patterns = config["protected_tables"]
        self.schemas, self.skipped = [], []
        self.schema_map = {}
        self.graph = None
        self.order = []

    def load(self, documents):
        self.schemas, self.skipped = load_table_schemas(documents, self.protected_patterns)
        self.schema_map = {s.identity: s for s in self.schemas}
        debug_print("Loaded {0} table schemas ({1} skipped)".format(len(self.schemas), len(self.skipped)))
        return self.schemas

    def is_protected(self, table):
        schema = self.schema_map.get(table)
        if schema is not None:
            return schema.protected
        return table_matches_any(table, self.protected_patterns)

    def plan(self):
        """
        Build the graph and the insertion order.

        Raises:
            CycleError: the schemas reference each other in a loop
        """
        self.graph = build_dependency_graph(self.schemas)
        for ref in self.graph.external_refs:
            if not self.is_protected(ref.target):
                warn_print("{0}.{1} references {2}, which is not among the loaded schemas".format(
                    ref.owner, ref.field, ref.target))
        self.order = topo_sort(self.graph)
        return self.order

    def generate(self, order=None):
        """Synthesize rows for every non-protected table; returns the FixtureStore."""
        if order is None:
            order = self.order or self.plan()
        synthesizer = RowSynthesizer(
            self.schemas, self.provider, lookup=self.lookup,
            array_count=self.config["array_count"],
            lookup_batch_size=self.config["lookup_batch_size"],
            protected_patterns=self.protected_patterns)
        return populate(order, self.schema_map, synthesizer, self.config["rows"],
                        table_rows=self.config["table_rows"])

    def run(self, backend, purge=False, disable_fk_checks=False):
        """
        Plan, synthesize, optionally purge, then insert.

        Returns: SeedResult
        """
        order = self.plan()
        store = self.generate(order)
        writer = FixtureWriter(backend, self.is_protected)
        purge_errors = []
        if purge:
            purge_errors = writer.purge(order, disable_fk_checks=disable_fk_checks)
        inserted = writer.flush(store, order)
        return SeedResult(order, store, inserted, purge_errors)
