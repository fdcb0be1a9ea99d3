#!/usr/bin/env python3
"""Row synthesis: one candidate row per (table, index)"""
from schema_model import (
    ArrayField, ForeignRefField, GeneratedField, ObjectField, ScalarField,
    format_field_path
)
from seed_errors import ReferenceLookupError, SeedError, UnresolvedReferenceWarning
from seed_utils import DEFAULT_PROTECTED_TABLES, debug_print, table_matches_any

DEFAULT_ARRAY_COUNT = 5
DEFAULT_LOOKUP_BATCH_SIZE = 100

_OMIT = object()


class RowSynthesizer(object):
    """
    Builds fixture rows from typed table schemas.

    Handles:
    - Scalar values from type/format/enum hints (through the value provider)
    - Foreign references resolved round-robin against rows already in the
      fixture store, or positionally against existing keys of protected tables
    - Nested objects and arrays, synthesized recursively with the same index

    Existing keys of protected tables are fetched in batches as rows need them
    and cached on the instance, so one synthesizer belongs to one run.
    """

    def __init__(self, schemas, provider, lookup=None, array_count=DEFAULT_ARRAY_COUNT,
                 lookup_batch_size=DEFAULT_LOOKUP_BATCH_SIZE,
                 protected_patterns=DEFAULT_PROTECTED_TABLES):
        """
        Args:
            schemas: sequence of TableSchema taking part in the run
            provider: scalar value provider (see value_provider.ValueProvider)
            lookup: default existing-key lookup, exposing fetch_keys()
            array_count: elements generated for arrays without minItems
            lookup_batch_size: keys read per lookup query
            protected_patterns: globs marking protected tables that are not in
                ``schemas`` (e.g. "auth.*")
        """
        self.schemas = {s.identity: s for s in schemas}
        self.provider = provider
        self.lookup = lookup
        self.array_count = array_count
        self.lookup_batch_size = lookup_batch_size
        self.protected_patterns = protected_patterns
        self._external_keys = {}

    def is_protected(self, table):
        schema = self.schemas.get(table)
        if schema is not None:
            return schema.protected
        return table_matches_any(table, self.protected_patterns)

    def synthesize(self, schema, index, store, lookup=None):
        """
        Produce one row for ``schema``.

        Args:
            schema: TableSchema (must not be protected)
            index: position of the row within its table
            store: FixtureStore holding rows synthesized so far
            lookup: existing-key lookup; defaults to the one given at init

        Returns: dict of field name -> value; generated and unresolved fields
            are left out
        """
        if schema.protected:
            raise SeedError("Refusing to synthesize rows for protected table {0}".format(schema.identity))
        lookup = lookup if lookup is not None else self.lookup
        return self._synthesize_fields(schema.identity, schema.fields, (), index, store, lookup)

    def _synthesize_fields(self, owner, fields, path, index, store, lookup):
        row = {}
        for name, field in fields.items():
            value = self._synthesize_value(owner, field, path + (name,), index, store, lookup)
            if value is not _OMIT:
                row[name] = value
        return row

    def _synthesize_value(self, owner, field, path, index, store, lookup):
        if isinstance(field, GeneratedField):
            return _OMIT
        if isinstance(field, ForeignRefField):
            return self.resolve_reference(owner, field, path, index, store, lookup)
        if isinstance(field, ObjectField):
            return self._synthesize_fields(owner, field.fields, path, index, store, lookup)
        if isinstance(field, ArrayField):
            return self._synthesize_array(owner, field, path, index, store, lookup)
        if isinstance(field, ScalarField):
            return self.scalar_value(field, path)
        raise SeedError("{0}: unknown field variant {1}".format(
            format_field_path((owner,) + path), type(field).__name__))

    def _synthesize_array(self, owner, field, path, index, store, lookup):
        if len(field.items) > 1:
            # Tuple-style items: one element per declared shape
            shapes = list(field.items)
        elif field.items:
            count = field.count if field.count is not None else self.array_count
            shapes = [field.items[0]] * count
        else:
            shapes = []
        values = []
        for item in shapes:
            value = self._synthesize_value(owner, item, path, index, store, lookup)
            if value is not _OMIT:
                values.append(value)
        return values

    def scalar_value(self, field, path=()):
        p = self.provider
        if field.enum:
            return p.pick_one_of(field.enum)
        if field.format == "uuid":
            return p.uuid()
        if field.format == "date":
            return p.recent_date()
        if field.format == "date-time":
            return p.recent_timestamp()
        if field.type == "string":
            return p.string()
        if field.type == "number":
            return p.number()
        if field.type == "integer":
            return p.integer()
        if field.type == "boolean":
            return p.boolean()
        if field.type == "object":
            return {}
        debug_print("{0}: no generator for type {1!r}, using null".format(format_field_path(path), field.type))
        return None

    def resolve_reference(self, owner, field, path, index, store, lookup):
        """
        Pick the key a foreign reference points at.

        Protected targets use the index-th existing key (the last one once the
        index runs past the available keys); synthesized targets use row
        ``index % len(rows)`` of the store. With nothing to point at, the field
        is omitted and a warning is recorded in the store.
        """
        field_name = format_field_path(path)
        if self.is_protected(field.target):
            keys = self.existing_keys(field.target, field.key, store, lookup, index)
            if not keys:
                store.add_warning(UnresolvedReferenceWarning(owner, field_name, field.target,
                                                             "no existing rows"))
                return _OMIT
            # Past the end: the last key, not the first (2 users, 5 rows -> u1, u2, u2, u2, u2)
            return keys[index] if index < len(keys) else keys[-1]

        if self._key_is_generated(field.target, field.key):
            store.add_warning(UnresolvedReferenceWarning(
                owner, field_name, field.target,
                "parent key {0!r} is database-assigned".format(field.key), generated_key=True))
            return _OMIT
        parents = store.rows(field.target)
        if not parents:
            store.add_warning(UnresolvedReferenceWarning(owner, field_name, field.target,
                                                         "no synthesized rows"))
            return _OMIT
        parent = parents[index % len(parents)]
        if field.key not in parent:
            store.add_warning(UnresolvedReferenceWarning(
                owner, field_name, field.target,
                "key field {0!r} is not synthesized".format(field.key)))
            return _OMIT
        return parent[field.key]

    def _key_is_generated(self, table, key):
        schema = self.schemas.get(table)
        return schema is not None and isinstance(schema.fields.get(key), GeneratedField)

    def existing_keys(self, table, key, store, lookup, index=0):
        """
        Key values of existing rows in a protected table, cached per run.

        Keys are read in batches of lookup_batch_size until the list covers
        ``index`` or a batch comes back short (the table has no more rows).
        """
        cache_key = (table, key)
        entry = self._external_keys.get(cache_key)
        if entry is None:
            entry = {"keys": [], "fetched": 0, "exhausted": lookup is None}
            self._external_keys[cache_key] = entry
            if lookup is None:
                debug_print("{0}: no lookup configured, treating as empty".format(table))

        while not entry["exhausted"] and index >= len(entry["keys"]):
            offset = entry["fetched"]
            try:
                rows = lookup.fetch_keys(table, offset, self.lookup_batch_size, key=key)
            except ReferenceLookupError as e:
                store.add_error(e)
                entry["exhausted"] = True
                break
            entry["fetched"] += len(rows)
            entry["keys"].extend(r[key] for r in rows if r.get(key) is not None)
            if not rows or len(rows) < self.lookup_batch_size:
                entry["exhausted"] = True
            debug_print("Fetched {0} existing keys from {1} at offset {2}".format(len(rows), table, offset))
        return entry["keys"]
