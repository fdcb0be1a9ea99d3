#!/usr/bin/env python3
"""Typed table schema model parsed from JSON-Schema documents

Each table schema document is a JSON-Schema object whose properties carry a
few extension keywords:

- ``foreignTable`` / ``foreignColumn``: the property stores a key of another
  table (``foreignColumn`` defaults to ``id``)
- ``isGenerated``: the value is assigned by the database and never inserted
"""
import glob, json, os
from collections import namedtuple
from types import MappingProxyType

from seed_errors import MissingIdentityError, SchemaError
from seed_utils import (
    DEFAULT_PROTECTED_TABLES, debug_print, extract_schema_key_from_id,
    table_matches_any, warn_print
)

DEFAULT_KEY_FIELD = "id"

SCALAR_TYPES = ("string", "number", "integer", "boolean")

TableSchema = namedtuple("TableSchema", ["identity", "title", "schema_id", "fields", "protected", "document"])

# Field variants; exactly one applies to each property.
ScalarField = namedtuple("ScalarField", ["type", "format", "enum"])
ForeignRefField = namedtuple("ForeignRefField", ["target", "key"])
ObjectField = namedtuple("ObjectField", ["fields"])
ArrayField = namedtuple("ArrayField", ["items", "count"])
GeneratedField = namedtuple("GeneratedField", [])

FIELD_VARIANTS = (ScalarField, ForeignRefField, ObjectField, ArrayField, GeneratedField)


def _normalize_type(declared):
    """JSON-Schema allows a list of types; nullable columns come as ["x", "null"]."""
    if isinstance(declared, (list, tuple)):
        non_null = [t for t in declared if t != "null"]
        return non_null[0] if non_null else None
    return declared


def parse_field(prop, path):
    """
    Turn one JSON-Schema property into a field variant.

    Args:
        prop: property dict
        path: dotted location of the property, used in error messages

    Returns: one of the FIELD_VARIANTS
    """
    if not isinstance(prop, dict):
        raise SchemaError("{0}: property must be an object, got {1}".format(path, type(prop).__name__))

    if prop.get("isGenerated"):
        return GeneratedField()

    if prop.get("foreignTable"):
        return ForeignRefField(prop["foreignTable"], prop.get("foreignColumn") or DEFAULT_KEY_FIELD)

    ptype = _normalize_type(prop.get("type"))

    if prop.get("enum") is not None:
        if not isinstance(prop["enum"], (list, tuple)) or not prop["enum"]:
            raise SchemaError("{0}: enum must be a non-empty array".format(path))
        return ScalarField(ptype, prop.get("format"), tuple(prop["enum"]))

    if ptype == "array":
        items = prop.get("items")
        if items is None:
            shapes = ()
        elif isinstance(items, list):
            shapes = tuple(parse_field(item, "{0}[{1}]".format(path, i)) for i, item in enumerate(items))
        else:
            shapes = (parse_field(items, "{0}[]".format(path)),)
        count = prop.get("minItems")
        if count is not None and not isinstance(count, int):
            raise SchemaError("{0}: minItems must be an integer".format(path))
        return ArrayField(shapes, count)

    if "properties" in prop:
        return ObjectField(parse_properties(prop["properties"], path))

    if ptype not in SCALAR_TYPES:
        debug_print("{0}: unsupported type {1!r}, values will be null".format(path, ptype))
    return ScalarField(ptype, prop.get("format"), None)


def parse_properties(properties, path):
    if not isinstance(properties, dict):
        raise SchemaError("{0}: properties must be an object".format(path))
    fields = {}
    for name, prop in properties.items():
        fields[name] = parse_field(prop, "{0}.{1}".format(path, name))
    return MappingProxyType(fields)


def schema_identity(document):
    """
    Stable table key for a schema document: its title, or "namespace.table"
    derived from $id when there is no title.

    Raises:
        MissingIdentityError: neither is present
        SchemaError: $id is not a usable URL
    """
    if not isinstance(document, dict):
        raise MissingIdentityError(document)
    if document.get("title"):
        return document["title"]
    if document.get("$id"):
        try:
            return extract_schema_key_from_id(document["$id"])
        except ValueError as e:
            raise SchemaError(str(e))
    raise MissingIdentityError(document)


def parse_table_schema(document, protected_patterns=DEFAULT_PROTECTED_TABLES):
    """Build a TableSchema from one JSON-Schema document."""
    identity = schema_identity(document)
    fields = parse_properties(document.get("properties") or {}, identity)
    return TableSchema(
        identity=identity,
        title=document.get("title") or identity,
        schema_id=document.get("$id"),
        fields=fields,
        protected=table_matches_any(identity, protected_patterns),
        document=document,
    )


def load_table_schemas(documents, protected_patterns=DEFAULT_PROTECTED_TABLES):
    """
    Parse every document, skipping the ones that cannot be placed in the graph.

    Returns: Tuple of (schemas, skipped) where skipped holds
        (document, SchemaError) pairs
    """
    schemas, skipped, seen = [], [], set()
    for document in documents:
        try:
            schema = parse_table_schema(document, protected_patterns)
        except SchemaError as e:
            warn_print("Skipping schema: {0}".format(e))
            skipped.append((document, e))
            continue
        if schema.identity in seen:
            warn_print("Duplicate schema key detected: {0}".format(schema.identity))
            skipped.append((document, SchemaError("Duplicate schema key: {0}".format(schema.identity))))
            continue
        seen.add(schema.identity)
        schemas.append(schema)
    return schemas, skipped


def load_schema_dir(path):
    """Read every *.json schema document below path, in sorted file order."""
    if not os.path.isdir(path):
        raise SchemaError("Schema directory not found: {0}".format(path))
    documents = []
    for file_path in sorted(glob.glob(os.path.join(path, "**", "*.json"), recursive=True)):
        with open(file_path, "r", encoding="utf-8") as f:
            try:
                documents.append(json.load(f))
            except json.JSONDecodeError as e:
                raise SchemaError("Invalid JSON in {0}: {1}".format(file_path, e))
    debug_print("Loaded {0} schema documents from {1}".format(len(documents), path))
    return documents


def walk_fields(fields, path=()):
    """
    Yield (path, field) for every field at any depth.

    Object fields are yielded and then descended into; every item shape of an
    array is visited, with "[]" (single shape) or "[i]" (tuple shapes) appended
    to the path.
    """
    for name, field in fields.items():
        field_path = path + (name,)
        for entry in _walk_field(field, field_path):
            yield entry


def _walk_field(field, path):
    yield path, field
    if isinstance(field, ObjectField):
        for entry in walk_fields(field.fields, path):
            yield entry
    elif isinstance(field, ArrayField):
        single = len(field.items) == 1
        for i, item in enumerate(field.items):
            item_path = path[:-1] + ("{0}{1}".format(path[-1], "[]" if single else "[{0}]".format(i)),)
            for entry in _walk_field(item, item_path):
                yield entry


def format_field_path(path):
    return ".".join(path)
