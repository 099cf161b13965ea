"""Loaders for declarative catalog definitions."""

from .json_loader import (
    CatalogDefinition,
    dump_card,
    dump_pack,
    dump_template,
    load_catalog_from_json,
    parse_card,
    parse_catalog_dict,
    parse_pack,
    parse_template,
    validate_catalog_dict,
    validate_catalog_file,
)

__all__ = [
    "CatalogDefinition",
    "dump_card",
    "dump_pack",
    "dump_template",
    "load_catalog_from_json",
    "parse_card",
    "parse_catalog_dict",
    "parse_pack",
    "parse_template",
    "validate_catalog_dict",
    "validate_catalog_file",
]
