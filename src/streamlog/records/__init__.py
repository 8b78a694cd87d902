"""Flattening of nested Stream records."""

from .flatten import flatten_field, flatten_record, flatten_records

__all__ = ["flatten_field", "flatten_record", "flatten_records"]
