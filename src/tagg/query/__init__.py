"""Read-only queries over the content store."""

from .filters import TagPredicate, find, list_all, parse_predicates

__all__ = ["TagPredicate", "find", "list_all", "parse_predicates"]
