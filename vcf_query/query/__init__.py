"""Query subpackage: field references, predicates and the streaming engine."""

from .fields import MISSING, resolve_field, default_fields  # noqa: F401
from .predicates import (  # noqa: F401
	Predicate,
	equals,
	not_equals,
	greater_than,
	less_than,
	at_least,
	at_most,
	range_inclusive,
	length_equals,
	exists,
	all_of,
	any_of,
	negate,
	always_true,
	parse_predicate,
	combine_expressions,
)
from .engine import filter_records, project, select_columns, count_by, count_where  # noqa: F401

__all__ = [
	"MISSING",
	"resolve_field",
	"default_fields",
	"Predicate",
	"equals",
	"not_equals",
	"greater_than",
	"less_than",
	"at_least",
	"at_most",
	"range_inclusive",
	"length_equals",
	"exists",
	"all_of",
	"any_of",
	"negate",
	"always_true",
	"parse_predicate",
	"combine_expressions",
	"filter_records",
	"project",
	"select_columns",
	"count_by",
	"count_where",
]
