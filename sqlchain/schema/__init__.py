"""sqlchain clause model: key mappers, fragments, clauses and configuration."""
from sqlchain.schema.clauses import Clause, ClauseKind, ClauseModel, OrderItem, Rows
from sqlchain.schema.config import Config
from sqlchain.schema.fragment import Fragment, Fragmentable, Param, Raw
from sqlchain.schema.keys import KEY_MAPPERS, camel_case, identity, snake_case

__all__ = [
    "Clause",
    "ClauseKind",
    "ClauseModel",
    "OrderItem",
    "Rows",
    "Config",
    "Fragment",
    "Fragmentable",
    "Param",
    "Raw",
    "KEY_MAPPERS",
    "camel_case",
    "identity",
    "snake_case",
]
