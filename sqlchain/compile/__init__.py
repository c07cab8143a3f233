"""sqlchain compilation layer: clause model → parameterized SQL."""
from sqlchain.compile.base import Query, SQLCompiler
from sqlchain.compile.builder import StatementBuilder, compile_query, compile_statement
from sqlchain.compile.postgres import PostgresCompiler, PsycopgCompiler
from sqlchain.compile.sqlite import SQLiteCompiler

__all__ = [
    "Query",
    "SQLCompiler",
    "StatementBuilder",
    "compile_query",
    "compile_statement",
    "PostgresCompiler",
    "PsycopgCompiler",
    "SQLiteCompiler",
]
