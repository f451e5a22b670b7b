"""
Coluna de embeddings.

No PostgreSQL usa pgvector.sqlalchemy.Vector (vector(N)); nos demais
dialetos (SQLite em testes) a coluna é texto. Para o restante do código o
valor é sempre o literal "[v1,v2,...]".
"""

from pgvector.sqlalchemy import Vector
from sqlalchemy import Text
from sqlalchemy.types import TypeDecorator

from ..remote.embedder import parse_vector_literal, to_vector_literal


class EmbeddingColumn(TypeDecorator):
    """Vector(N) do pgvector com fallback textual fora do PostgreSQL."""

    impl = Text
    cache_ok = True

    def __init__(self, dimensions: int = 1536):
        super().__init__()
        self.dimensions = dimensions

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(Vector(self.dimensions))
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            value = parse_vector_literal(value)
        if dialect.name == "postgresql":
            # serialização fica com o bind processor do pgvector
            return [float(v) for v in value]
        return to_vector_literal(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, str):
            return value
        # pgvector devolve numpy.ndarray
        return to_vector_literal(value.tolist())
