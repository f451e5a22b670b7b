"""
Serviço do banco de conteúdo indexado.

Responsável por:
- Upsert idempotente de disciplinas (chave: slug)
- Insert-or-ignore de materiais (chave: source_key)
- Busca semântica por similaridade de cosseno
- Contagens para o status do indexador
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from ..classification.taxonomy import area_color, infer_area
from ..remote.embedder import parse_vector_literal
from .database import create_db_engine, create_session_factory, insert_ignore
from .models import ContentKind, Discipline, IndexedContent

logger = logging.getLogger(__name__)


@dataclass
class SimilarContent:
    """Resultado de busca semântica."""

    id: str
    title: str
    body: str
    kind: str
    discipline_id: Optional[str]
    discipline_name: Optional[str]
    similarity: float

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "kind": self.kind,
            "discipline_id": self.discipline_id,
            "discipline_name": self.discipline_name,
            "similarity": round(self.similarity, 4),
        }


def cosine_similarity(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


_PG_SIMILARITY_SQL = text(
    """
    SELECT c.id, c.title, c.body, c.kind, c.discipline_id, d.name AS discipline_name,
           1 - (c.embedding <=> CAST(:q AS vector)) AS similarity
    FROM indexed_contents c
    LEFT JOIN disciplines d ON d.id = c.discipline_id
    WHERE c.embedding IS NOT NULL
    ORDER BY c.embedding <=> CAST(:q AS vector)
    LIMIT :limit
    """
)


class ContentStore:
    """Acesso ao banco de disciplinas e materiais indexados."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        echo: bool = False,
        engine: Optional[Engine] = None,
    ):
        """
        Inicializa o serviço.

        Args:
            database_url: URL de conexão (default: env DATABASE_URL)
            echo: Se True, loga queries SQL
            engine: Engine já criado (compartilhado com outros serviços)
        """
        self._engine = engine or create_db_engine(database_url, echo=echo)
        self._session_factory = create_session_factory(self._engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    def _get_session(self) -> Session:
        """Cria uma nova sessão."""
        return self._session_factory()

    # =========================================================================
    # Disciplinas
    # =========================================================================

    def ensure_discipline(self, slug: str, name: str) -> str:
        """
        Cria a disciplina se não existir e retorna seu id.

        Execuções concorrentes com o mesmo slug convergem para um único
        registro.
        """
        area = infer_area(slug)
        with self._get_session() as session:
            created = insert_ignore(
                session,
                Discipline,
                {"slug": slug, "name": name, "area": area, "color": area_color(area)},
                "slug",
            )
            session.commit()
            discipline_id = session.query(Discipline.id).filter(Discipline.slug == slug).scalar()

        if created:
            logger.info(f"Disciplina criada: {slug} ({name})")
        return discipline_id

    def discipline_slugs(self) -> dict[str, str]:
        """Snapshot {slug: id} das disciplinas existentes."""
        with self._get_session() as session:
            rows = session.query(Discipline.slug, Discipline.id).all()
        return {slug: discipline_id for slug, discipline_id in rows}

    def list_disciplines(self) -> list[Discipline]:
        with self._get_session() as session:
            return session.query(Discipline).order_by(Discipline.slug).all()

    # =========================================================================
    # Conteúdo
    # =========================================================================

    def exists(self, source_key: str) -> bool:
        """Verifica se o arquivo já foi indexado."""
        with self._get_session() as session:
            found = (
                session.query(IndexedContent.id)
                .filter(IndexedContent.source_key == source_key)
                .first()
            )
        return found is not None

    def insert_content(
        self,
        source_key: str,
        title: str,
        body: str,
        discipline_id: Optional[str] = None,
        embedding: Optional[str] = None,
        kind: ContentKind = ContentKind.RESUMO,
    ) -> bool:
        """
        Insere um material, ignorando se source_key já existir.

        Args:
            source_key: Caminho absoluto do arquivo de origem
            title: Título (nome do arquivo sem extensão)
            body: Texto limpo
            discipline_id: Disciplina associada
            embedding: Vetor literal "[v1,v2,...]"
            kind: Tipo do material

        Returns:
            True se inserido, False se outro processo já havia inserido
        """
        with self._get_session() as session:
            inserted = insert_ignore(
                session,
                IndexedContent,
                {
                    "source_key": source_key,
                    "title": title,
                    "body": body,
                    "discipline_id": discipline_id,
                    "embedding": embedding,
                    "kind": kind.value,
                },
                "source_key",
            )
            session.commit()
        return inserted

    def get_by_source_key(self, source_key: str) -> Optional[IndexedContent]:
        with self._get_session() as session:
            return (
                session.query(IndexedContent)
                .filter(IndexedContent.source_key == source_key)
                .first()
            )

    def list_by_discipline(self, slug: str, kind: Optional[ContentKind] = None) -> list[IndexedContent]:
        """Materiais de uma disciplina, na ordem de indexação."""
        with self._get_session() as session:
            query = (
                session.query(IndexedContent)
                .join(Discipline, Discipline.id == IndexedContent.discipline_id)
                .filter(Discipline.slug == slug)
            )
            if kind is not None:
                query = query.filter(IndexedContent.kind == kind.value)
            return query.order_by(IndexedContent.created_at, IndexedContent.title).all()

    def count(self) -> int:
        with self._get_session() as session:
            return session.query(func.count(IndexedContent.id)).scalar() or 0

    def count_by_discipline(self) -> list[dict]:
        """
        Quantidade de materiais por disciplina, em ordem decrescente.

        Returns:
            Lista de {"slug", "name", "total"}
        """
        with self._get_session() as session:
            total = func.count(IndexedContent.id)
            rows = (
                session.query(Discipline.slug, Discipline.name, total)
                .join(IndexedContent, IndexedContent.discipline_id == Discipline.id)
                .group_by(Discipline.slug, Discipline.name)
                .order_by(total.desc(), Discipline.slug)
                .all()
            )
        return [{"slug": slug, "name": name, "total": count} for slug, name, count in rows]

    # =========================================================================
    # Busca semântica
    # =========================================================================

    def search_similar(self, query_vector: str, limit: int = 10) -> list[SimilarContent]:
        """
        Vizinhos mais próximos do vetor de consulta.

        Args:
            query_vector: Vetor literal "[v1,v2,...]"
            limit: Máximo de resultados

        Returns:
            Resultados ordenados por similaridade decrescente (sem corte
            de limiar; o chamador filtra)
        """
        with self._get_session() as session:
            if self._engine.dialect.name == "postgresql":
                rows = session.execute(
                    _PG_SIMILARITY_SQL, {"q": query_vector, "limit": limit}
                ).mappings().all()
                return [
                    SimilarContent(
                        id=row["id"],
                        title=row["title"],
                        body=row["body"],
                        kind=row["kind"],
                        discipline_id=row["discipline_id"],
                        discipline_name=row["discipline_name"],
                        similarity=float(row["similarity"]),
                    )
                    for row in rows
                ]

            query = parse_vector_literal(query_vector)
            rows = (
                session.query(IndexedContent, Discipline.name)
                .outerjoin(Discipline, Discipline.id == IndexedContent.discipline_id)
                .filter(IndexedContent.embedding.isnot(None))
                .all()
            )

        scored = [
            SimilarContent(
                id=content.id,
                title=content.title,
                body=content.body,
                kind=content.kind,
                discipline_id=content.discipline_id,
                discipline_name=discipline_name,
                similarity=cosine_similarity(query, parse_vector_literal(content.embedding)),
            )
            for content, discipline_name in rows
        ]
        scored.sort(key=lambda item: item.similarity, reverse=True)
        return scored[:limit]
