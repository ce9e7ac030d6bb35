"""Document persistence backends."""

import asyncio
import logging
import sqlite3
from datetime import datetime
from typing import Optional

from docqa.exceptions import PersistenceError

from .base import BaseDocumentStore
from .document import Chunk, Document, DocumentSummary

logger = logging.getLogger(__name__)


class SQLiteDocumentStore(BaseDocumentStore):
    """SQLite-based document storage.

    Documents and their chunks live in two tables; a document is saved in
    a single transaction so a failed save leaves no partial chunks behind.
    """

    def __init__(self, db_path: str = "docqa.db"):
        """Initialize SQLite store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._initialized = False

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _ensure_tables(self, conn: sqlite3.Connection) -> None:
        """Ensure the documents and chunks tables exist."""
        if self._initialized:
            return
        conn.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                file_name TEXT NOT NULL,
                uploaded_at TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS document_chunks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                document_id INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
                position INTEGER NOT NULL,
                content TEXT NOT NULL,
                embedding_json TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_chunks_document
            ON document_chunks(document_id, position)
        """)
        conn.commit()
        self._initialized = True

    async def _run(self, func, *args):
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(None, func, *args)
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e

    @staticmethod
    def _row_to_chunk(row: sqlite3.Row) -> Chunk:
        return Chunk(
            id=row["id"],
            document_id=row["document_id"],
            position=row["position"],
            content=row["content"],
            embedding_json=row["embedding_json"],
        )

    @staticmethod
    def _row_to_document(row: sqlite3.Row, chunks: list[Chunk]) -> Document:
        return Document(
            id=row["id"],
            file_name=row["file_name"],
            uploaded_at=datetime.fromisoformat(row["uploaded_at"]),
            chunks=chunks,
        )

    async def save(self, document: Document) -> int:
        """Save a document with all of its chunks."""
        document_id, chunk_ids = await self._run(self._save_sync, document)
        document.id = document_id
        for chunk, chunk_id in zip(document.chunks, chunk_ids):
            chunk.id = chunk_id
            chunk.document_id = document_id
        logger.debug(f"Saved document {document_id} ({len(chunk_ids)} chunks)")
        return document_id

    def _save_sync(self, document: Document) -> tuple[int, list[int]]:
        """Synchronous save implementation."""
        conn = self._get_connection()
        try:
            self._ensure_tables(conn)
            with conn:
                cursor = conn.execute(
                    "INSERT INTO documents (file_name, uploaded_at) VALUES (?, ?)",
                    (document.file_name, document.uploaded_at.isoformat()),
                )
                document_id = cursor.lastrowid
                chunk_ids = []
                for chunk in document.chunks:
                    cursor = conn.execute(
                        """
                        INSERT INTO document_chunks
                        (document_id, position, content, embedding_json)
                        VALUES (?, ?, ?, ?)
                        """,
                        (document_id, chunk.position, chunk.content, chunk.embedding_json),
                    )
                    chunk_ids.append(cursor.lastrowid)
            return document_id, chunk_ids
        finally:
            conn.close()

    async def load(self, document_id: int) -> Optional[Document]:
        """Load a document by ID."""
        return await self._run(self._load_sync, document_id)

    def _load_sync(self, document_id: int) -> Optional[Document]:
        """Synchronous load implementation."""
        conn = self._get_connection()
        try:
            self._ensure_tables(conn)
            row = conn.execute(
                "SELECT * FROM documents WHERE id = ?",
                (document_id,),
            ).fetchone()
            if row is None:
                return None
            chunk_rows = conn.execute(
                "SELECT * FROM document_chunks WHERE document_id = ? ORDER BY position, id",
                (document_id,),
            ).fetchall()
            return self._row_to_document(row, [self._row_to_chunk(r) for r in chunk_rows])
        finally:
            conn.close()

    async def load_all(self) -> list[Document]:
        """Load every document with its chunks."""
        return await self._run(self._load_all_sync)

    def _load_all_sync(self) -> list[Document]:
        """Synchronous full load implementation."""
        conn = self._get_connection()
        try:
            self._ensure_tables(conn)
            document_rows = conn.execute("SELECT * FROM documents ORDER BY id").fetchall()
            chunk_rows = conn.execute(
                "SELECT * FROM document_chunks ORDER BY document_id, position, id"
            ).fetchall()
            chunks_by_document: dict[int, list[Chunk]] = {}
            for row in chunk_rows:
                chunks_by_document.setdefault(row["document_id"], []).append(self._row_to_chunk(row))
            return [
                self._row_to_document(row, chunks_by_document.get(row["id"], []))
                for row in document_rows
            ]
        finally:
            conn.close()

    async def delete(self, document_id: int) -> bool:
        """Delete a document and its chunks."""
        return await self._run(self._delete_sync, document_id)

    def _delete_sync(self, document_id: int) -> bool:
        """Synchronous delete implementation."""
        conn = self._get_connection()
        try:
            self._ensure_tables(conn)
            with conn:
                conn.execute("DELETE FROM document_chunks WHERE document_id = ?", (document_id,))
                cursor = conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            return cursor.rowcount > 0
        finally:
            conn.close()

    async def list_summaries(self) -> list[DocumentSummary]:
        """List stored documents, newest first."""
        return await self._run(self._list_summaries_sync)

    def _list_summaries_sync(self) -> list[DocumentSummary]:
        """Synchronous list implementation."""
        conn = self._get_connection()
        try:
            self._ensure_tables(conn)
            rows = conn.execute(
                "SELECT id, file_name, uploaded_at FROM documents ORDER BY uploaded_at DESC, id DESC"
            ).fetchall()
            return [
                DocumentSummary(
                    id=row["id"],
                    file_name=row["file_name"],
                    uploaded_at=datetime.fromisoformat(row["uploaded_at"]),
                )
                for row in rows
            ]
        finally:
            conn.close()


class MemoryDocumentStore(BaseDocumentStore):
    """In-memory document storage for testing."""

    def __init__(self):
        """Initialize memory store."""
        self._documents: dict[int, Document] = {}
        self._next_document_id = 0
        self._next_chunk_id = 0

    async def save(self, document: Document) -> int:
        """Save a document."""
        self._next_document_id += 1
        document.id = self._next_document_id
        for chunk in document.chunks:
            self._next_chunk_id += 1
            chunk.id = self._next_chunk_id
            chunk.document_id = document.id
        self._documents[document.id] = document.model_copy(deep=True)
        return document.id

    async def load(self, document_id: int) -> Optional[Document]:
        """Load a document by ID."""
        document = self._documents.get(document_id)
        return document.model_copy(deep=True) if document else None

    async def load_all(self) -> list[Document]:
        """Load every document."""
        return [document.model_copy(deep=True) for document in self._documents.values()]

    async def delete(self, document_id: int) -> bool:
        """Delete a document."""
        return self._documents.pop(document_id, None) is not None

    async def list_summaries(self) -> list[DocumentSummary]:
        """List stored documents, newest first."""
        documents = sorted(self._documents.values(), key=lambda d: (d.uploaded_at, d.id), reverse=True)
        return [document.summary() for document in documents]
