"""History store for saving, retrieving, listing and deleting explanations."""

from __future__ import annotations

import logging

import aiosqlite

from xc.schemas.explanation import Explanation

logger = logging.getLogger(__name__)

_MIN_PREFIX = 4


class HistoryStore:
    """Persistent explanation history backed by SQLite.

    Only completed explanations are saved; the session layer never
    writes a partially streamed entry here.
    """

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def save(self, entry: Explanation) -> None:
        """Insert or replace a completed explanation."""
        await self._db.execute(
            """
            INSERT OR REPLACE INTO explanations
                (id, code, language, title, explanation, timestamp)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                entry.id,
                entry.code,
                entry.language,
                entry.title,
                entry.explanation,
                entry.timestamp,
            ),
        )
        await self._db.commit()
        logger.info("Saved explanation %s", entry.id)

    async def get(self, entry_id: str) -> Explanation | None:
        """Retrieve an explanation by id or unique id prefix.

        Tries an exact match first, then a prefix match for inputs of at
        least four characters. Ambiguous prefixes return None.
        """
        full_id = await self.resolve_id(entry_id)
        if not full_id:
            return None
        async with self._db.execute(
            "SELECT * FROM explanations WHERE id = ?", (full_id,),
        ) as cursor:
            row = await cursor.fetchone()
        return _row_to_entry(row) if row else None

    async def list_explanations(
        self,
        *,
        limit: int = 20,
        offset: int = 0,
        language: str | None = None,
    ) -> list[Explanation]:
        """List explanations, newest first."""
        conditions: list[str] = []
        params: list[object] = []
        if language:
            conditions.append("language = ?")
            params.append(language)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        sql = f"""
            SELECT * FROM explanations
            {where}
            ORDER BY timestamp DESC
            LIMIT ? OFFSET ?
        """  # noqa: S608
        params.extend([limit, offset])

        entries: list[Explanation] = []
        async with self._db.execute(sql, params) as cursor:
            async for row in cursor:
                entries.append(_row_to_entry(row))
        return entries

    async def resolve_id(self, prefix: str) -> str | None:
        """Resolve an id prefix to a full id, or None if missing/ambiguous."""
        async with self._db.execute(
            "SELECT id FROM explanations WHERE id = ?", (prefix,),
        ) as cursor:
            row = await cursor.fetchone()
        if row:
            return row["id"]
        if len(prefix) >= _MIN_PREFIX:
            async with self._db.execute(
                "SELECT id FROM explanations WHERE substr(id, 1, ?) = ? LIMIT 2",
                (len(prefix), prefix),
            ) as cursor:
                rows = await cursor.fetchall()
            if len(rows) == 1:
                return rows[0]["id"]
        return None

    async def delete(self, entry_id: str) -> bool:
        """Delete an explanation by id or unique prefix."""
        full_id = await self.resolve_id(entry_id)
        if not full_id:
            return False
        cursor = await self._db.execute(
            "DELETE FROM explanations WHERE id = ?", (full_id,),
        )
        await self._db.commit()
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Deleted explanation %s", full_id)
        return deleted


def _row_to_entry(row: aiosqlite.Row) -> Explanation:
    return Explanation(
        id=row["id"],
        code=row["code"],
        language=row["language"],
        title=row["title"],
        explanation=row["explanation"],
        timestamp=row["timestamp"],
        complete=True,
    )
