"""
SQLite Repository - Forum storage with FTS5 search.

Features:
- Async operations via aiosqlite
- One FTS5 index per installed stemmer (Porter for English, plain
  unicode61 for everything else)
- Per-field relevance (title and body scored separately with bm25)
- Ordering and filters compiled to parameterized SQL
"""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import aiosqlite

from forumsearch.config.errors import QueryExecutionError, StorageError
from forumsearch.domains.forum import Archetype, Category, Topic, User
from forumsearch.domains.search.contracts import PostQuery
from forumsearch.domains.search.locale import FALLBACK_STEMMER
from forumsearch.domains.search.models import PostRecord, PostScope
from forumsearch.domains.search.ranking import OUTSIDE_TOPIC_POSITION, OrderClause, Signal

logger = logging.getLogger(__name__)

__all__ = ["STEMMER_TOKENIZERS", "SQLiteRepository"]

# FTS5 tokenizer per stemming language that SQLite can serve
STEMMER_TOKENIZERS: dict[str, str] = {
    "english": "porter unicode61 remove_diacritics 2",
    "simple": "unicode61 remove_diacritics 2",
}

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"

SCHEMA = """
    -- Members
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL UNIQUE,
        name TEXT,
        email TEXT,
        admin INTEGER NOT NULL DEFAULT 0,
        avatar_template TEXT,
        last_posted_at TIMESTAMP,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    -- Categories, optionally read-restricted
    CREATE TABLE IF NOT EXISTS categories (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        slug TEXT NOT NULL,
        color TEXT NOT NULL DEFAULT '0088CC',
        text_color TEXT NOT NULL DEFAULT 'FFFFFF',
        read_restricted INTEGER NOT NULL DEFAULT 0,
        topics_month INTEGER NOT NULL DEFAULT 0
    );

    -- Who may read which restricted category
    CREATE TABLE IF NOT EXISTS category_grants (
        category_id INTEGER NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        PRIMARY KEY (category_id, user_id)
    );

    CREATE TABLE IF NOT EXISTS topics (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        slug TEXT NOT NULL,
        category_id INTEGER REFERENCES categories(id),
        user_id INTEGER REFERENCES users(id),
        archetype TEXT NOT NULL DEFAULT 'regular',
        visible INTEGER NOT NULL DEFAULT 1,
        deleted_at TIMESTAMP,
        posts_count INTEGER NOT NULL DEFAULT 0,
        bumped_at TIMESTAMP,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS posts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        topic_id INTEGER NOT NULL REFERENCES topics(id),
        user_id INTEGER REFERENCES users(id),
        post_number INTEGER NOT NULL,
        raw TEXT NOT NULL DEFAULT '',
        deleted_at TIMESTAMP,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        UNIQUE(topic_id, post_number)
    );

    -- Indexes
    CREATE INDEX IF NOT EXISTS idx_topics_category ON topics(category_id);
    CREATE INDEX IF NOT EXISTS idx_topics_bumped_at ON topics(bumped_at);
    CREATE INDEX IF NOT EXISTS idx_posts_topic ON posts(topic_id);
    CREATE INDEX IF NOT EXISTS idx_posts_user ON posts(user_id);
"""

SEARCH_INDEX_SCHEMA = """
    CREATE VIRTUAL TABLE IF NOT EXISTS {table} USING fts5(
        title,
        raw,
        tokenize='{tokenizer}'
    );

    -- Triggers to keep FTS in sync
    CREATE TRIGGER IF NOT EXISTS {table}_post_ai AFTER INSERT ON posts BEGIN
        INSERT INTO {table}(rowid, title, raw)
        SELECT new.id, t.title, new.raw FROM topics t WHERE t.id = new.topic_id;
    END;

    CREATE TRIGGER IF NOT EXISTS {table}_post_ad AFTER DELETE ON posts BEGIN
        DELETE FROM {table} WHERE rowid = old.id;
    END;

    CREATE TRIGGER IF NOT EXISTS {table}_post_au AFTER UPDATE OF raw ON posts BEGIN
        UPDATE {table} SET raw = new.raw WHERE rowid = new.id;
    END;

    CREATE TRIGGER IF NOT EXISTS {table}_topic_au AFTER UPDATE OF title ON topics BEGIN
        UPDATE {table} SET title = new.title
        WHERE rowid IN (SELECT id FROM posts WHERE topic_id = new.id);
    END;
"""

# ORDER BY expressions per signal; "?" is bound to the clause's context id
_POST_ORDER: dict[Signal, str] = {
    Signal.AUTHOR_BAND: "CASE WHEN p.user_id = ? THEN 0 ELSE 1 END",
    Signal.CATEGORY_BAND: "CASE WHEN t.category_id = ? THEN 0 ELSE 1 END",
    Signal.TOPIC_BAND: "CASE WHEN p.topic_id = ? THEN 0 ELSE 1 END",
    Signal.TOPIC_POSITION: (
        f"CASE WHEN p.topic_id = ? THEN p.post_number ELSE {OUTSIDE_TOPIC_POSITION} END"
    ),
    Signal.TITLE_RANK: "title_rank",
    Signal.BODY_RANK: "body_rank",
    Signal.BUMPED_AT: "t.bumped_at",
    Signal.ID: "p.id",
}
_CATEGORY_ORDER: dict[Signal, str] = {
    Signal.TOPICS_MONTH: "c.topics_month",
    Signal.ID: "c.id",
}
_USER_ORDER: dict[Signal, str] = {
    Signal.LAST_POSTED_AT: "u.last_posted_at",
    Signal.ID: "u.id",
}
_NULLABLE_SIGNALS = {Signal.BUMPED_AT, Signal.LAST_POSTED_AT}


def _timestamp(value: datetime | None = None) -> str:
    """UTC timestamp text that sorts chronologically."""
    value = value or datetime.now(timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(_TIMESTAMP_FORMAT)


def _slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "topic"


def _like_pattern(term: str) -> str:
    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _placeholders(values: Iterable[Any]) -> tuple[str, list[Any]]:
    params = list(values)
    return ", ".join("?" for _ in params), params


def _compile_order(
    clauses: Sequence[OrderClause],
    expressions: dict[Signal, str],
) -> tuple[str, list[Any]]:
    """Turn order clauses into an ORDER BY body and its parameters."""
    terms: list[str] = []
    params: list[Any] = []
    for clause in clauses:
        expression = expressions.get(clause.signal)
        if expression is None:
            raise ValueError(f"Cannot order by {clause.signal.value} here")
        params.extend([clause.context_id] * expression.count("?"))
        if clause.signal in _NULLABLE_SIGNALS:
            terms.append(f"{expression} IS NULL")
        terms.append(f"{expression} {'DESC' if clause.descending else 'ASC'}")
    return ", ".join(terms), params


class SQLiteRepository:
    """
    SQLite repository for forum storage and search.

    Example:
        >>> repo = SQLiteRepository("data/forumsearch.db")
        >>> await repo.initialize()
        >>> topic_id = await repo.insert_topic("Door sensor fault")
        >>> await repo.insert_post(topic_id, "The door zone sensor keeps tripping")
    """

    def __init__(
        self,
        db_path: str | Path,
        stemmers: Sequence[str] = ("english", FALLBACK_STEMMER),
    ) -> None:
        """
        Initialize repository.

        Args:
            db_path: Path to SQLite database file
            stemmers: Stemming languages to build an FTS5 index for
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection: aiosqlite.Connection | None = None

        self.stemmers: list[str] = []
        for stemmer in [*stemmers, FALLBACK_STEMMER]:
            if stemmer not in STEMMER_TOKENIZERS:
                logger.warning("No FTS5 tokenizer for stemmer %r, skipping", stemmer)
            elif stemmer not in self.stemmers:
                self.stemmers.append(stemmer)

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = await aiosqlite.connect(str(self.db_path))
            self._connection.row_factory = aiosqlite.Row
            await self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    async def initialize(self) -> None:
        """Initialize database schema."""
        conn = await self._get_connection()

        await conn.executescript(SCHEMA)
        for stemmer in self.stemmers:
            await conn.executescript(
                SEARCH_INDEX_SCHEMA.format(
                    table=self._search_table(stemmer),
                    tokenizer=STEMMER_TOKENIZERS[stemmer],
                )
            )

        await conn.commit()
        logger.info("Database initialized: %s (stemmers: %s)", self.db_path, self.stemmers)

    def _search_table(self, stemmer: str) -> str:
        # Table names come from STEMMER_TOKENIZERS, never from user input
        if stemmer not in self.stemmers:
            stemmer = FALLBACK_STEMMER
        return f"post_search_{stemmer}"

    async def _fetch(self, sql: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        """Run a read query, reporting failures as QueryExecutionError."""
        conn = await self._get_connection()
        try:
            cursor = await conn.execute(sql, list(params))
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            logger.warning("Query failed: %s", e)
            raise QueryExecutionError(str(e), {"error": type(e).__name__}) from e
        return [dict(row) for row in rows]

    # --- Search ---

    async def search_users(
        self,
        term: str,
        limit: int,
        order: Sequence[OrderClause] = (),
    ) -> list[User]:
        """Users whose username, name or email contains ``term``."""
        order_sql, order_params = _compile_order(order or [OrderClause(signal=Signal.ID)], _USER_ORDER)
        pattern = _like_pattern(term)

        rows = await self._fetch(
            f"""
            SELECT u.* FROM users u
            WHERE LOWER(u.username) LIKE ? ESCAPE '\\'
               OR LOWER(COALESCE(u.name, '')) LIKE ? ESCAPE '\\'
               OR LOWER(COALESCE(u.email, '')) LIKE ? ESCAPE '\\'
            ORDER BY {order_sql}
            LIMIT ?
            """,
            [pattern, pattern, pattern, *order_params, limit],
        )
        return [User(**row) for row in rows]

    async def search_categories(
        self,
        term: str,
        limit: int,
        secure_category_ids: frozenset[int] = frozenset(),
        order: Sequence[OrderClause] = (),
    ) -> list[Category]:
        """Categories whose name contains ``term`` that the actor may read."""
        order_sql, order_params = _compile_order(
            order or [OrderClause(signal=Signal.ID)], _CATEGORY_ORDER
        )
        params: list[Any] = [_like_pattern(term)]

        if secure_category_ids:
            marks, ids = _placeholders(sorted(secure_category_ids))
            secured = f"(c.read_restricted = 0 OR c.id IN ({marks}))"
            params.extend(ids)
        else:
            secured = "c.read_restricted = 0"

        rows = await self._fetch(
            f"""
            SELECT c.* FROM categories c
            WHERE LOWER(c.name) LIKE ? ESCAPE '\\'
              AND {secured}
            ORDER BY {order_sql}
            LIMIT ?
            """,
            [*params, *order_params, limit],
        )
        return [Category(**row) for row in rows]

    async def search_posts(self, query: PostQuery) -> list[PostRecord]:
        """
        Full-text search over post bodies and topic titles.

        Args:
            query: Match expression, ordering, scope and visibility filters

        Returns:
            Matching posts with title and body relevance
        """
        if query.expression.is_empty or query.limit <= 0:
            return []

        table = self._search_table(query.expression.locale)
        order_sql, order_params = _compile_order(
            query.order or [OrderClause(signal=Signal.ID)], _POST_ORDER
        )

        where = [
            f"{table} MATCH ?",
            "p.deleted_at IS NULL",
            "t.deleted_at IS NULL",
            "t.visible = 1",
            "t.archetype <> ?",
        ]
        params: list[Any] = [query.expression.query, Archetype.PRIVATE_MESSAGE.value]

        if query.secure_category_ids:
            marks, ids = _placeholders(sorted(query.secure_category_ids))
            where.append(f"(c.id IS NULL OR c.read_restricted = 0 OR c.id IN ({marks}))")
            params.extend(ids)
        else:
            where.append("(c.id IS NULL OR c.read_restricted = 0)")

        if query.scope is PostScope.FIRST_POSTS:
            if query.include_topic_id is not None:
                where.append("(p.post_number = 1 OR p.topic_id = ?)")
                params.append(query.include_topic_id)
            else:
                where.append("p.post_number = 1")

        if query.exclude_topic_ids:
            marks, ids = _placeholders(sorted(query.exclude_topic_ids))
            where.append(f"p.topic_id NOT IN ({marks})")
            params.extend(ids)
        where_sql = " AND ".join(where)

        rows = await self._fetch(
            f"""
            SELECT p.id, p.topic_id, p.post_number, p.user_id, p.raw,
                   u.username,
                   t.title AS topic_title, t.slug AS topic_slug,
                   t.category_id, t.bumped_at,
                   -bm25({table}, 1.0, 0.0) AS title_rank,
                   -bm25({table}, 0.0, 1.0) AS body_rank
            FROM {table}
            JOIN posts p ON p.id = {table}.rowid
            JOIN topics t ON t.id = p.topic_id
            LEFT JOIN categories c ON c.id = t.category_id
            LEFT JOIN users u ON u.id = p.user_id
            WHERE {where_sql}
            ORDER BY {order_sql}
            LIMIT ?
            """,
            [*params, *order_params, query.limit],
        )
        return [PostRecord(**row) for row in rows]

    # --- Lookups ---

    async def get_topic(self, topic_id: int) -> Topic | None:
        """Get topic by ID, with its category."""
        rows = await self._fetch(
            """
            SELECT t.*,
                   c.name AS c_name, c.slug AS c_slug, c.color AS c_color,
                   c.text_color AS c_text_color, c.read_restricted AS c_read_restricted,
                   c.topics_month AS c_topics_month
            FROM topics t
            LEFT JOIN categories c ON c.id = t.category_id
            WHERE t.id = ?
            """,
            [topic_id],
        )
        if not rows:
            return None

        row = rows[0]
        category_fields = {
            key[2:]: row.pop(key) for key in list(row) if key.startswith("c_")
        }
        category = None
        if row["category_id"] is not None and category_fields["name"] is not None:
            category = Category(id=row["category_id"], **category_fields)
        return Topic(**row, category=category)

    async def get_category(self, category_id: int) -> Category | None:
        rows = await self._fetch("SELECT * FROM categories WHERE id = ?", [category_id])
        return Category(**rows[0]) if rows else None

    async def get_user(self, user_id: int) -> User | None:
        rows = await self._fetch("SELECT * FROM users WHERE id = ?", [user_id])
        return User(**rows[0]) if rows else None

    async def get_secure_category_ids(self, user: User) -> frozenset[int]:
        """Restricted categories the user may read. Admins read them all."""
        if user.admin:
            rows = await self._fetch(
                "SELECT id FROM categories WHERE read_restricted = 1", []
            )
        else:
            rows = await self._fetch(
                """
                SELECT g.category_id AS id FROM category_grants g
                JOIN categories c ON c.id = g.category_id
                WHERE g.user_id = ? AND c.read_restricted = 1
                """,
                [user.id],
            )
        return frozenset(row["id"] for row in rows)

    async def get_counts(self) -> dict[str, int]:
        """Row counts per table."""
        counts = {}
        for table in ("users", "categories", "topics", "posts"):
            rows = await self._fetch(f"SELECT COUNT(*) AS n FROM {table}", [])
            counts[table] = rows[0]["n"]
        return counts

    # --- Writes ---

    @asynccontextmanager
    async def _transaction(self, action: str) -> AsyncIterator[aiosqlite.Connection]:
        """Commit the writes made inside the block, or roll back and raise StorageError."""
        conn = await self._get_connection()
        try:
            yield conn
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            logger.error("%s failed: %s", action, e)
            raise StorageError(
                f"{action} failed", {"error": type(e).__name__, "reason": str(e)}
            ) from e

    async def insert_user(
        self,
        username: str,
        name: str | None = None,
        email: str | None = None,
        admin: bool = False,
        avatar_template: str | None = None,
    ) -> int:
        """
        Insert a user.

        Returns:
            User ID

        Raises:
            StorageError: If the username is taken or the write fails
        """
        async with self._transaction("Insert user") as conn:
            cursor = await conn.execute(
                """
                INSERT INTO users (username, name, email, admin, avatar_template)
                VALUES (?, ?, ?, ?, ?)
                """,
                (username, name, email, int(admin), avatar_template),
            )
        return cursor.lastrowid

    async def insert_category(
        self,
        name: str,
        slug: str | None = None,
        read_restricted: bool = False,
        color: str = "0088CC",
        text_color: str = "FFFFFF",
        topics_month: int = 0,
    ) -> int:
        """Insert a category."""
        async with self._transaction("Insert category") as conn:
            cursor = await conn.execute(
                """
                INSERT INTO categories (name, slug, color, text_color, read_restricted, topics_month)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (name, slug or _slugify(name), color, text_color, int(read_restricted), topics_month),
            )
        return cursor.lastrowid

    async def grant_category(self, category_id: int, user_id: int) -> None:
        """Let a user read a restricted category."""
        async with self._transaction("Grant category") as conn:
            await conn.execute(
                "INSERT OR IGNORE INTO category_grants (category_id, user_id) VALUES (?, ?)",
                (category_id, user_id),
            )

    async def insert_topic(
        self,
        title: str,
        category_id: int | None = None,
        user_id: int | None = None,
        slug: str | None = None,
        archetype: Archetype = Archetype.REGULAR,
        visible: bool = True,
        created_at: datetime | None = None,
    ) -> int:
        """Insert a topic without posts."""
        created = _timestamp(created_at)

        async with self._transaction("Insert topic") as conn:
            cursor = await conn.execute(
                """
                INSERT INTO topics (title, slug, category_id, user_id, archetype, visible, bumped_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    title,
                    slug or _slugify(title),
                    category_id,
                    user_id,
                    archetype.value,
                    int(visible),
                    created,
                    created,
                ),
            )
        return cursor.lastrowid

    async def insert_post(
        self,
        topic_id: int,
        raw: str,
        user_id: int | None = None,
        created_at: datetime | None = None,
    ) -> int:
        """
        Append a post to a topic.

        Bumps the topic and the author's last-posted time.

        Returns:
            Post ID

        Raises:
            StorageError: If the topic or user does not exist
        """
        created = _timestamp(created_at)

        async with self._transaction("Insert post") as conn:
            cursor = await conn.execute(
                "SELECT COALESCE(MAX(post_number), 0) + 1 FROM posts WHERE topic_id = ?",
                (topic_id,),
            )
            row = await cursor.fetchone()
            post_number = row[0] if row else 1

            cursor = await conn.execute(
                """
                INSERT INTO posts (topic_id, user_id, post_number, raw, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (topic_id, user_id, post_number, raw, created),
            )
            post_id = cursor.lastrowid

            await conn.execute(
                "UPDATE topics SET posts_count = posts_count + 1, bumped_at = ? WHERE id = ?",
                (created, topic_id),
            )
            if user_id is not None:
                await conn.execute(
                    "UPDATE users SET last_posted_at = ? WHERE id = ?",
                    (created, user_id),
                )
        return post_id

    async def delete_topic(self, topic_id: int, deleted_at: datetime | None = None) -> None:
        """Soft-delete a topic."""
        async with self._transaction("Delete topic") as conn:
            await conn.execute(
                "UPDATE topics SET deleted_at = ? WHERE id = ?",
                (_timestamp(deleted_at), topic_id),
            )

    async def refresh_category_stats(self, now: datetime | None = None) -> None:
        """Recompute topics created per category over the last 30 days."""
        since = _timestamp((now or datetime.now(timezone.utc)) - timedelta(days=30))
        async with self._transaction("Refresh category stats") as conn:
            await conn.execute(
                """
                UPDATE categories SET topics_month = (
                    SELECT COUNT(*) FROM topics t
                    WHERE t.category_id = categories.id
                      AND t.deleted_at IS NULL
                      AND t.archetype = ?
                      AND t.created_at >= ?
                )
                """,
                (Archetype.REGULAR.value, since),
            )

    async def reindex(self) -> None:
        """Rebuild every FTS5 index from posts and topic titles."""
        async with self._transaction("Reindex") as conn:
            for stemmer in self.stemmers:
                table = self._search_table(stemmer)
                await conn.execute(f"DELETE FROM {table}")
                await conn.execute(
                    f"""
                    INSERT INTO {table}(rowid, title, raw)
                    SELECT p.id, t.title, p.raw FROM posts p JOIN topics t ON t.id = p.topic_id
                    """
                )
        logger.info("Rebuilt search indexes: %s", self.stemmers)

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
