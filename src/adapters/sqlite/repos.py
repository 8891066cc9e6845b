import json
import sqlite3
from datetime import datetime
from typing import Any

from src.domain.entities import (
    HistoryEntry,
    Member,
    PendingPost,
    ProfileField,
    SecurityAnswer,
    ValidationRequest,
)


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


class _SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn


class SQLiteMemberRepo(_SQLiteRepo):
    """Two-phase member storage: reserve_identity inserts, finalize updates."""

    def reserve_identity(self, member: Member) -> Member:
        if member.id is not None:
            return self.finalize(member)

        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                INSERT INTO members (
                    name, email, password_hash, group_id, allow_admin_mails,
                    last_visit, language, timezone, joined_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                self._row_values(member),
            )
            member.id = cur.lastrowid
            self._write_bits(conn, member)
            conn.commit()
            return member
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def finalize(self, member: Member) -> Member:
        if member.id is None:
            return self.reserve_identity(member)

        conn = self._get_conn()
        try:
            conn.execute(
                """
                UPDATE members SET
                    name = ?, email = ?, password_hash = ?, group_id = ?,
                    allow_admin_mails = ?, last_visit = ?, language = ?,
                    timezone = ?, joined_at = ?
                WHERE id = ?
            """,
                (*self._row_values(member), member.id),
            )
            self._write_bits(conn, member)
            conn.commit()
            return member
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_by_id(self, member_id: int) -> Member | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM members WHERE id = ?", (member_id,)).fetchone()
            if not row:
                return None
            return self._map_row(conn, row)
        finally:
            conn.close()

    def get_by_email(self, email: str) -> Member | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM members WHERE email = ?", (email,)).fetchone()
            if not row:
                return None
            return self._map_row(conn, row)
        finally:
            conn.close()

    def count(self) -> int:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT COUNT(*) AS n FROM members").fetchone()
            return int(row["n"])
        finally:
            conn.close()

    def _row_values(self, member: Member) -> tuple[Any, ...]:
        return (
            member.name,
            member.email,
            member.password_hash,
            member.group_id,
            1 if member.allow_admin_mails else 0,
            member.last_visit.isoformat() if member.last_visit else None,
            member.language,
            member.timezone,
            member.joined_at.isoformat(),
        )

    def _write_bits(self, conn: sqlite3.Connection, member: Member) -> None:
        conn.execute("DELETE FROM member_bitoptions WHERE member_id = ?", (member.id,))
        conn.executemany(
            "INSERT INTO member_bitoptions (member_id, name) VALUES (?, ?)",
            [(member.id, name) for name in sorted(member.bitoptions)],
        )

    def _map_row(self, conn: sqlite3.Connection, row: dict[str, Any]) -> Member:
        bit_rows = conn.execute(
            "SELECT name FROM member_bitoptions WHERE member_id = ?", (row["id"],)
        ).fetchall()

        return Member(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            group_id=row["group_id"],
            bitoptions={r["name"] for r in bit_rows},
            allow_admin_mails=bool(row["allow_admin_mails"]),
            last_visit=parse_dt(row["last_visit"]),
            language=row["language"],
            timezone=row["timezone"],
            joined_at=parse_dt(row["joined_at"]) or datetime.min,
        )


class SQLiteSecurityAnswerRepo(_SQLiteRepo):
    def insert_many(self, answers: list[SecurityAnswer]) -> None:
        conn = self._get_conn()
        try:
            conn.executemany(
                "INSERT OR REPLACE INTO security_answers (question_id, member_id, answer) "
                "VALUES (?, ?, ?)",
                [(a.question_id, a.member_id, a.answer) for a in answers],
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def list_for_member(self, member_id: int) -> list[SecurityAnswer]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM security_answers WHERE member_id = ? ORDER BY question_id",
                (member_id,),
            ).fetchall()
            return [SecurityAnswer(**row) for row in rows]
        finally:
            conn.close()


class SQLiteProfileFieldRepo(_SQLiteRepo):
    def save_field(self, field: ProfileField) -> ProfileField:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO profile_fields (id, title, type, required) VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    type=excluded.type,
                    required=excluded.required
            """,
                (field.id, field.title, field.type, 1 if field.required else 0),
            )
            conn.commit()
            return field
        finally:
            conn.close()

    def get_field(self, field_id: int) -> ProfileField | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM profile_fields WHERE id = ?", (field_id,)
            ).fetchone()
            if not row:
                return None
            return ProfileField(
                id=row["id"], title=row["title"], type=row["type"], required=bool(row["required"])
            )
        finally:
            conn.close()

    def upsert_content(self, member_id: int, values: dict[str, Any]) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO profile_fields_content (member_id, values_json) VALUES (?, ?)
                ON CONFLICT(member_id) DO UPDATE SET values_json=excluded.values_json
            """,
                (member_id, json.dumps(values, default=str)),
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_content(self, member_id: int) -> dict[str, Any] | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT values_json FROM profile_fields_content WHERE member_id = ?",
                (member_id,),
            ).fetchone()
            return json.loads(row["values_json"]) if row else None
        finally:
            conn.close()


class SQLiteAttachmentRepo(_SQLiteRepo):
    def add_temporary(self, filename: str, temp_key: str) -> int:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "INSERT INTO attachments (filename, temp_key) VALUES (?, ?)", (filename, temp_key)
            )
            conn.commit()
            return int(cur.lastrowid or 0)
        finally:
            conn.close()

    def claim(self, temp_key: str, member_id: int) -> int:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE attachments SET member_id = ?, temp_key = NULL WHERE temp_key = ?",
                (member_id, temp_key),
            )
            conn.commit()
            return cur.rowcount
        finally:
            conn.close()

    def list_for_member(self, member_id: int) -> list[str]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT filename FROM attachments WHERE member_id = ? ORDER BY id", (member_id,)
            ).fetchall()
            return [r["filename"] for r in rows]
        finally:
            conn.close()


class SQLiteHistoryRepo(_SQLiteRepo):
    """Append-only: there is no update or delete."""

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "INSERT INTO member_history (member_id, app, log_type, data_json, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    entry.member_id,
                    entry.app,
                    entry.log_type,
                    json.dumps(entry.data),
                    entry.created_at.isoformat(),
                ),
            )
            conn.commit()
            return entry.model_copy(update={"id": cur.lastrowid})
        finally:
            conn.close()

    def list_for_member(self, member_id: int) -> list[HistoryEntry]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM member_history WHERE member_id = ? ORDER BY id", (member_id,)
            ).fetchall()
            return [
                HistoryEntry(
                    id=row["id"],
                    member_id=row["member_id"],
                    app=row["app"],
                    log_type=row["log_type"],
                    data=json.loads(row["data_json"]),
                    created_at=parse_dt(row["created_at"]) or datetime.min,
                )
                for row in rows
            ]
        finally:
            conn.close()


class SQLitePendingPostRepo(_SQLiteRepo):
    def create(self, email: str, content: str, created_at: datetime) -> PendingPost:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "INSERT INTO pending_posts (email, content, created_at) VALUES (?, ?, ?)",
                (email, content, created_at.isoformat()),
            )
            conn.commit()
            return PendingPost(
                id=int(cur.lastrowid or 0), email=email, content=content, created_at=created_at
            )
        finally:
            conn.close()

    def get_by_id(self, post_id: int) -> PendingPost | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM pending_posts WHERE id = ?", (post_id,)).fetchone()
            if not row:
                return None
            return PendingPost(
                id=row["id"],
                email=row["email"],
                content=row["content"],
                member_id=row["member_id"],
                created_at=parse_dt(row["created_at"]) or datetime.min,
            )
        finally:
            conn.close()

    def assign_member(self, post_id: int, member_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE pending_posts SET member_id = ? WHERE id = ?", (member_id, post_id)
            )
            conn.commit()
        finally:
            conn.close()


class SQLiteValidationRepo(_SQLiteRepo):
    def save(self, request: ValidationRequest) -> ValidationRequest:
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT INTO validating (member_id, vid, user_verified, created_at) "
                "VALUES (?, ?, ?, ?)",
                (
                    request.member_id,
                    request.vid,
                    1 if request.user_verified else 0,
                    request.created_at.isoformat(),
                ),
            )
            conn.commit()
            return request
        finally:
            conn.close()

    def get_by_member(self, member_id: int) -> ValidationRequest | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM validating WHERE member_id = ?", (member_id,)
            ).fetchone()
            if not row:
                return None
            return ValidationRequest(
                member_id=row["member_id"],
                vid=row["vid"],
                user_verified=bool(row["user_verified"]),
                created_at=parse_dt(row["created_at"]) or datetime.min,
            )
        finally:
            conn.close()
