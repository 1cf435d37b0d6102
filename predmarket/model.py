"""Market data types and the SQLite-backed store that persists them."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from urllib.parse import quote, quote_plus

DB_HOST = "localhost"
DB_PORT = 5432
DB_NAME = "betting"
LOG_LIMIT = 100

_USERINFO_SAFE = "!$%&'()*+,-.~_"
_FORM_SAFE = "*"
_TILDE = "~"
_TILDE_ESCAPED = "%7E"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    money REAL NOT NULL
);
CREATE TABLE IF NOT EXISTS bets (
    id TEXT PRIMARY KEY,
    creator_id TEXT NOT NULL,
    created_seconds_since_epoch INTEGER NOT NULL,
    name TEXT NOT NULL,
    closed INTEGER NOT NULL,
    yes_pool REAL NOT NULL,
    no_pool REAL NOT NULL
);
CREATE TABLE IF NOT EXISTS user_bets (
    user_id TEXT NOT NULL,
    bet_id TEXT NOT NULL REFERENCES bets(id) ON DELETE CASCADE,
    is_yes INTEGER NOT NULL,
    amount INTEGER NOT NULL CHECK (amount >= 0),
    spent REAL NOT NULL,
    PRIMARY KEY (user_id, bet_id, is_yes)
);
CREATE TABLE IF NOT EXISTS logs (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at REAL NOT NULL,
    content TEXT NOT NULL
);
"""


class YesOrNo(Enum):
    """Side of a market a share is bought on."""

    YES = "Yes"
    NO = "No"

    def __str__(self) -> str:
        return "yes" if self is YesOrNo.YES else "no"

    def is_yes(self) -> bool:
        return self is YesOrNo.YES


class YesOrNoOrNA(Enum):
    """Outcome a market is resolved with."""

    YES = "Yes"
    NO = "No"
    NA = "NA"

    def __str__(self) -> str:
        return {YesOrNoOrNA.YES: "yes", YesOrNoOrNA.NO: "no", YesOrNoOrNA.NA: "N/A"}[self]


@dataclass
class User:
    id: str
    name: str
    money: float


@dataclass
class UserBet:
    user_id: str
    bet_id: str
    is_yes: bool
    amount: int
    spent: float


@dataclass
class Bet:
    id: str
    creator_id: str
    created_seconds_since_epoch: int
    name: str
    closed: bool
    yes_pool: float
    no_pool: float


@dataclass
class LogMessage:
    created_at: datetime
    content: str


def connection_url(username: str, password: str) -> str:
    """Build the database connection URL, form-encoding the password."""
    form_encoded = quote_plus(password, safe=_FORM_SAFE).replace(_TILDE, _TILDE_ESCAPED)
    userinfo_value = quote(form_encoded, safe=_USERINFO_SAFE)
    encoded_username = quote(username, safe=_USERINFO_SAFE)
    return f"postgres://{encoded_username}:{userinfo_value}@{DB_HOST}:{DB_PORT}/{DB_NAME}"


def _user_bet(row: sqlite3.Row) -> UserBet:
    return UserBet(
        user_id=row["user_id"],
        bet_id=row["bet_id"],
        is_yes=bool(row["is_yes"]),
        amount=int(row["amount"]),
        spent=float(row["spent"]),
    )


def _bet(row: sqlite3.Row) -> Bet:
    return Bet(
        id=row["id"],
        creator_id=row["creator_id"],
        created_seconds_since_epoch=int(row["created_seconds_since_epoch"]),
        name=row["name"],
        closed=bool(row["closed"]),
        yes_pool=float(row["yes_pool"]),
        no_pool=float(row["no_pool"]),
    )


def _user(row: sqlite3.Row) -> User:
    return User(id=row["id"], name=row["name"], money=float(row["money"]))


class Store:
    """Persistent storage for users, bets, positions and the activity log."""

    def __init__(self, path: str = ":memory:") -> None:
        self._conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._conn.executescript(_SCHEMA)
        self._in_transaction = False

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator["Store"]:
        """Run the enclosed operations atomically; roll back on error."""
        if self._in_transaction:
            yield self
            return
        self._conn.execute("BEGIN IMMEDIATE")
        self._in_transaction = True
        try:
            yield self
        except BaseException:
            self._conn.execute("ROLLBACK")
            raise
        else:
            self._conn.execute("COMMIT")
        finally:
            self._in_transaction = False

    def close(self) -> None:
        self._conn.close()

    # Users

    def insert_user(self, user: User) -> None:
        self._conn.execute(
            "INSERT INTO users (id, name, money) VALUES (?, ?, ?)",
            (user.id, user.name, user.money),
        )

    def list_users(self) -> list[User]:
        rows = self._conn.execute("SELECT * FROM users ORDER BY rowid")
        return [_user(row) for row in rows]

    def get_user(self, user_id: str) -> Optional[User]:
        row = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return _user(row) if row else None

    def add_money(self, user_id: str, amount: float) -> None:
        self._conn.execute("UPDATE users SET money = money + ? WHERE id = ?", (amount, user_id))

    # Positions

    def list_user_bets(self) -> list[UserBet]:
        rows = self._conn.execute("SELECT * FROM user_bets ORDER BY rowid")
        return [_user_bet(row) for row in rows]

    def get_user_bet(self, user_id: str, bet_id: str, is_yes: bool) -> Optional[UserBet]:
        row = self._conn.execute(
            "SELECT * FROM user_bets WHERE user_id = ? AND bet_id = ? AND is_yes = ?",
            (user_id, bet_id, int(is_yes)),
        ).fetchone()
        return _user_bet(row) if row else None

    def insert_user_bet(self, user_bet: UserBet) -> None:
        self._conn.execute(
            "INSERT INTO user_bets (user_id, bet_id, is_yes, amount, spent) VALUES (?, ?, ?, ?, ?)",
            (user_bet.user_id, user_bet.bet_id, int(user_bet.is_yes), user_bet.amount, user_bet.spent),
        )

    def upsert_user_bet(self, user_bet: UserBet) -> None:
        self._conn.execute(
            "INSERT INTO user_bets (user_id, bet_id, is_yes, amount, spent) VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT (user_id, bet_id, is_yes) DO UPDATE SET amount = excluded.amount, "
            "spent = excluded.spent",
            (user_bet.user_id, user_bet.bet_id, int(user_bet.is_yes), user_bet.amount, user_bet.spent),
        )

    def user_bets_for_bet(self, bet_id: str) -> list[UserBet]:
        rows = self._conn.execute(
            "SELECT * FROM user_bets WHERE bet_id = ? ORDER BY rowid", (bet_id,)
        )
        return [_user_bet(row) for row in rows]

    # Bets

    def list_bets(self) -> list[Bet]:
        rows = self._conn.execute("SELECT * FROM bets ORDER BY rowid")
        return [_bet(row) for row in rows]

    def get_bet(self, bet_id: str) -> Optional[Bet]:
        row = self._conn.execute("SELECT * FROM bets WHERE id = ?", (bet_id,)).fetchone()
        return _bet(row) if row else None

    def insert_bet(self, bet: Bet) -> None:
        self._conn.execute(
            "INSERT INTO bets (id, creator_id, created_seconds_since_epoch, name, closed, "
            "yes_pool, no_pool) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                bet.id,
                bet.creator_id,
                bet.created_seconds_since_epoch,
                bet.name,
                int(bet.closed),
                bet.yes_pool,
                bet.no_pool,
            ),
        )

    def delete_bet(self, bet_id: str) -> None:
        self._conn.execute("DELETE FROM bets WHERE id = ?", (bet_id,))

    def close_bet(self, bet_id: str) -> None:
        self._conn.execute("UPDATE bets SET closed = 1 WHERE id = ?", (bet_id,))

    def update_pools(self, bet_id: str, yes_pool: float, no_pool: float) -> None:
        self._conn.execute(
            "UPDATE bets SET yes_pool = ?, no_pool = ? WHERE id = ?", (yes_pool, no_pool, bet_id)
        )

    # Activity log

    def list_logs(self) -> list[LogMessage]:
        """Return the most recent log messages, newest first."""
        rows = self._conn.execute(
            "SELECT created_at, content FROM logs ORDER BY created_at DESC, seq DESC LIMIT ?",
            (LOG_LIMIT,),
        )
        return [
            LogMessage(
                created_at=datetime.fromtimestamp(row["created_at"], timezone.utc),
                content=row["content"],
            )
            for row in rows
        ]

    def insert_log(self, content: str) -> None:
        now = datetime.now(timezone.utc).timestamp()
        self._conn.execute("INSERT INTO logs (created_at, content) VALUES (?, ?)", (now, content))