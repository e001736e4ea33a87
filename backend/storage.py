import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

PathLike = Union[str, Path]

_COLUMNS = {
    "organizationName": "organization_name",
    "epfAmount": "epf_amount",
    "creditDay": "credit_day",
    "startDate": "start_date",
    "endDate": "end_date",
}


def _connect(db_path: PathLike) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def _now() -> str:
    return datetime.utcnow().isoformat(timespec="seconds")


def _to_column_value(value: Any) -> Any:
    # dates are stored as ISO text
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def init_db(db_path: PathLike) -> None:
    conn = _connect(db_path)
    try:
        conn.execute(
            """
            create table if not exists epf_accounts (
                id integer primary key autoincrement,
                user_id text not null,
                organization_name text not null,
                epf_amount real not null,
                credit_day integer not null,
                start_date text not null,
                end_date text,
                created_at text not null,
                updated_at text not null
            )
            """
        )
        conn.execute(
            "create index if not exists idx_epf_accounts_user on epf_accounts (user_id)"
        )
        conn.commit()
    finally:
        conn.close()


def insert_epf_account(db_path: PathLike, user_id: str, account: Dict[str, Any]) -> int:
    """Store a validated account payload (camelCase keys) and return its id."""
    now = _now()
    conn = _connect(db_path)
    try:
        cur = conn.execute(
            """
            insert into epf_accounts (
                user_id, organization_name, epf_amount, credit_day,
                start_date, end_date, created_at, updated_at
            )
            values (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                account["organizationName"],
                account["epfAmount"],
                account["creditDay"],
                _to_column_value(account["startDate"]),
                _to_column_value(account.get("endDate")),
                now,
                now,
            ),
        )
        conn.commit()
        return cur.lastrowid
    finally:
        conn.close()


def fetch_epf_accounts(db_path: PathLike, user_id: str) -> List[Dict[str, Any]]:
    conn = _connect(db_path)
    try:
        rows = conn.execute(
            """
            select * from epf_accounts
            where user_id = ?
            order by id
            """,
            (user_id,),
        ).fetchall()
        return [dict(row) for row in rows]
    finally:
        conn.close()


def fetch_epf_account(db_path: PathLike, user_id: str, account_id: int) -> Optional[Dict[str, Any]]:
    conn = _connect(db_path)
    try:
        row = conn.execute(
            "select * from epf_accounts where user_id = ? and id = ?",
            (user_id, account_id),
        ).fetchone()
        return dict(row) if row is not None else None
    finally:
        conn.close()


def update_epf_account(
    db_path: PathLike,
    user_id: str,
    account_id: int,
    changes: Dict[str, Any],
) -> bool:
    """Apply camelCase ``changes`` to one account. Returns False if it does not exist."""
    assignments = []
    params: List[Any] = []
    for key, value in changes.items():
        assignments.append(f"{_COLUMNS[key]} = ?")
        params.append(_to_column_value(value))
    assignments.append("updated_at = ?")
    params.append(_now())
    params.extend([user_id, account_id])

    conn = _connect(db_path)
    try:
        cur = conn.execute(
            f"update epf_accounts set {', '.join(assignments)} where user_id = ? and id = ?",
            params,
        )
        conn.commit()
        return cur.rowcount > 0
    finally:
        conn.close()


def delete_epf_account(db_path: PathLike, user_id: str, account_id: int) -> bool:
    conn = _connect(db_path)
    try:
        cur = conn.execute(
            "delete from epf_accounts where user_id = ? and id = ?",
            (user_id, account_id),
        )
        conn.commit()
        return cur.rowcount > 0
    finally:
        conn.close()
