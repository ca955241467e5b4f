from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import pandas as pd

from .config import DB_PATH, SEED_DATABASE, ensure_data_directories
from .errors import NotFoundError, ValidationError
from .models import (
    EXPENSE,
    INCOME,
    MONTHS,
    SECTION_KINDS,
    ActualsCutoff,
    CashflowAnchor,
    Component,
    Group,
    Section,
    validate_month,
)

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS sections (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    type TEXT NOT NULL CHECK (type IN ('income', 'expense')),
    sort_order INTEGER DEFAULT 0,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS groups (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    section_id INTEGER NOT NULL REFERENCES sections(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    sort_order INTEGER DEFAULT 0,
    is_disabled INTEGER DEFAULT 0,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS components (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    group_id INTEGER NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    sort_order INTEGER DEFAULT 0,
    is_disabled INTEGER DEFAULT 0,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS budget_values (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    component_id INTEGER NOT NULL REFERENCES components(id) ON DELETE CASCADE,
    year INTEGER NOT NULL,
    month INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
    amount REAL DEFAULT 0,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (component_id, year, month)
);

CREATE TABLE IF NOT EXISTS actual_values (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    component_id INTEGER NOT NULL REFERENCES components(id) ON DELETE CASCADE,
    year INTEGER NOT NULL,
    month INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
    amount REAL DEFAULT 0,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (component_id, year, month)
);

CREATE TABLE IF NOT EXISTS budget_notes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    component_id INTEGER NOT NULL REFERENCES components(id) ON DELETE CASCADE,
    year INTEGER NOT NULL,
    month INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
    note TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (component_id, year, month)
);

CREATE TABLE IF NOT EXISTS cashflow_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    starting_balance REAL NOT NULL,
    starting_year INTEGER NOT NULL,
    starting_month INTEGER NOT NULL CHECK (starting_month BETWEEN 1 AND 12),
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS actuals_cutoff_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    cutoff_year INTEGER NOT NULL,
    cutoff_month INTEGER NOT NULL CHECK (cutoff_month BETWEEN 1 AND 12),
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS ix_budget_year ON budget_values (year);
CREATE INDEX IF NOT EXISTS ix_actual_year ON actual_values (year);
CREATE INDEX IF NOT EXISTS ix_notes_year ON budget_notes (year);
"""

DEFAULT_TREE: List[Tuple[str, str, List[Tuple[str, List[str]]]]] = [
    ('Income', INCOME, [
        ('Employment', ['Salary', 'Bonus']),
        ('Other Income', ['Side Jobs', 'Investments']),
    ]),
    ('Expenses', EXPENSE, [
        ('Housing', ['Rent/Mortgage', 'Utilities', 'Home Insurance']),
        ('Transportation', ['Car Payment', 'Gas', 'Car Insurance']),
        ('Food', ['Groceries', 'Dining Out']),
        ('Personal', ['Subscriptions', 'Entertainment', 'Healthcare']),
    ]),
]


def _require_year(year: Any) -> int:
    if year is None or year == '':
        raise ValidationError("year is required")
    try:
        return int(year)
    except (TypeError, ValueError):
        raise ValidationError(f"year must be an integer, got {year!r}") from None


def _validated_amounts(values: Optional[Mapping[Any, Any]]) -> List[Tuple[int, float]]:
    """Check every month and amount before anything is written."""
    if values is None or not isinstance(values, Mapping):
        raise ValidationError("values object is required")
    rows: List[Tuple[int, float]] = []
    for month, amount in values.items():
        month_num = validate_month(month)
        number = pd.to_numeric(pd.Series([amount], dtype=object), errors='coerce').iloc[0]
        if pd.isna(number):
            raise ValidationError(f"Amount for month {month_num} is not a number: {amount!r}")
        rows.append((month_num, float(number)))
    return rows


def _previous_month(today: date) -> Tuple[int, int]:
    if today.month == 1:
        return today.year - 1, 12
    return today.year, today.month - 1


class BudgetStore:
    """SQLite-backed store for the budget tree, monthly values, notes and settings."""

    def __init__(self, db_path: Optional[Path] = None, seed: bool = False):
        self.db_path = Path(db_path) if db_path is not None else DB_PATH
        if db_path is None:
            ensure_data_directories()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.init_db()
        if seed:
            self.seed_database()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path))
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        with self.connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()
            self._migrate_database(conn)

    def _migrate_database(self, conn: sqlite3.Connection) -> None:
        """Add the disabled flags to files created before they existed."""
        for table in ('groups', 'components'):
            existing_columns = [row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()]
            if 'is_disabled' not in existing_columns:
                conn.execute(f"ALTER TABLE {table} ADD COLUMN is_disabled INTEGER DEFAULT 0")
                logger.info("Added column is_disabled to %s table", table)
        conn.commit()

    # ------------------------------------------------------------------
    # Hierarchy
    # ------------------------------------------------------------------

    def get_hierarchy(self) -> List[Section]:
        with self.connect() as conn:
            section_rows = conn.execute(
                "SELECT id, name, type, sort_order FROM sections ORDER BY sort_order, id"
            ).fetchall()
            group_rows = conn.execute(
                "SELECT id, section_id, name, sort_order, is_disabled FROM groups ORDER BY sort_order, id"
            ).fetchall()
            component_rows = conn.execute(
                "SELECT id, group_id, name, sort_order, is_disabled FROM components ORDER BY sort_order, id"
            ).fetchall()

        components_by_group: Dict[int, List[Component]] = {}
        for comp_id, group_id, name, sort_order, disabled in component_rows:
            components_by_group.setdefault(group_id, []).append(
                Component(id=comp_id, name=name, disabled=bool(disabled), sort_order=sort_order or 0)
            )
        groups_by_section: Dict[int, List[Group]] = {}
        for group_id, section_id, name, sort_order, disabled in group_rows:
            groups_by_section.setdefault(section_id, []).append(
                Group(
                    id=group_id,
                    name=name,
                    disabled=bool(disabled),
                    sort_order=sort_order or 0,
                    components=tuple(components_by_group.get(group_id, [])),
                )
            )
        return [
            Section(
                id=section_id,
                kind=kind,
                name=name,
                sort_order=sort_order or 0,
                groups=tuple(groups_by_section.get(section_id, [])),
            )
            for section_id, name, kind, sort_order in section_rows
        ]

    def add_section(self, name: str, kind: str, sort_order: int = 0) -> int:
        if kind not in SECTION_KINDS:
            raise ValidationError(f"Section type must be one of {SECTION_KINDS}")
        if not name or not name.strip():
            raise ValidationError("Section name cannot be empty")
        with self.connect() as conn:
            cur = conn.execute(
                "INSERT INTO sections (name, type, sort_order) VALUES (?, ?, ?)",
                (name.strip(), kind, sort_order),
            )
            conn.commit()
            return cur.lastrowid

    def add_group(self, section_id: int, name: str, sort_order: int = 0, disabled: bool = False) -> int:
        if not name or not name.strip():
            raise ValidationError("Group name cannot be empty")
        with self.connect() as conn:
            self._require_row(conn, 'sections', section_id, 'Section')
            cur = conn.execute(
                "INSERT INTO groups (section_id, name, sort_order, is_disabled) VALUES (?, ?, ?, ?)",
                (section_id, name.strip(), sort_order, int(disabled)),
            )
            conn.commit()
            return cur.lastrowid

    def add_component(self, group_id: int, name: str, sort_order: int = 0, disabled: bool = False) -> int:
        if not name or not name.strip():
            raise ValidationError("Component name cannot be empty")
        with self.connect() as conn:
            self._require_row(conn, 'groups', group_id, 'Group')
            cur = conn.execute(
                "INSERT INTO components (group_id, name, sort_order, is_disabled) VALUES (?, ?, ?, ?)",
                (group_id, name.strip(), sort_order, int(disabled)),
            )
            conn.commit()
            return cur.lastrowid

    def set_group_disabled(self, group_id: int, disabled: bool) -> None:
        self._set_disabled('groups', group_id, disabled, 'Group')

    def set_component_disabled(self, component_id: int, disabled: bool) -> None:
        self._set_disabled('components', component_id, disabled, 'Component')

    def _set_disabled(self, table: str, entity_id: int, disabled: bool, label: str) -> None:
        with self.connect() as conn:
            cur = conn.execute(f"UPDATE {table} SET is_disabled = ? WHERE id = ?", (int(disabled), entity_id))
            conn.commit()
            if cur.rowcount == 0:
                raise NotFoundError(f"{label} {entity_id} not found")

    @staticmethod
    def _require_row(conn: sqlite3.Connection, table: str, entity_id: int, label: str) -> None:
        row = conn.execute(f"SELECT id FROM {table} WHERE id = ?", (entity_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"{label} {entity_id} not found")

    def seed_database(self) -> bool:
        """Insert the default tree into an empty database. Returns True if seeded."""
        with self.connect() as conn:
            count = conn.execute("SELECT COUNT(*) FROM sections").fetchone()[0]
            if count:
                return False
            for section_order, (section_name, kind, groups) in enumerate(DEFAULT_TREE, start=1):
                section_id = conn.execute(
                    "INSERT INTO sections (name, type, sort_order) VALUES (?, ?, ?)",
                    (section_name, kind, section_order),
                ).lastrowid
                for group_order, (group_name, components) in enumerate(groups, start=1):
                    group_id = conn.execute(
                        "INSERT INTO groups (section_id, name, sort_order) VALUES (?, ?, ?)",
                        (section_id, group_name, group_order),
                    ).lastrowid
                    conn.executemany(
                        "INSERT INTO components (group_id, name, sort_order) VALUES (?, ?, ?)",
                        [(group_id, name, order) for order, name in enumerate(components, start=1)],
                    )
            conn.commit()
        logger.info("Database %s seeded with the default budget tree", self.db_path)
        return True

    # ------------------------------------------------------------------
    # Monthly values
    # ------------------------------------------------------------------

    def _fetch_values(self, table: str, year: int) -> Dict[int, Dict[int, float]]:
        with self.connect() as conn:
            rows = conn.execute(
                f"SELECT component_id, month, amount FROM {table} WHERE year = ?",
                (_require_year(year),),
            ).fetchall()
        values: Dict[int, Dict[int, float]] = {}
        for component_id, month, amount in rows:
            values.setdefault(component_id, {})[month] = float(amount or 0.0)
        return values

    def _upsert_values(self, table: str, component_id: int, year: Any, values: Optional[Mapping[Any, Any]]) -> None:
        year_num = _require_year(year)
        rows = _validated_amounts(values)
        upsert_sql = (
            f"INSERT INTO {table} (component_id, year, month, amount, updated_at) "
            "VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP) "
            "ON CONFLICT(component_id, year, month) "
            "DO UPDATE SET amount = excluded.amount, updated_at = CURRENT_TIMESTAMP"
        )
        with self.connect() as conn:
            self._require_row(conn, 'components', component_id, 'Component')
            conn.executemany(upsert_sql, [(component_id, year_num, month, amount) for month, amount in rows])
            conn.commit()

    def get_period_values(self, year: int) -> Dict[int, Dict[int, float]]:
        return self._fetch_values('budget_values', year)

    def upsert_period_values(self, component_id: int, year: int, values: Mapping[int, float]) -> None:
        """Insert or overwrite budget amounts for the given months.

        Raises:
            ValidationError: missing year/values or a month outside 1..12
            NotFoundError: unknown component
        """
        self._upsert_values('budget_values', component_id, year, values)

    def get_actual_values(self, year: int) -> Dict[int, Dict[int, float]]:
        return self._fetch_values('actual_values', year)

    def upsert_actual_values(self, component_id: int, year: int, values: Mapping[int, float]) -> None:
        self._upsert_values('actual_values', component_id, year, values)

    def get_component_values(self, component_id: int, year: int, actual: bool = False) -> Dict[int, float]:
        """All twelve months for one component, zero-filled."""
        table = 'actual_values' if actual else 'budget_values'
        with self.connect() as conn:
            rows = conn.execute(
                f"SELECT month, amount FROM {table} WHERE component_id = ? AND year = ?",
                (component_id, _require_year(year)),
            ).fetchall()
        result = {month: 0.0 for month in MONTHS}
        for month, amount in rows:
            result[month] = float(amount or 0.0)
        return result

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def get_notes(self, year: int) -> Dict[int, Dict[int, str]]:
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT component_id, month, note FROM budget_notes WHERE year = ?",
                (_require_year(year),),
            ).fetchall()
        notes: Dict[int, Dict[int, str]] = {}
        for component_id, month, note in rows:
            notes.setdefault(component_id, {})[month] = note
        return notes

    def get_component_notes(self, component_id: int, year: int) -> Dict[int, str]:
        return self.get_notes(year).get(component_id, {})

    def upsert_notes(self, component_id: int, year: int, notes: Mapping[int, Optional[str]]) -> None:
        """Store trimmed notes; empty or whitespace-only text deletes the note."""
        year_num = _require_year(year)
        if notes is None or not isinstance(notes, Mapping):
            raise ValidationError("notes object is required")
        upserts: List[Tuple[int, int, int, str]] = []
        deletes: List[Tuple[int, int, int]] = []
        for month, text in notes.items():
            month_num = validate_month(month)
            cleaned = (text or '').strip()
            if cleaned:
                upserts.append((component_id, year_num, month_num, cleaned))
            else:
                deletes.append((component_id, year_num, month_num))
        with self.connect() as conn:
            self._require_row(conn, 'components', component_id, 'Component')
            conn.executemany(
                "INSERT INTO budget_notes (component_id, year, month, note, updated_at) "
                "VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP) "
                "ON CONFLICT(component_id, year, month) "
                "DO UPDATE SET note = excluded.note, updated_at = CURRENT_TIMESTAMP",
                upserts,
            )
            conn.executemany(
                "DELETE FROM budget_notes WHERE component_id = ? AND year = ? AND month = ?",
                deletes,
            )
            conn.commit()

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_cashflow_anchor(self, today: Optional[date] = None) -> CashflowAnchor:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT starting_balance, starting_year, starting_month FROM cashflow_settings LIMIT 1"
            ).fetchone()
        if row is None:
            today = today or date.today()
            return CashflowAnchor(starting_balance=0.0, starting_year=today.year, starting_month=1)
        return CashflowAnchor(starting_balance=float(row[0]), starting_year=int(row[1]), starting_month=int(row[2]))

    def set_cashflow_anchor(self, anchor: CashflowAnchor) -> None:
        """Replace the single settings row."""
        validate_month(anchor.starting_month)
        with self.connect() as conn:
            conn.execute("DELETE FROM cashflow_settings")
            conn.execute(
                "INSERT INTO cashflow_settings (starting_balance, starting_year, starting_month, updated_at) "
                "VALUES (?, ?, ?, CURRENT_TIMESTAMP)",
                (float(anchor.starting_balance), _require_year(anchor.starting_year), anchor.starting_month),
            )
            conn.commit()

    def get_actuals_cutoff(self, today: Optional[date] = None) -> ActualsCutoff:
        with self.connect() as conn:
            row = conn.execute("SELECT cutoff_year, cutoff_month FROM actuals_cutoff_settings LIMIT 1").fetchone()
        if row is None:
            cutoff_year, cutoff_month = _previous_month(today or date.today())
            return ActualsCutoff(cutoff_year=cutoff_year, cutoff_month=cutoff_month)
        return ActualsCutoff(cutoff_year=int(row[0]), cutoff_month=int(row[1]))

    def set_actuals_cutoff(self, cutoff: ActualsCutoff) -> None:
        validate_month(cutoff.cutoff_month)
        with self.connect() as conn:
            conn.execute("DELETE FROM actuals_cutoff_settings")
            conn.execute(
                "INSERT INTO actuals_cutoff_settings (cutoff_year, cutoff_month, updated_at) "
                "VALUES (?, ?, CURRENT_TIMESTAMP)",
                (_require_year(cutoff.cutoff_year), cutoff.cutoff_month),
            )
            conn.commit()

    # ------------------------------------------------------------------
    # DataFrame views
    # ------------------------------------------------------------------

    def values_frame(self, year: int, actual: bool = False) -> pd.DataFrame:
        """Long-format table (component_id, month, amount) for one year."""
        table = 'actual_values' if actual else 'budget_values'
        with self.connect() as conn:
            return pd.read_sql_query(
                f"SELECT component_id, month, amount FROM {table} WHERE year = ? ORDER BY component_id, month",
                conn,
                params=[_require_year(year)],
            )


_default_store: Optional[BudgetStore] = None


def get_store() -> BudgetStore:
    """Store bound to the configured database path, created on first use."""
    global _default_store
    if _default_store is None:
        _default_store = BudgetStore(seed=SEED_DATABASE)
    return _default_store
