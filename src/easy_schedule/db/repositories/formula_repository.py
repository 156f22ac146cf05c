"""SQLite-backed store for EASY formula rules.

Holds the predefined age-based formulas, caregiver-authored custom
formulas and day-specific formulas (custom rules with ``valid_date``).
"""

import json
import logging
import sqlite3
import uuid
from datetime import datetime
from typing import Iterable, List, Optional

import pydantic
from pydantic import TypeAdapter

from .base import SQLiteRepository
from ..predefined_formulas import PREDEFINED_FORMULAS
from ...exceptions import FormulaNotFoundError
from ...models.formulas import FormulaRule
from ...models.schedule import CyclePhase
from ...schedule.generator import PhaseInput, coerce_phases

logger = logging.getLogger(__name__)

_PHASES_ADAPTER = TypeAdapter(List[CyclePhase])


def parse_phases(raw: Optional[str]) -> List[CyclePhase]:
    """Parse a stored phases JSON string; malformed data yields an empty list."""
    if not raw:
        return []
    try:
        return _PHASES_ADAPTER.validate_json(raw)
    except pydantic.ValidationError as e:
        logger.warning(f"Ignoring malformed formula phases: {e.error_count()} error(s)")
        return []


def _dump_phases(phases: Iterable[PhaseInput]) -> str:
    return json.dumps([phase.model_dump() for phase in coerce_phases(phases)])


class FormulaRepository(SQLiteRepository):
    """Repository for FormulaRule rows."""

    def _ensure_table_exists(self):
        """Ensure the easy_formula_rules table exists."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS easy_formula_rules (
                    id TEXT PRIMARY KEY,
                    baby_id INTEGER,
                    is_custom INTEGER NOT NULL DEFAULT 0,
                    min_weeks INTEGER NOT NULL,
                    max_weeks INTEGER,
                    label TEXT NOT NULL,
                    description TEXT,
                    phases TEXT NOT NULL,
                    valid_date TEXT,
                    source_rule_id TEXT,
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_formula_rules_baby_date
                ON easy_formula_rules(baby_id, valid_date)
            """)

    def _row_to_rule(self, row: sqlite3.Row) -> FormulaRule:
        """Convert a database row to a FormulaRule."""
        return FormulaRule(
            id=row["id"],
            baby_id=row["baby_id"],
            is_custom=bool(row["is_custom"]),
            min_weeks=row["min_weeks"],
            max_weeks=row["max_weeks"],
            label=row["label"],
            description=row["description"],
            phases=parse_phases(row["phases"]),
            valid_date=row["valid_date"],
            source_rule_id=row["source_rule_id"],
        )

    @staticmethod
    def _visibility_clause(baby_id: Optional[int]) -> tuple:
        """Predefined rules, plus the baby's own custom rules when baby_id is given."""
        if baby_id:
            return "(is_custom = 0 OR baby_id = ?)", [baby_id]
        return "is_custom = 0", []

    def seed_predefined(self) -> int:
        """
        Insert or refresh the predefined formulas.

        Returns:
            Number of predefined formulas written
        """
        now = datetime.now().isoformat()
        with self._get_connection() as conn:
            for formula in PREDEFINED_FORMULAS:
                conn.execute(
                    """
                    INSERT INTO easy_formula_rules
                        (id, baby_id, is_custom, min_weeks, max_weeks, label, description,
                         phases, created_at, updated_at)
                    VALUES (?, NULL, 0, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        min_weeks = excluded.min_weeks,
                        max_weeks = excluded.max_weeks,
                        label = excluded.label,
                        description = excluded.description,
                        phases = excluded.phases,
                        updated_at = excluded.updated_at
                    """,
                    (
                        formula["id"],
                        formula["min_weeks"],
                        formula["max_weeks"],
                        formula["label"],
                        formula["description"],
                        json.dumps(formula["phases"]),
                        now,
                        now,
                    ),
                )
        logger.info(f"Seeded {len(PREDEFINED_FORMULAS)} predefined formulas")
        return len(PREDEFINED_FORMULAS)

    def get_by_id(self, rule_id: str, baby_id: Optional[int] = None) -> Optional[FormulaRule]:
        """
        Get a formula rule by ID.

        Custom and day-specific rules are only visible with the owning baby_id.
        """
        clause, params = self._visibility_clause(baby_id)
        with self._get_connection() as conn:
            row = conn.execute(
                f"SELECT * FROM easy_formula_rules WHERE id = ? AND {clause} LIMIT 1",
                [rule_id, *params],
            ).fetchone()
        return self._row_to_rule(row) if row else None

    def get_by_age(self, age_weeks: int, baby_id: Optional[int] = None) -> Optional[FormulaRule]:
        """
        Get the formula covering an age in weeks.

        Day-specific rules are never auto-selected. When ranges overlap at a
        boundary the rule with the lowest ``min_weeks`` wins.
        """
        clause, params = self._visibility_clause(baby_id)
        with self._get_connection() as conn:
            row = conn.execute(
                f"""
                SELECT * FROM easy_formula_rules
                WHERE min_weeks <= ?
                  AND (max_weeks IS NULL OR max_weeks >= ?)
                  AND valid_date IS NULL
                  AND {clause}
                ORDER BY min_weeks
                LIMIT 1
                """,
                [age_weeks, age_weeks, *params],
            ).fetchone()
        return self._row_to_rule(row) if row else None

    def get_by_date(self, baby_id: int, valid_date: str) -> Optional[FormulaRule]:
        """Get the day-specific rule of a baby for a date, if any."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM easy_formula_rules
                WHERE baby_id = ? AND valid_date = ? AND is_custom = 1
                LIMIT 1
                """,
                (baby_id, valid_date),
            ).fetchone()
        return self._row_to_rule(row) if row else None

    def list_rules(self, baby_id: Optional[int] = None) -> List[FormulaRule]:
        """Predefined rules plus the baby's custom rules, day-specific rules excluded."""
        clause, params = self._visibility_clause(baby_id)
        with self._get_connection() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM easy_formula_rules
                WHERE valid_date IS NULL AND {clause}
                ORDER BY min_weeks, created_at
                """,
                params,
            ).fetchall()
        return [self._row_to_rule(row) for row in rows]

    def list_day_specific(self, baby_id: int) -> List[FormulaRule]:
        """Day-specific rules of a baby, most recent date first."""
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM easy_formula_rules
                WHERE baby_id = ? AND is_custom = 1 AND valid_date IS NOT NULL
                ORDER BY valid_date DESC
                """,
                (baby_id,),
            ).fetchall()
        return [self._row_to_rule(row) for row in rows]

    def create_custom(
        self,
        baby_id: int,
        label: str,
        phases: Iterable[PhaseInput],
        min_weeks: int = 0,
        max_weeks: Optional[int] = None,
        description: Optional[str] = None,
    ) -> FormulaRule:
        """
        Create a caregiver-authored formula.

        Raises:
            ValidationError: If a phase duration is invalid
        """
        rule_id = f"custom_{baby_id}_{uuid.uuid4().hex[:12]}"
        phases_json = _dump_phases(phases)
        now = datetime.now().isoformat()

        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO easy_formula_rules
                    (id, baby_id, is_custom, min_weeks, max_weeks, label, description,
                     phases, created_at, updated_at)
                VALUES (?, ?, 1, ?, ?, ?, ?, ?, ?, ?)
                """,
                (rule_id, baby_id, min_weeks, max_weeks, label, description, phases_json, now, now),
            )

        return self.get_by_id(rule_id, baby_id)

    def clone_for_date(
        self,
        baby_id: int,
        source_rule_id: str,
        valid_date: str,
        phases: Iterable[PhaseInput],
    ) -> str:
        """
        Create (or update) the day-specific copy of a rule with custom phases.

        A baby has at most one day-specific rule per date: if one exists its
        phases and source are replaced.

        Returns:
            ID of the day-specific rule

        Raises:
            FormulaNotFoundError: If the source rule is not visible to the baby
        """
        source = self.get_by_id(source_rule_id, baby_id)
        if source is None:
            raise FormulaNotFoundError(source_rule_id)

        phases_json = _dump_phases(phases)
        now = datetime.now().isoformat()
        existing = self.get_by_date(baby_id, valid_date)

        with self._get_connection() as conn:
            if existing:
                conn.execute(
                    """
                    UPDATE easy_formula_rules
                    SET source_rule_id = ?, phases = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (source_rule_id, phases_json, now, existing.id),
                )
                return existing.id

            rule_id = f"day_{baby_id}_{valid_date.replace('-', '')}_{uuid.uuid4().hex[:8]}"
            conn.execute(
                """
                INSERT INTO easy_formula_rules
                    (id, baby_id, is_custom, min_weeks, max_weeks, label, description,
                     phases, valid_date, source_rule_id, created_at, updated_at)
                VALUES (?, ?, 1, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    rule_id,
                    baby_id,
                    source.min_weeks,
                    source.max_weeks,
                    source.label,
                    source.description,
                    phases_json,
                    valid_date,
                    source_rule_id,
                    now,
                    now,
                ),
            )

        logger.info(f"Created day-specific formula {rule_id} from {source_rule_id} for {valid_date}")
        return rule_id

    def delete_day_specific_before(self, cutoff_date: str) -> int:
        """Delete day-specific rules dated before cutoff_date (YYYY-MM-DD)."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM easy_formula_rules WHERE valid_date IS NOT NULL AND valid_date < ?",
                (cutoff_date,),
            )
            return cursor.rowcount
