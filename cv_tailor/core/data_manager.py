"""Persistence of profiles and task records (sqlite)

sqlite calls are blocking, so every public coroutine runs its work in a
worker thread. Record writes replace the whole row.
"""

import asyncio
import json
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from ..models.cv import CVData
from ..models.job import JobRequirements
from ..models.profile import Education, Language, ProfileSnapshot, Skill, WorkExperience
from ..models.profile_import import ImportProfileData
from ..models.task import AnalysisRecord, CVRecord, TaskStatus
from ..utils.config import get_settings
from ..utils.helpers import utc_now
from ..utils.logger import app_logger

PROFILE_FIELDS = [
    "first_name", "last_name", "email", "phone", "location", "address", "city",
    "country", "postal_code", "profile_image_url", "personal_summary",
]


def _dumps(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def _loads(value: Optional[str], default: Any = None) -> Any:
    if value is None or value == "":
        return default
    return json.loads(value)


def _iso(value: Optional[Any]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def new_id() -> str:
    return str(uuid.uuid4())


class DataManager:
    """sqlite-backed storage"""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or get_settings().database.path
        self._init_database()

    def _init_database(self):
        try:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            with self._connect() as conn:
                self._create_tables(conn)
            app_logger.info(f"Database initialized: {self.db_path}")
        except sqlite3.Error as e:
            app_logger.error(f"Database initialization failed: {e}")
            raise

    def _create_tables(self, conn: sqlite3.Connection):
        conn.execute("""
            CREATE TABLE IF NOT EXISTS profiles (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL UNIQUE,
                first_name TEXT,
                last_name TEXT,
                email TEXT,
                phone TEXT,
                location TEXT,
                address TEXT,
                city TEXT,
                country TEXT,
                postal_code TEXT,
                profile_image_url TEXT,
                personal_summary TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS work_experiences (
                id TEXT PRIMARY KEY,
                profile_id TEXT NOT NULL,
                company TEXT NOT NULL,
                position TEXT NOT NULL,
                start_date TEXT NOT NULL,
                end_date TEXT,
                current INTEGER NOT NULL DEFAULT 0,
                description TEXT NOT NULL DEFAULT '',
                order_index INTEGER NOT NULL DEFAULT 0,
                FOREIGN KEY (profile_id) REFERENCES profiles (id) ON DELETE CASCADE
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS skills (
                id TEXT PRIMARY KEY,
                profile_id TEXT NOT NULL,
                name TEXT NOT NULL,
                category TEXT,
                proficiency_level TEXT,
                FOREIGN KEY (profile_id) REFERENCES profiles (id) ON DELETE CASCADE
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS education (
                id TEXT PRIMARY KEY,
                profile_id TEXT NOT NULL,
                institution TEXT NOT NULL,
                degree TEXT NOT NULL,
                field_of_study TEXT,
                start_date TEXT NOT NULL,
                end_date TEXT,
                current INTEGER NOT NULL DEFAULT 0,
                description TEXT,
                order_index INTEGER NOT NULL DEFAULT 0,
                FOREIGN KEY (profile_id) REFERENCES profiles (id) ON DELETE CASCADE
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS languages (
                id TEXT PRIMARY KEY,
                profile_id TEXT NOT NULL,
                name TEXT NOT NULL,
                proficiency_level TEXT NOT NULL DEFAULT '',
                FOREIGN KEY (profile_id) REFERENCES profiles (id) ON DELETE CASCADE
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS analysis_results (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                job_description_id TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                match_score REAL,
                strengths TEXT,  -- JSON array
                gaps TEXT,  -- JSON array
                missing_skills TEXT,  -- JSON array
                suggested_focus_areas TEXT,  -- JSON array
                job_requirements TEXT,  -- JSON object
                raw_analysis TEXT,  -- JSON object
                error_message TEXT,
                error_context TEXT,  -- JSON object
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                completed_at TEXT
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS generated_cvs (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                job_description_id TEXT NOT NULL,
                analysis_result_id TEXT,
                status TEXT NOT NULL DEFAULT 'pending',
                cv_data TEXT,  -- JSON object
                error_message TEXT,
                error_context TEXT,  -- JSON object
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                completed_at TEXT
            )
        """)

        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_work_experiences_profile ON work_experiences(profile_id)",
            "CREATE INDEX IF NOT EXISTS idx_skills_profile ON skills(profile_id)",
            "CREATE INDEX IF NOT EXISTS idx_education_profile ON education(profile_id)",
            "CREATE INDEX IF NOT EXISTS idx_languages_profile ON languages(profile_id)",
            "CREATE INDEX IF NOT EXISTS idx_analysis_user ON analysis_results(user_id)",
            "CREATE INDEX IF NOT EXISTS idx_cvs_user ON generated_cvs(user_id)",
        ]
        for index_sql in indexes:
            conn.execute(index_sql)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Connection whose block is one transaction: commit on success, rollback on error"""
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    async def _run(self, func, *args):
        return await asyncio.to_thread(func, *args)

    # ==================== Profiles ====================

    def _get_profile_snapshot(self, user_id: str) -> Optional[ProfileSnapshot]:
        with self._connect() as conn:
            profile = conn.execute("SELECT * FROM profiles WHERE user_id = ?", (user_id,)).fetchone()
            if profile is None:
                return None
            profile_id = profile["id"]

            experiences = conn.execute(
                "SELECT * FROM work_experiences WHERE profile_id = ? ORDER BY order_index, start_date DESC",
                (profile_id,)
            ).fetchall()
            skills = conn.execute("SELECT * FROM skills WHERE profile_id = ? ORDER BY rowid", (profile_id,)).fetchall()
            education = conn.execute(
                "SELECT * FROM education WHERE profile_id = ? ORDER BY order_index", (profile_id,)
            ).fetchall()
            languages = conn.execute(
                "SELECT * FROM languages WHERE profile_id = ? ORDER BY rowid", (profile_id,)
            ).fetchall()

        return ProfileSnapshot(
            user_id=user_id,
            **{field: profile[field] for field in PROFILE_FIELDS},
            work_experiences=[self._row_to_experience(row) for row in experiences],
            skills=[self._row_to_skill(row) for row in skills],
            education=[self._row_to_education(row) for row in education],
            languages=[self._row_to_language(row) for row in languages],
        )

    async def get_profile_snapshot(self, user_id: str) -> Optional[ProfileSnapshot]:
        """Read-only snapshot of a user's profile"""
        return await self._run(self._get_profile_snapshot, user_id)

    def _save_profile(self, snapshot: ProfileSnapshot) -> Dict[str, int]:
        now = utc_now().isoformat()
        with self._connect() as conn:
            row = conn.execute("SELECT id, created_at FROM profiles WHERE user_id = ?", (snapshot.user_id,)).fetchone()
            profile_id = row["id"] if row else new_id()
            created_at = row["created_at"] if row else now

            for table in ("work_experiences", "skills", "education", "languages"):
                conn.execute(f"DELETE FROM {table} WHERE profile_id = ?", (profile_id,))
            conn.execute("DELETE FROM profiles WHERE id = ?", (profile_id,))

            conn.execute(
                f"""INSERT INTO profiles (id, user_id, {', '.join(PROFILE_FIELDS)}, created_at, updated_at)
                    VALUES ({', '.join('?' * (len(PROFILE_FIELDS) + 4))})""",
                (profile_id, snapshot.user_id, *[getattr(snapshot, f) for f in PROFILE_FIELDS], created_at, now)
            )
            conn.executemany(
                """INSERT INTO work_experiences (id, profile_id, company, position, start_date, end_date,
                       current, description, order_index) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (e.id, profile_id, e.company, e.position, _iso(e.start_date), _iso(e.end_date),
                     int(e.current), e.description, e.order_index)
                    for e in snapshot.work_experiences
                ]
            )
            conn.executemany(
                "INSERT INTO skills (id, profile_id, name, category, proficiency_level) VALUES (?, ?, ?, ?, ?)",
                [(s.id, profile_id, s.name, s.category, s.proficiency_level) for s in snapshot.skills]
            )
            conn.executemany(
                """INSERT INTO education (id, profile_id, institution, degree, field_of_study, start_date,
                       end_date, current, description, order_index) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (e.id, profile_id, e.institution, e.degree, e.field_of_study, _iso(e.start_date),
                     _iso(e.end_date), int(e.current), e.description, e.order_index)
                    for e in snapshot.education
                ]
            )
            conn.executemany(
                "INSERT INTO languages (id, profile_id, name, proficiency_level) VALUES (?, ?, ?, ?)",
                [(lang.id, profile_id, lang.name, lang.proficiency_level) for lang in snapshot.languages]
            )

        return {
            "work_experiences": len(snapshot.work_experiences),
            "skills": len(snapshot.skills),
            "education": len(snapshot.education),
            "languages": len(snapshot.languages),
        }

    async def save_profile(self, snapshot: ProfileSnapshot) -> Dict[str, int]:
        """Replace a user's profile with the snapshot in one transaction"""
        counts = await self._run(self._save_profile, snapshot)
        app_logger.info(f"Saved profile for user {snapshot.user_id}: {counts}")
        return counts

    async def replace_profile(self, user_id: str, data: ImportProfileData) -> Dict[str, int]:
        """Delete all profile rows and insert the imported data with fresh ids"""
        snapshot = ProfileSnapshot(
            user_id=user_id,
            **{field: getattr(data, field) for field in PROFILE_FIELDS},
            work_experiences=[
                WorkExperience(id=new_id(), order_index=index, **exp.model_dump())
                for index, exp in enumerate(data.work_experiences)
            ],
            skills=[Skill(id=new_id(), **skill.model_dump()) for skill in data.skills],
            education=[
                Education(id=new_id(), order_index=index, **edu.model_dump())
                for index, edu in enumerate(data.education)
            ],
            languages=[Language(id=new_id(), **lang.model_dump()) for lang in data.languages],
        )
        return await self.save_profile(snapshot)

    # ==================== Analysis records ====================

    def _save_analysis_record(self, record: AnalysisRecord) -> AnalysisRecord:
        now = utc_now()
        record = record.model_copy(update={"created_at": record.created_at or now, "updated_at": now})
        dumped = record.model_dump(mode="json", by_alias=True)
        with self._connect() as conn:
            conn.execute("""
                INSERT INTO analysis_results (
                    id, user_id, job_description_id, status, match_score, strengths, gaps,
                    missing_skills, suggested_focus_areas, job_requirements, raw_analysis,
                    error_message, error_context, created_at, updated_at, completed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    user_id = excluded.user_id,
                    job_description_id = excluded.job_description_id,
                    status = excluded.status,
                    match_score = excluded.match_score,
                    strengths = excluded.strengths,
                    gaps = excluded.gaps,
                    missing_skills = excluded.missing_skills,
                    suggested_focus_areas = excluded.suggested_focus_areas,
                    job_requirements = excluded.job_requirements,
                    raw_analysis = excluded.raw_analysis,
                    error_message = excluded.error_message,
                    error_context = excluded.error_context,
                    updated_at = excluded.updated_at,
                    completed_at = excluded.completed_at
            """, (
                record.id,
                record.user_id,
                record.job_description_id,
                record.status.value,
                record.match_score,
                _dumps(dumped["strengths"]),
                _dumps(dumped["gaps"]),
                _dumps(dumped["missingSkills"]),
                _dumps(dumped["suggestedFocusAreas"]),
                _dumps(dumped["jobRequirements"]),
                _dumps(dumped["rawAnalysis"]),
                record.error_message,
                _dumps(record.error_context),
                _iso(record.created_at),
                _iso(record.updated_at),
                _iso(record.completed_at),
            ))
        return record

    async def save_analysis_record(self, record: AnalysisRecord) -> AnalysisRecord:
        """Write the whole analysis record"""
        return await self._run(self._save_analysis_record, record)

    async def create_analysis_record(self, analysis_id: str, user_id: str, job_description_id: str) -> AnalysisRecord:
        record = AnalysisRecord(id=analysis_id, user_id=user_id, job_description_id=job_description_id,
                                status=TaskStatus.PENDING)
        return await self.save_analysis_record(record)

    def _get_analysis_record(self, analysis_id: str) -> Optional[AnalysisRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM analysis_results WHERE id = ?", (analysis_id,)).fetchone()
        return self._row_to_analysis_record(row) if row else None

    async def get_analysis_record(self, analysis_id: str) -> Optional[AnalysisRecord]:
        return await self._run(self._get_analysis_record, analysis_id)

    # ==================== Generated CVs ====================

    def _save_cv_record(self, record: CVRecord) -> CVRecord:
        now = utc_now()
        record = record.model_copy(update={"created_at": record.created_at or now, "updated_at": now})
        cv_data = record.cv_data.model_dump(mode="json", by_alias=True) if record.cv_data else None
        with self._connect() as conn:
            conn.execute("""
                INSERT INTO generated_cvs (
                    id, user_id, job_description_id, analysis_result_id, status, cv_data,
                    error_message, error_context, created_at, updated_at, completed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    user_id = excluded.user_id,
                    job_description_id = excluded.job_description_id,
                    analysis_result_id = excluded.analysis_result_id,
                    status = excluded.status,
                    cv_data = excluded.cv_data,
                    error_message = excluded.error_message,
                    error_context = excluded.error_context,
                    updated_at = excluded.updated_at,
                    completed_at = excluded.completed_at
            """, (
                record.id,
                record.user_id,
                record.job_description_id,
                record.analysis_result_id,
                record.status.value,
                _dumps(cv_data),
                record.error_message,
                _dumps(record.error_context),
                _iso(record.created_at),
                _iso(record.updated_at),
                _iso(record.completed_at),
            ))
        return record

    async def save_cv_record(self, record: CVRecord) -> CVRecord:
        """Write the whole CV record"""
        return await self._run(self._save_cv_record, record)

    async def create_cv_record(self, cv_id: str, user_id: str, job_description_id: str,
                               analysis_result_id: Optional[str] = None) -> CVRecord:
        record = CVRecord(id=cv_id, user_id=user_id, job_description_id=job_description_id,
                          analysis_result_id=analysis_result_id, status=TaskStatus.PENDING)
        return await self.save_cv_record(record)

    def _get_cv_record(self, cv_id: str) -> Optional[CVRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM generated_cvs WHERE id = ?", (cv_id,)).fetchone()
        return self._row_to_cv_record(row) if row else None

    async def get_cv_record(self, cv_id: str) -> Optional[CVRecord]:
        return await self._run(self._get_cv_record, cv_id)

    # ==================== Row conversion ====================

    def _row_to_experience(self, row: sqlite3.Row) -> WorkExperience:
        return WorkExperience(
            id=row["id"],
            company=row["company"],
            position=row["position"],
            start_date=date.fromisoformat(row["start_date"]),
            end_date=date.fromisoformat(row["end_date"]) if row["end_date"] else None,
            current=bool(row["current"]),
            description=row["description"] or "",
            order_index=row["order_index"],
        )

    def _row_to_skill(self, row: sqlite3.Row) -> Skill:
        return Skill(id=row["id"], name=row["name"], category=row["category"],
                     proficiency_level=row["proficiency_level"])

    def _row_to_education(self, row: sqlite3.Row) -> Education:
        return Education(
            id=row["id"],
            institution=row["institution"],
            degree=row["degree"],
            field_of_study=row["field_of_study"],
            start_date=date.fromisoformat(row["start_date"]),
            end_date=date.fromisoformat(row["end_date"]) if row["end_date"] else None,
            current=bool(row["current"]),
            description=row["description"],
            order_index=row["order_index"],
        )

    def _row_to_language(self, row: sqlite3.Row) -> Language:
        return Language(id=row["id"], name=row["name"], proficiency_level=row["proficiency_level"] or "")

    def _row_to_analysis_record(self, row: sqlite3.Row) -> AnalysisRecord:
        requirements = _loads(row["job_requirements"])
        return AnalysisRecord(
            id=row["id"],
            user_id=row["user_id"],
            job_description_id=row["job_description_id"],
            status=TaskStatus(row["status"]),
            match_score=row["match_score"],
            strengths=_loads(row["strengths"], []),
            gaps=_loads(row["gaps"], []),
            missing_skills=_loads(row["missing_skills"], []),
            suggested_focus_areas=_loads(row["suggested_focus_areas"], []),
            job_requirements=JobRequirements.model_validate(requirements) if requirements is not None else None,
            raw_analysis=_loads(row["raw_analysis"]),
            error_message=row["error_message"],
            error_context=_loads(row["error_context"]),
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
            completed_at=_parse_datetime(row["completed_at"]),
        )

    def _row_to_cv_record(self, row: sqlite3.Row) -> CVRecord:
        cv_data = _loads(row["cv_data"])
        return CVRecord(
            id=row["id"],
            user_id=row["user_id"],
            job_description_id=row["job_description_id"],
            analysis_result_id=row["analysis_result_id"],
            status=TaskStatus(row["status"]),
            cv_data=CVData.model_validate(cv_data) if cv_data is not None else None,
            error_message=row["error_message"],
            error_context=_loads(row["error_context"]),
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
            completed_at=_parse_datetime(row["completed_at"]),
        )


# Global data manager instance
_data_manager_instance: Optional[DataManager] = None


def get_data_manager() -> DataManager:
    """Return the shared DataManager"""
    global _data_manager_instance
    if _data_manager_instance is None:
        _data_manager_instance = DataManager()
    return _data_manager_instance
