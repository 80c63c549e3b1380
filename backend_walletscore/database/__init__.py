"""
Persistence for scoring records (SQLAlchemy; PostgreSQL or SQLite).
"""

from backend_walletscore.database.scoring_records import (
    ScoringRecord,
    init_db,
    list_scoring_records,
    save_scoring_record,
)

__all__ = ["ScoringRecord", "init_db", "list_scoring_records", "save_scoring_record"]
