"""Database schema definitions for Crossvote."""

# SQL schema for creating tables

CREATE_DECISION_RECORDS_TABLE = """
CREATE TABLE IF NOT EXISTS decision_records (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    action TEXT NOT NULL,
    confidence REAL NOT NULL,
    consensus REAL NOT NULL,
    overall_risk REAL NOT NULL,
    decision_timestamp TIMESTAMP NOT NULL,
    inserted_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,

    -- Full record as JSON (reasoning, plan, outcome, metadata)
    payload TEXT NOT NULL
);
"""

CREATE_DECISION_ACTION_INDEX = """
CREATE INDEX IF NOT EXISTS idx_decision_action
ON decision_records(action);
"""

CREATE_DECISION_TIMESTAMP_INDEX = """
CREATE INDEX IF NOT EXISTS idx_decision_timestamp
ON decision_records(decision_timestamp);
"""

ALL_TABLES = [
    CREATE_DECISION_RECORDS_TABLE,
    CREATE_DECISION_ACTION_INDEX,
    CREATE_DECISION_TIMESTAMP_INDEX,
]
