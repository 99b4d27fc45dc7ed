"""DDL and migrations for the project ledger database."""

from project_ledger.db.backend import Database

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS project_heads (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS project_revisions (
    project_id TEXT NOT NULL REFERENCES project_heads(id) ON DELETE CASCADE,
    version INTEGER NOT NULL CHECK (version >= 1),
    effective_at TEXT NOT NULL,
    author_id TEXT NOT NULL,
    am_id TEXT NOT NULL,
    client_id TEXT NOT NULL,
    market_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    status_id INTEGER NOT NULL,
    value_cents INTEGER NOT NULL,
    margin_cents INTEGER NOT NULL,
    probability_percent INTEGER NOT NULL
        CHECK (probability_percent BETWEEN 0 AND 100),
    due_quarter TEXT NOT NULL,
    invoice_month TEXT,
    payment_quarter TEXT NOT NULL,
    vendor_id TEXT NOT NULL,
    architecture_id INTEGER NOT NULL,
    comment TEXT,
    is_canceled INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    PRIMARY KEY (project_id, version)
);

CREATE INDEX IF NOT EXISTS idx_revisions_effective ON project_revisions(effective_at);
CREATE INDEX IF NOT EXISTS idx_revisions_project_effective
    ON project_revisions(project_id, effective_at);
CREATE INDEX IF NOT EXISTS idx_revisions_status ON project_revisions(status_id);
CREATE INDEX IF NOT EXISTS idx_revisions_market ON project_revisions(market_id);
CREATE INDEX IF NOT EXISTS idx_revisions_am ON project_revisions(am_id);
CREATE INDEX IF NOT EXISTS idx_revisions_client ON project_revisions(client_id);
CREATE INDEX IF NOT EXISTS idx_revisions_vendor ON project_revisions(vendor_id);
CREATE INDEX IF NOT EXISTS idx_revisions_architecture ON project_revisions(architecture_id);
CREATE INDEX IF NOT EXISTS idx_revisions_canceled ON project_revisions(is_canceled);
CREATE INDEX IF NOT EXISTS idx_revisions_due ON project_revisions(due_quarter);
CREATE INDEX IF NOT EXISTS idx_revisions_invoice ON project_revisions(invoice_month);

CREATE TABLE IF NOT EXISTS project_participants (
    project_id TEXT NOT NULL,
    version INTEGER NOT NULL,
    user_id TEXT NOT NULL,
    is_owner INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (project_id, version, user_id),
    FOREIGN KEY (project_id, version)
        REFERENCES project_revisions(project_id, version) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_participants_user ON project_participants(user_id);

-- Written rows are never updated or deleted; corrections are new versions
CREATE TRIGGER IF NOT EXISTS project_revisions_immutable
BEFORE UPDATE ON project_revisions
BEGIN
    SELECT RAISE(ABORT, 'project revisions are immutable');
END;

CREATE TRIGGER IF NOT EXISTS project_participants_immutable
BEFORE UPDATE ON project_participants
BEGIN
    SELECT RAISE(ABORT, 'participant snapshots are immutable');
END;

CREATE TRIGGER IF NOT EXISTS project_revisions_no_delete
BEFORE DELETE ON project_revisions
BEGIN
    SELECT RAISE(ABORT, 'project revisions are immutable');
END;

CREATE TRIGGER IF NOT EXISTS project_participants_no_delete
BEFORE DELETE ON project_participants
BEGIN
    SELECT RAISE(ABORT, 'participant snapshots are immutable');
END;

-- One row per project: latest effective_at, ties broken by version
CREATE VIEW IF NOT EXISTS projects_current AS
SELECT * FROM (
    SELECT r.*,
        ROW_NUMBER() OVER (
            PARTITION BY r.project_id
            ORDER BY r.effective_at DESC, r.version DESC
        ) AS rn
    FROM project_revisions r
) ranked
WHERE rn = 1;

-- Status dictionary, maintained outside the ledger
CREATE TABLE IF NOT EXISTS project_statuses (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1,
    auto_probability_percent INTEGER
);
"""


async def apply_schema(db: Database) -> None:
    """Apply the database schema."""
    await db.executescript(SCHEMA_SQL)

    # Check schema version
    cursor = await db.execute("SELECT version FROM schema_version")
    row = await cursor.fetchone()
    if row is None:
        await db.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))

    await db.commit()
