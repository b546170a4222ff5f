"""Schema definition for the ttt SQLite store."""

from __future__ import annotations

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS projects (
    id INTEGER NOT NULL PRIMARY KEY,
    name TEXT NOT NULL UNIQUE CHECK (trim(name) <> ''),
    archived BOOLEAN NOT NULL DEFAULT 0,
    last_access_time TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS frames (
    id INTEGER NOT NULL PRIMARY KEY,
    project INTEGER NOT NULL,
    start TEXT NOT NULL,
    "end" TEXT,
    FOREIGN KEY (project) REFERENCES projects(id),
    CHECK ("end" IS NULL OR "end" >= start)
);

CREATE TABLE IF NOT EXISTS tags (
    id INTEGER NOT NULL PRIMARY KEY,
    name TEXT NOT NULL CHECK (trim(name) <> ''),
    archived BOOLEAN NOT NULL DEFAULT 0,
    last_access_time TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tags_per_project (
    project_id INTEGER NOT NULL,
    tag_id INTEGER NOT NULL,
    FOREIGN KEY (project_id) REFERENCES projects(id),
    FOREIGN KEY (tag_id) REFERENCES tags(id),
    PRIMARY KEY (project_id, tag_id)
);

-- At most one unterminated frame, across all projects.
CREATE UNIQUE INDEX IF NOT EXISTS idx_frames_single_active
    ON frames(("end" IS NULL)) WHERE "end" IS NULL;

-- Tag names are unique among live tags only; archived names may be reused.
CREATE UNIQUE INDEX IF NOT EXISTS idx_tags_live_name
    ON tags(name) WHERE archived = 0;

CREATE INDEX IF NOT EXISTS idx_frames_start ON frames(start);
CREATE INDEX IF NOT EXISTS idx_frames_project ON frames(project);
CREATE INDEX IF NOT EXISTS idx_tags_per_project_tag ON tags_per_project(tag_id);
"""
