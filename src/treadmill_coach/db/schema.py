"""SQLite schema for the treadmill coach database.

The same tables exist on Supabase (PostgreSQL). Column names are shared so the
two adapters can map rows the same way. Dates and timestamps are ISO strings,
booleans are 0/1, nested objects (profile snapshot, event payload, string
lists) are JSON text.
"""

SCHEMA = """
-- Onboarding profile, one per user
CREATE TABLE IF NOT EXISTS profiles (
    user_id TEXT PRIMARY KEY,
    name TEXT,
    level TEXT NOT NULL DEFAULT 'beginner',
    goal TEXT NOT NULL DEFAULT '5k',
    weekly_availability INTEGER NOT NULL DEFAULT 3,
    available_days TEXT,                  -- JSON array of 1..7, NULL when not chosen
    max_speed REAL NOT NULL DEFAULT 12,
    max_incline REAL NOT NULL DEFAULT 15,
    has_heart_rate_monitor INTEGER NOT NULL DEFAULT 0,
    preferred_speed_range TEXT,           -- JSON {walking, running, sprint}
    usual_workout_duration INTEGER NOT NULL DEFAULT 45,
    previous_experience TEXT,             -- JSON array
    physical_constraints TEXT,            -- JSON array
    treadmill_brand TEXT,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

-- Training plans; at most one active per user
CREATE TABLE IF NOT EXISTS training_plans (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    goal TEXT,
    total_weeks INTEGER NOT NULL CHECK (total_weeks >= 1),
    workouts_per_week INTEGER NOT NULL CHECK (workouts_per_week >= 1),
    start_date TEXT NOT NULL,
    end_date TEXT NOT NULL,
    user_profile TEXT,                    -- JSON snapshot at creation time
    generated_by_ai INTEGER NOT NULL DEFAULT 0,
    source TEXT NOT NULL DEFAULT 'fallback',
    ai_prompt TEXT,
    is_active INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_training_plans_user ON training_plans(user_id, created_at);

CREATE TABLE IF NOT EXISTS planned_workouts (
    id TEXT PRIMARY KEY,
    plan_id TEXT NOT NULL REFERENCES training_plans(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    description TEXT,
    workout_type TEXT NOT NULL,
    estimated_duration INTEGER NOT NULL,
    estimated_distance REAL NOT NULL DEFAULT 0,
    difficulty INTEGER NOT NULL,
    target_pace REAL,
    week_number INTEGER,
    day_of_week INTEGER CHECK (day_of_week IS NULL OR day_of_week BETWEEN 1 AND 7),
    notes TEXT
);

CREATE INDEX IF NOT EXISTS idx_planned_workouts_plan ON planned_workouts(plan_id, week_number, day_of_week);

CREATE TABLE IF NOT EXISTS training_segments (
    id TEXT PRIMARY KEY,
    workout_id TEXT NOT NULL REFERENCES planned_workouts(id) ON DELETE CASCADE,
    order_index INTEGER NOT NULL,
    name TEXT NOT NULL,
    duration INTEGER NOT NULL CHECK (duration > 0),
    distance REAL,
    target_speed REAL NOT NULL DEFAULT 0,
    target_incline REAL NOT NULL DEFAULT 0,
    intensity TEXT NOT NULL,
    rpe INTEGER NOT NULL,
    instruction TEXT,
    recovery_after INTEGER
);

CREATE INDEX IF NOT EXISTS idx_training_segments_workout ON training_segments(workout_id, order_index);

-- Tracked sessions and their event log
CREATE TABLE IF NOT EXISTS workout_sessions_detailed (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    planned_workout_id TEXT,
    workout_name TEXT,
    start_time TEXT NOT NULL,
    end_time TEXT,
    status TEXT NOT NULL DEFAULT 'active',
    total_duration REAL NOT NULL DEFAULT 0,
    total_distance REAL NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_sessions_user_status ON workout_sessions_detailed(user_id, status, end_time);

CREATE TABLE IF NOT EXISTS workout_events (
    id TEXT PRIMARY KEY,
    session_id TEXT NOT NULL REFERENCES workout_sessions_detailed(id) ON DELETE CASCADE,
    event_type TEXT NOT NULL,
    elapsed_time REAL NOT NULL,
    data TEXT,                            -- JSON payload
    timestamp TEXT NOT NULL,
    seq INTEGER NOT NULL                  -- append order
);

CREATE INDEX IF NOT EXISTS idx_events_session ON workout_events(session_id, elapsed_time, seq);

CREATE TABLE IF NOT EXISTS workout_splits (
    id TEXT PRIMARY KEY,
    session_id TEXT NOT NULL REFERENCES workout_sessions_detailed(id) ON DELETE CASCADE,
    split_type TEXT NOT NULL,
    split_number INTEGER NOT NULL,
    start_time REAL NOT NULL,
    end_time REAL NOT NULL,
    start_distance REAL NOT NULL,
    end_distance REAL NOT NULL,
    duration REAL NOT NULL,
    distance REAL NOT NULL,
    average_speed REAL NOT NULL,
    average_pace REAL NOT NULL,
    speed_changes INTEGER NOT NULL DEFAULT 0,
    min_speed REAL,
    max_speed REAL,
    segment_name TEXT
);

CREATE INDEX IF NOT EXISTS idx_splits_session ON workout_splits(session_id, split_type, split_number);

-- Manually recorded completions (notes and rating)
CREATE TABLE IF NOT EXISTS workout_completions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    planned_workout_id TEXT NOT NULL,
    completed_at TEXT NOT NULL,
    duration REAL NOT NULL DEFAULT 0,
    distance REAL NOT NULL DEFAULT 0,
    average_pace REAL,
    average_speed REAL,
    max_heart_rate INTEGER,
    average_heart_rate INTEGER,
    calories_burned INTEGER,
    notes TEXT,
    rating INTEGER CHECK (rating IS NULL OR rating BETWEEN 1 AND 5),
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_completions_user ON workout_completions(user_id, completed_at);
"""
