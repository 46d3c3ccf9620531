# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Put them in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKBOARD_APP_NAME": "App display name (default: taskboard).",
    "TASKBOARD_LOG_LEVEL": "Console logging level (default: INFO).",
    "TASKBOARD_DATA_DIR": "Local data directory for logs (default: .local/taskboard).",
    # Backend
    "TASKBOARD_SUPABASE_URL": "Supabase project URL (falls back to SUPABASE_URL).",
    "TASKBOARD_SUPABASE_KEY": "Supabase anon/service key (falls back to SUPABASE_KEY / SUPABASE_ANON_KEY).",
    "TASKBOARD_USER_EMAIL": "Owner e-mail stored with new tasks; also the sign-in e-mail.",
    "TASKBOARD_USER_PASSWORD": "Optional password; when set, the client signs in before syncing.",
    # Names
    "TASKBOARD_TABLE": "Tasks table (default: tasks).",
    "TASKBOARD_SCHEMA": "Schema watched by the change feed (default: public).",
    "TASKBOARD_ORDER_COLUMN": "Ordering column for the initial load (default: created_at).",
    "TASKBOARD_BUCKET": "Storage bucket for task images (default: tasks-images).",
    "TASKBOARD_CHANNEL": "Realtime channel name (default: tasks-channel).",
    # Replica behaviour
    "TASKBOARD_INSERT_POLICY": "append (push order) or sorted (re-sort by created_at).",
    "TASKBOARD_DEDUPE_INSERTS": "Replace instead of duplicating an insert for a known id (true/false).",
    "TASKBOARD_LOAD_BEFORE_SUBSCRIBE": "Start the change feed only after the initial load (true/false).",
    "TASKBOARD_RENDER_ON_CHANGE": "Reprint the board on every replica change (true/false).",
    # Connectors
    "TASKBOARD_CONSOLE_ENABLED": "Run the interactive console (true/false).",
}
