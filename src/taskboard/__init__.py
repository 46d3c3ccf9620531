"""
taskboard: a task board kept in sync with a hosted Supabase table.

Components:
- sync/replica_store.py: ordered in-memory replica of the tasks table
- sync/feed_subscriber.py: realtime channel -> replica mutations
- tasks/dispatcher.py: create/update/delete passthrough
- tasks/uploader.py: image upload + public URL
- ui/task_manager.py: form state and activation lifecycle
- backend/supabase_backend.py: Supabase adapters behind core/ports.py
"""

__version__ = "0.1.0"
