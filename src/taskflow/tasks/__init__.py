"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskFormData, Priority, MutationResult)
- errors.py: error types shared by stores and the manager
- local_store.py: SQLite-backed blob store for the whole collection
- remote_store.py: scoped CRUD against the remote REST table + row mapping
- backends.py: local/remote storage strategies and their selection
- task_manager.py: in-memory collection with optimistic writes and rollback
"""
