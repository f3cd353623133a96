"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Priority, TaskStatus, TaskFilter, TaskSummary)
- task_store.py: JSON-document storage, derived overdue status, queries and mutations
- tools.py: tool catalog + dispatcher used by the tool server
"""
