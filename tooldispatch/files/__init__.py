"""File scaffolding and code-generation hand-off (FILE_CREATOR -> TASK_ASSIGNER)."""
