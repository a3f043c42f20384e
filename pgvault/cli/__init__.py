"""pgvault CLI: a single Typer command invoked by the scheduler.

All terminal output uses Rich; the run itself logs through ``logging``.
"""
