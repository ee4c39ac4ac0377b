"""Worker runtime for orchestrator-driven jobs and supervised continuous workers."""
