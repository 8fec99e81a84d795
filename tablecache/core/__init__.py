"""Store engine, database access and runtime plumbing."""
