"""Document ingestion: extraction, line cleaning and artifact persistence."""
