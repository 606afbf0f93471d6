"""Data models for documents, page tasks and processing jobs."""
