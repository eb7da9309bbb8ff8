"""Event registration API with a concurrency-safe seat reservation engine."""
