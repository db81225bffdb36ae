"""JSON schemas for webhook payloads and API responses."""
