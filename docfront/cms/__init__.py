"""Headless CMS access: query encoding, HTTP client and response normalization."""
