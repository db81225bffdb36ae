"""HTTP surface: JSON endpoints, page routes and payload schemas."""
