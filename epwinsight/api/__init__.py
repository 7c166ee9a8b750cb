"""HTTP API exposing parsing, analysis and cache management."""
