"""Core application layer: request orchestration and command handling."""
