"""Core application infrastructure: configuration."""
