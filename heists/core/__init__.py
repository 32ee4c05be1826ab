"""Core: configuration and runtime lifespan."""
