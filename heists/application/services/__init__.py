"""Application services: codename generation and display formatting."""
