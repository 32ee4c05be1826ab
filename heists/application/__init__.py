"""Application layer: ports, queries, identity context, watchers and use cases."""
