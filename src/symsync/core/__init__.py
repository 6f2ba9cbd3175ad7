"""Core engine for symsync: branch registry, parsers, and store access."""
