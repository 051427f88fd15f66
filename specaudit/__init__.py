"""Metadata validation and statistics for specification-conformance test files."""
