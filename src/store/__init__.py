"""Boot session storage layer.

This package owns per-boot gzip archives and their YAML metadata
records, including append, rollback, and atomic rewrite behaviour.
"""
