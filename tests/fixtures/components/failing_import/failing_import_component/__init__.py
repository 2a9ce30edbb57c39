"""Fixture component that cannot be imported."""

raise RuntimeError("unable to initialize failing_import")
