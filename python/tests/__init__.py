"""corsgate test suite."""
