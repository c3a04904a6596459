"""Command-line interface for dbmigrate."""
