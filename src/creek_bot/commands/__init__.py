"""Command implementations behind the creek-bot CLI."""
