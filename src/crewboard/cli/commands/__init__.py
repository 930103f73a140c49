"""CLI command groups for crewboard."""
