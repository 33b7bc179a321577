"""GitHub-specific collection and resolution steps."""
