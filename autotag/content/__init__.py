"""Note text cleanup and content analysis."""
