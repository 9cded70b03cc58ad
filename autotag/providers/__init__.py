"""Text-generation backends and reply parsing."""
