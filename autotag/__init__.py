"""Obsidian AutoTag: LLM tag suggestions merged into markdown notes."""
