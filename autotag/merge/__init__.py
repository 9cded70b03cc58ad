"""Reconciling new tags with a note's existing tags."""
