"""Collaborator contracts and in-memory implementations."""
