"""Domain modules for the productivity app."""
