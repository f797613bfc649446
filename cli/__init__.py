"""casdoc command-line interface."""
