"""Command-line interface for GeneSel-ML."""
