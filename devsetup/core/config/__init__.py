"""Configuration readers — repository files and the package catalogue."""
