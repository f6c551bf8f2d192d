"""Configuration, database handle, enums and errors."""
