"""Core domain: models, configuration, conversion and encoding."""
