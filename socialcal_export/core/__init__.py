"""Core utilities: configuration, logging, time, HTTP clients and errors."""
