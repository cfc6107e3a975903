"""Core infrastructure: configuration, logging, errors and the Event Socket client."""
