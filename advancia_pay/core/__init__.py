"""Core building blocks shared by the server: logging, monitoring, errors, models and persistence."""
