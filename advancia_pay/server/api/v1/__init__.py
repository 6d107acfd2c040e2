"""Version 1 API endpoints, mounted under ``/api``."""
