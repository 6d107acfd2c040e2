"""Server configuration, constants and security primitives."""
