"""HTTP blueprints mounted under ``/api``."""
