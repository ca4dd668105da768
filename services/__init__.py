"""Domain services behind the HTTP blueprints."""
