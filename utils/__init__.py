"""Request, response and authorization helpers shared by the blueprints."""
