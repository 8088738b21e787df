"""AI-facing tool surface: target location, content preparation and edit tools."""
