"""HTTP surface. Build the application with ``widget_access.api.fastapi.app.create_app``."""
