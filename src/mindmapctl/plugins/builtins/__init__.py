"""Built-in plugins registered by the workspace."""
