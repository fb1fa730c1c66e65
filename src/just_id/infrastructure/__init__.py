"""Infrastructure layer: identity resolution strategies and their orchestration."""
