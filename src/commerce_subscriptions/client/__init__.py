"""Platform API client."""
