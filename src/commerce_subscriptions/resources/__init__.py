"""Resource lifecycles."""
