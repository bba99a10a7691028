"""Post-delete verification."""
