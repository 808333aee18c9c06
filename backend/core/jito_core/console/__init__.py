"""Interactive operator console for bundle submission."""
