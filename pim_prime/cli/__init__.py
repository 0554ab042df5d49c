"""Interactive terminal front end."""
