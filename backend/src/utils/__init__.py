"""Small helpers shared by services."""
