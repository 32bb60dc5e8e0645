"""Feature modules for school-commons."""
