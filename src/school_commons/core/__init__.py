"""Core building blocks shared by all school-commons features."""
