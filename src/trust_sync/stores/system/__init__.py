"""System CA bundle."""
