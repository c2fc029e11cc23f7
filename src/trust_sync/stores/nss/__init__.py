"""Firefox/NSS certificate databases."""
