"""Install or remove a CA certificate in the system, NSS and Java trust stores."""

__version__ = "0.1.0"
