"""Java cacerts keystore."""
