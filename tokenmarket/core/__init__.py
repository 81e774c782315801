"""Engine core: substrate, journal, accounts, registry, and error taxonomy."""
