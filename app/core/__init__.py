"""Noyau transverse MediVault : configuration, sécurité, authentification, erreurs."""
