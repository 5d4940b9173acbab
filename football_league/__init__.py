"""Console de démonstration d'une couche d'accès aux données pour ligues de football."""

__version__ = "1.0.0"
