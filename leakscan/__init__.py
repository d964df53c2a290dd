"""leakscan — file and PE binary credential leak scanner."""

__version__ = "1.0.0"
