"""Map Veto - client coordination core for competitive map pick/ban sessions."""

__version__ = "0.1.0"
