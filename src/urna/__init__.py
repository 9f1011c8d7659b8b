"""Urna: servicio de recolección de votos firmados con ventana de votación.

English:
    Urna: signed ballot collection service with a time-boxed voting window.
"""

__version__ = "0.1.0"
