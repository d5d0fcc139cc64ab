"""
Propabridge: marketplace de alquileres en Nigeria.

Núcleo de búsqueda: scoring de propiedades contra criterios,
sugerencias alternativas y extracción de criterios desde texto libre.
"""

__version__ = "0.1.0"
