"""
Servicio de integracion con el WMS.

Ingiere archivos XML de directorios monitoreados, los reconcilia contra la
base de datos (create-or-update) y sincroniza los cambios con el WMS externo.
"""

__version__ = "1.0.0"
