"""
Casos de uso del servicio de integracion.
"""
