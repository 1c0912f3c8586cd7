"""
Servicios de aplicacion sin estado: parser XML y politica de reintentos.
"""
from wms_integration.application.services.xml_parser import XmlParserService, ParseResult, ParseStatus
from wms_integration.application.services.retry_policy import RetryPolicy, RetryExhaustedError


__all__ = [
    "XmlParserService",
    "ParseResult",
    "ParseStatus",
    "RetryPolicy",
    "RetryExhaustedError",
]
