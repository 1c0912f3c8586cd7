"""
Cliente HTTP de la API del WMS.
"""
from wms_integration.infrastructure.external.wms.wms_client import WmsApiClient, build_wms_client


__all__ = ["WmsApiClient", "build_wms_client"]
