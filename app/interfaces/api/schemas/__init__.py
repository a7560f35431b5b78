from .alert import MarkReadRequest, MarkReadResponse, ServiceStatusRead

__all__ = ["MarkReadRequest", "MarkReadResponse", "ServiceStatusRead"]
