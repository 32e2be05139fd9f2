from .functions import (
    DocumentType,
    EdgeFunction,
    EmailType,
    FlyerFormat,
    FlyerStyle,
    FunctionsGateway,
)

__all__ = [
    "DocumentType",
    "EdgeFunction",
    "EmailType",
    "FlyerFormat",
    "FlyerStyle",
    "FunctionsGateway",
]
