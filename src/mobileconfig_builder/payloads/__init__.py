"""
Payload families that can be placed in a Configuration profile.
"""

from .certificate import Certificate, PEMCertificate, PKCS12Certificate, RootCertificate
from .email import Email
from .font import Font
from .wifi import EAPClientConfiguration, WiFi

# PayloadType -> class
PAYLOAD_TYPES = {
    cls.schema["PayloadType"].value: cls
    for cls in (PEMCertificate, RootCertificate, PKCS12Certificate, Email, Font, WiFi)
}

__all__ = [
    "PAYLOAD_TYPES",
    "Certificate",
    "EAPClientConfiguration",
    "Email",
    "Font",
    "PEMCertificate",
    "PKCS12Certificate",
    "RootCertificate",
    "WiFi",
]
