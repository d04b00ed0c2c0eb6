"""
Content sniffing for certificate payloads.

Certificate payloads check that their content really is a certificate in
the format their PayloadType promises. The check is pluggable: anything
with a ``sniff(stream, expected_format)`` method can be used.
"""

import logging
from typing import BinaryIO

from cryptography import x509

from .errors import InvalidValueError

logger = logging.getLogger(__name__)

FORMAT_PEM = "PEM"
FORMAT_DER = "DER"


class Sniffer:
    """Base class for content sniffers."""

    def sniff(self, stream: BinaryIO, expected_format: str) -> None:
        """
        Check that stream holds content in expected_format.

        The stream position is restored afterwards.

        Raises:
            InvalidValueError: If the content does not match.
        """
        raise NotImplementedError


class NullSniffer(Sniffer):
    """Accepts any content."""

    def sniff(self, stream: BinaryIO, expected_format: str) -> None:
        return None


class X509Sniffer(Sniffer):
    """Checks for X.509 certificates, PEM or DER encoded."""

    def sniff(self, stream: BinaryIO, expected_format: str) -> None:
        position = stream.tell()
        try:
            content = stream.read()
        finally:
            stream.seek(position)

        if expected_format == FORMAT_PEM:
            loader = x509.load_pem_x509_certificate
        elif expected_format == FORMAT_DER:
            loader = x509.load_der_x509_certificate
        else:
            raise InvalidValueError(f"Unknown certificate format {expected_format}")

        try:
            certificate = loader(content)
        except ValueError as e:
            raise InvalidValueError(f"Content is not a {expected_format} certificate: {e}") from None

        logger.debug(f"Found {expected_format} certificate for {certificate.subject.rfc4514_string()}")
