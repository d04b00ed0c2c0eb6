"""
Certificate payloads: install a certificate (or a certificate and private
key) on a device.

Use one of the concrete classes; each PayloadType expects its content in a
different format:

- PEMCertificate (com.apple.security.pem): PEM ("BEGIN CERTIFICATE") text.
- RootCertificate (com.apple.security.root): a DER-encoded certificate.
- PKCS12Certificate (com.apple.security.pkcs12): a password-protected
  PKCS#12 container holding a certificate and its private key.

Content must be given as bytes or a binary file object, even for PEM.
"""

from ..payload import Payload, validates
from ..schema import ALL_TARGETS, COMMON_FIELDS, Field, fixed_payload_type
from ..sniff import FORMAT_DER, FORMAT_PEM, Sniffer, X509Sniffer
from ..types import ValueType

CERTIFICATE_FIELDS = COMMON_FIELDS.extend(
    name="Certificate",
    PayloadCertificateFileName=Field(
        ValueType.STRING,
        ALL_TARGETS,
        optional=True,
        description="The certificate's filename.",
    ),
    PayloadContent=Field(
        ValueType.DATA,
        ALL_TARGETS,
        description="The certificate's contents, in binary form.",
    ),
)


class Certificate(Payload):
    """
    Common base for certificate payloads.

    Attributes:
        content_format: Format PayloadContent is sniffed as, or None.
        sniffer: Checks PayloadContent. Replace to use another library.
    """

    schema = CERTIFICATE_FIELDS
    content_format = None
    sniffer: Sniffer = X509Sniffer()

    @validates("PayloadContent")
    def _check_content(self, key, value, proceed):
        stream = proceed(value)
        if self.content_format is not None:
            self.sniffer.sniff(stream, self.content_format)
        return stream


class PEMCertificate(Certificate):
    """A single PEM-encoded certificate."""

    schema = CERTIFICATE_FIELDS.extend(
        fixed_payload_type("com.apple.security.pem"), name="PEMCertificate"
    )
    content_format = FORMAT_PEM


class RootCertificate(Certificate):
    """A single DER-encoded certificate, usually a certificate authority."""

    schema = CERTIFICATE_FIELDS.extend(
        fixed_payload_type("com.apple.security.root"), name="RootCertificate"
    )
    content_format = FORMAT_DER


class PKCS12Certificate(Certificate):
    """
    A certificate and private key in a PKCS#12 container.

    If Password is not set, the user is asked for it at install time.
    """

    schema = CERTIFICATE_FIELDS.extend(
        fixed_payload_type("com.apple.security.pkcs12"),
        name="PKCS12Certificate",
        Password=Field(
            ValueType.STRING,
            ALL_TARGETS,
            optional=True,
            private=True,
            description="The password used to decrypt the file.",
        ),
    )
