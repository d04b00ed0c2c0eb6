"""
Email payload: configure a POP or IMAP email account.
"""

import ipaddress
import re

from ..errors import InvalidValueError
from ..payload import Payload, validates
from ..schema import ALL_TARGETS, COMMON_FIELDS, Field, fixed_payload_type
from ..types import Target, ValueType
from ..validation import DOMAIN_RE

ACCOUNT_TYPES = ("EmailTypePOP", "EmailTypeIMAP")
AUTHENTICATION_TYPES = ("EmailAuthPassword", "EmailAuthNone")

# Local part and domain of an address, without display names or comments
_ADDRESS_RE = re.compile(
    r"^[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"@(?P<domain>[^@\s]+)$"
)


def is_hostname(value: str) -> bool:
    """True for a domain name, an IPv4 address or an IPv6 address."""
    if DOMAIN_RE.match(value):
        return True
    try:
        ipaddress.ip_address(value.strip("[]"))
    except ValueError:
        return False
    return True


def _ios(version: str = "5.0"):
    return {Target.IOS: version}


EMAIL_FIELDS = COMMON_FIELDS.extend(
    fixed_payload_type("com.apple.mail.managed"),
    name="Email",
    # About the user
    EmailAccountDescription=Field(
        ValueType.STRING, ALL_TARGETS, optional=True,
        description="The description shown in the Mail and Settings applications.",
    ),
    EmailAccountName=Field(
        ValueType.STRING, ALL_TARGETS, optional=True,
        description="The user's full name.",
    ),
    EmailAddress=Field(
        ValueType.STRING, ALL_TARGETS, optional=True,
        description="The user's email address.",
    ),
    # Fetching mail
    EmailAccountType=Field(
        ValueType.STRING, ALL_TARGETS,
        description="EmailTypePOP or EmailTypeIMAP.",
    ),
    IncomingMailServerHostName=Field(
        ValueType.STRING, ALL_TARGETS,
        description="The host name or IP address of the incoming mail server.",
    ),
    IncomingMailServerPortNumber=Field(
        ValueType.INTEGER, ALL_TARGETS, optional=True,
        description="The port of the incoming mail server.",
    ),
    IncomingMailServerUseSSL=Field(
        ValueType.BOOLEAN, ALL_TARGETS,
        description="Use SSL when fetching mail.",
    ),
    IncomingMailServerAuthentication=Field(
        ValueType.STRING, ALL_TARGETS,
        description="EmailAuthPassword or EmailAuthNone.",
    ),
    IncomingMailServerUsername=Field(
        ValueType.STRING, ALL_TARGETS, optional=True,
        description="The user name used to fetch mail.",
    ),
    IncomingPassword=Field(
        ValueType.STRING, ALL_TARGETS, optional=True, private=True,
        description="The password used to fetch mail.",
    ),
    # Sending mail
    OutgoingMailServerHostName=Field(
        ValueType.STRING, ALL_TARGETS,
        description="The host name or IP address of the outgoing mail server.",
    ),
    OutgoingMailServerPortNumber=Field(
        ValueType.INTEGER, ALL_TARGETS, optional=True,
        description="The port of the outgoing mail server.",
    ),
    OutgoingMailServerUseSSL=Field(
        ValueType.BOOLEAN, ALL_TARGETS,
        description="Use SSL when sending mail.",
    ),
    OutgoingMailServerAuthentication=Field(
        ValueType.STRING, ALL_TARGETS,
        description="EmailAuthPassword or EmailAuthNone.",
    ),
    OutgoingMailServerUsername=Field(
        ValueType.STRING, ALL_TARGETS, optional=True,
        description="The user name used to send mail.",
    ),
    OutgoingPassword=Field(
        ValueType.STRING, ALL_TARGETS, optional=True, private=True,
        description="The password used to send mail.",
    ),
    OutgoingPasswordSameAsIncomingPassword=Field(
        ValueType.BOOLEAN, ALL_TARGETS, optional=True,
        description="Reuse the incoming password when sending mail.",
    ),
    # S/MIME
    SMIMEEnabled=Field(
        ValueType.BOOLEAN, _ios(), optional=True,
        description="Enable S/MIME signing and encryption.",
    ),
    SMIMESigningCertificateUUID=Field(
        ValueType.UUID, _ios(), optional=True,
        description="PayloadUUID of the identity certificate used to sign mail.",
    ),
    SMIMEEncryptionCertificateUUID=Field(
        ValueType.UUID, _ios(), optional=True,
        description="PayloadUUID of the identity certificate used to decrypt mail.",
    ),
    SMIMEEnablePerMessageSwitch=Field(
        ValueType.BOOLEAN, _ios("8.0"), optional=True,
        description="Let the user turn S/MIME on and off per message.",
    ),
    # Interaction with other applications
    PreventMove=Field(
        ValueType.BOOLEAN, _ios(), optional=True,
        description="Prevent moving messages out of this account.",
    ),
    PreventAppSheet=Field(
        ValueType.BOOLEAN, _ios(), optional=True,
        description="Prevent other applications from sending mail with this account.",
    ),
    disableMailRecentsSyncing=Field(
        ValueType.BOOLEAN, _ios("6.0"), optional=True,
        description="Exclude this account from Recent Addresses syncing.",
    ),
)


class Email(Payload):
    """A POP or IMAP email account."""

    schema = EMAIL_FIELDS

    @validates("EmailAddress")
    def _check_address(self, key, value, proceed):
        address = proceed(value).strip()
        match = _ADDRESS_RE.match(address)
        if not match or not is_hostname(match.group("domain")):
            raise InvalidValueError(f"{value!r} is not an email address", key)
        return address

    @validates("EmailAccountType")
    def _check_account_type(self, key, value, proceed):
        if value not in ACCOUNT_TYPES:
            raise InvalidValueError(f"Must be one of {', '.join(ACCOUNT_TYPES)}", key)
        return proceed(value)

    @validates("IncomingMailServerHostName", "OutgoingMailServerHostName")
    def _check_hostname(self, key, value, proceed):
        hostname = proceed(value)
        if not is_hostname(hostname):
            raise InvalidValueError(f"{hostname!r} is not a host name or IP address", key)
        return hostname

    @validates("IncomingMailServerPortNumber", "OutgoingMailServerPortNumber")
    def _check_port(self, key, value, proceed):
        port = proceed(value)
        if not 0 < port < 65535:
            raise InvalidValueError(f"Port {port} must be between 1 and 65534", key)
        return port

    @validates("IncomingMailServerAuthentication", "OutgoingMailServerAuthentication")
    def _check_authentication(self, key, value, proceed):
        if value not in AUTHENTICATION_TYPES:
            raise InvalidValueError(f"Must be one of {', '.join(AUTHENTICATION_TYPES)}", key)
        return proceed(value)
