"""
Wi-Fi payload: configure a wireless network, optionally with EAP
(WPA-Enterprise) authentication and a proxy.
"""

import re

from ..errors import InvalidValueError
from ..payload import Payload, validates
from ..schema import ALL_TARGETS, COMMON_FIELDS, Field, Schema, fixed_payload_type
from ..types import Target, ValueType

ENCRYPTION_TYPES = ("WEP", "WPA", "Any", "None")
PROXY_TYPES = ("None", "Manual", "Auto")
EAP_TYPES = (13, 17, 18, 21, 23, 25, 43)
TTLS_INNER_AUTHENTICATIONS = ("PAP", "CHAP", "MSCHAP", "MSCHAPv2")

# Host or domain names where any label may contain "*" wildcards
_WILDCARD_LABEL = r"[A-Z0-9*](?:[-A-Z0-9*]{0,253}[A-Z0-9*])?"
WILDCARD_HOSTNAME_RE = re.compile(
    rf"^{_WILDCARD_LABEL}(?:\.{_WILDCARD_LABEL})*$", re.IGNORECASE
)
MCC_MNC_RE = re.compile(r"^\d{6}$")

HOTSPOT_TARGETS = {Target.IOS: "7.0", Target.MACOS: "10.7"}


def _field(value_type, description, targets=ALL_TARGETS, **kwargs):
    return Field(value_type, targets, description=description, **kwargs)


class EAPClientConfiguration(Payload):
    """
    EAP settings for a Wi-Fi network using WPA-Enterprise or
    WPA2-Enterprise. Only ever used inside a WiFi payload, so it has none
    of the common payload keys.
    """

    schema = Schema(
        name="EAPClientConfiguration",
        AcceptEAPTypes=_field(
            ValueType.ARRAY, "The list of EAP types to accept.",
            subtype=ValueType.INTEGER,
        ),
        UserName=_field(
            ValueType.STRING,
            "The exact user name. If not present, the user is prompted when they authenticate.",
            optional=True,
        ),
        OuterIdentity=_field(
            ValueType.STRING, "The outer identity to use in TTLS, PEAP, and EAP-FAST.",
            optional=True,
        ),
        UserPassword=_field(
            ValueType.STRING,
            "The password. If not present, the user is prompted when they authenticate.",
            optional=True, private=True,
        ),
        OneTimePassword=_field(
            ValueType.BOOLEAN, "Prompt for the password on every connection.",
            optional=True,
        ),
        PayloadCertificateAnchorUUID=_field(
            ValueType.ARRAY, "Server certificate UUIDs to trust.",
            subtype=ValueType.UUID, optional=True,
        ),
        TLSTrustedServerNames=_field(
            ValueType.ARRAY, "Server certificate common names to trust.",
            subtype=ValueType.STRING, optional=True,
        ),
        TLSAllowTrustExceptions=_field(
            ValueType.BOOLEAN, "Let the user choose to trust the server certificate.",
            optional=True,
        ),
        TLSCertificateIsRequired=_field(
            ValueType.BOOLEAN, "Require a client certificate; the default depends on the EAP type.",
            targets=HOTSPOT_TARGETS, optional=True,
        ),
        TTLSInnerAuthentication=_field(
            ValueType.STRING, "The inner authentication method to use with TTLS.",
            optional=True,
        ),
        EAPFASTUsePAC=_field(
            ValueType.BOOLEAN, "Use an existing PAC if available.",
            optional=True,
        ),
        EAPFASTProvisionPAC=_field(
            ValueType.BOOLEAN, "Allow PAC provisioning.",
            optional=True,
        ),
        EAPFASTProvisionPACAnonymously=_field(
            ValueType.BOOLEAN, "Provision the PAC anonymously. Open to man-in-the-middle attacks.",
            optional=True,
        ),
        EAPSIMNumberOfRANDs=_field(
            ValueType.INTEGER, "The number of expected RANDs for EAP-SIM. Default is 3.",
            optional=True,
        ),
    )

    @validates("AcceptEAPTypes")
    def _check_eap_type(self, key, value, proceed):
        eap_type = proceed(value)
        if eap_type not in EAP_TYPES:
            raise InvalidValueError(f"Unsupported EAP type {eap_type}", key)
        return eap_type

    @validates("TLSTrustedServerNames")
    def _check_server_name(self, key, value, proceed):
        name = proceed(value)
        if not WILDCARD_HOSTNAME_RE.match(name):
            raise InvalidValueError(f"{name!r} is not a host name pattern", key)
        return name

    @validates("TTLSInnerAuthentication")
    def _check_inner_authentication(self, key, value, proceed):
        if value not in TTLS_INNER_AUTHENTICATIONS:
            raise InvalidValueError(f"Must be one of {', '.join(TTLS_INNER_AUTHENTICATIONS)}", key)
        return proceed(value)

    @validates("EAPSIMNumberOfRANDs")
    def _check_rands(self, key, value, proceed):
        rands = proceed(value)
        if rands not in (2, 3):
            raise InvalidValueError("Must be 2 or 3", key)
        return rands


class WiFi(Payload):
    """A Wi-Fi network."""

    schema = COMMON_FIELDS.extend(
        fixed_payload_type("com.apple.wifi.managed"),
        name="WiFi",
        SSID_STR=_field(
            ValueType.STRING, "The SSID of the Wi-Fi network.",
            optional=True,
        ),
        HIDDEN_NETWORK=_field(
            ValueType.BOOLEAN, "If false, the network is expected to be broadcasting.",
            optional=True,
        ),
        AutoJoin=_field(
            ValueType.BOOLEAN, "If false, do not auto-join the network. Default true.",
            optional=True,
        ),
        EncryptionType=_field(
            ValueType.STRING, "The encryption type for the Wi-Fi network.",
        ),
        Password=_field(
            ValueType.STRING, "The password, for password-based authentication.",
            optional=True, private=True,
        ),
        EAPClientConfiguration=_field(
            ValueType.CLASS, "EAP parameters, for EAP-based authentication.",
            optional=True, payload_class=EAPClientConfiguration,
        ),
        PayloadCertificateUUID=_field(
            ValueType.UUID, "UUID of the identity certificate, for certificate-based authentication.",
            optional=True,
        ),
        # Hotspot 2.0
        IsHotspot=_field(
            ValueType.BOOLEAN, "If true, treat the network as a hotspot.",
            targets=HOTSPOT_TARGETS, optional=True,
        ),
        DomainName=_field(
            ValueType.STRING, "Domain name to use for Hotspot 2.0 negotiation.",
            targets=HOTSPOT_TARGETS, optional=True,
        ),
        ServiceProviderRoamingEnabled=_field(
            ValueType.BOOLEAN, "Allow connection to roaming service providers.",
            targets=HOTSPOT_TARGETS, optional=True,
        ),
        RoamingConsortiumOIs=_field(
            ValueType.ARRAY, "Roaming Consortium OIs for Hotspot 2.0 negotiation.",
            targets=HOTSPOT_TARGETS, subtype=ValueType.STRING, optional=True,
        ),
        NAIRealmNames=_field(
            ValueType.ARRAY, "Network Access Identifier realm names for Hotspot 2.0 negotiation.",
            targets=HOTSPOT_TARGETS, subtype=ValueType.STRING, optional=True,
        ),
        MCCAndMNCs=_field(
            ValueType.ARRAY, "Mobile Country Code and Mobile Network Code pairs.",
            targets={Target.IOS: "7.0"}, subtype=ValueType.STRING, optional=True,
        ),
        DisplayedOperatorName=_field(
            ValueType.STRING, "The operator name to show for a hotspot.",
            targets=HOTSPOT_TARGETS, optional=True,
        ),
        # Proxy
        ProxyType=_field(
            ValueType.STRING, "The type of proxy to configure. Default is None.",
            optional=True,
        ),
        ProxyServer=_field(
            ValueType.STRING, "The proxy server's network address.",
            optional=True,
        ),
        ProxyPort=_field(
            ValueType.INTEGER, "The proxy server's port number.",
            optional=True,
        ),
        ProxyUsername=_field(
            ValueType.STRING, "A username to authenticate to the proxy.",
            optional=True,
        ),
        ProxyPassword=_field(
            ValueType.STRING, "A password to authenticate to the proxy.",
            optional=True, private=True,
        ),
        ProxyPACURL=_field(
            ValueType.STRING, "URL of the proxy auto-configuration file.",
            optional=True,
        ),
        ProxyPACFallbackAllowed=_field(
            ValueType.BOOLEAN, "If false, do not connect when the PAC file can not be fetched.",
            targets=HOTSPOT_TARGETS, optional=True,
        ),
    )

    @validates("EncryptionType")
    def _check_encryption_type(self, key, value, proceed):
        if value not in ENCRYPTION_TYPES:
            raise InvalidValueError(f"Must be one of {', '.join(ENCRYPTION_TYPES)}", key)
        return proceed(value)

    @validates("MCCAndMNCs")
    def _check_mcc_mnc(self, key, value, proceed):
        pair = proceed(value)
        if not MCC_MNC_RE.match(pair):
            raise InvalidValueError(f"{pair!r} is not a six-digit MCC and MNC", key)
        return pair

    @validates("ProxyType")
    def _check_proxy_type(self, key, value, proceed):
        if value not in PROXY_TYPES:
            raise InvalidValueError(f"Must be one of {', '.join(PROXY_TYPES)}", key)
        return proceed(value)

    @validates("ProxyPort")
    def _check_proxy_port(self, key, value, proceed):
        port = proceed(value)
        if not 1 <= port <= 65534:
            raise InvalidValueError(f"Port {port} must be between 1 and 65534", key)
        return port
