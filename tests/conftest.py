"""Pytest fixtures for mobileconfig-builder tests."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID


@pytest.fixture(scope="session")
def certificate() -> x509.Certificate:
    """A self-signed certificate authority."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "Example Test CA")])
    issued = datetime.now(timezone.utc) - timedelta(days=1)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(issued)
        .not_valid_after(issued + timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )


@pytest.fixture(scope="session")
def pem_bytes(certificate: x509.Certificate) -> bytes:
    """The certificate, PEM encoded."""
    return certificate.public_bytes(serialization.Encoding.PEM)


@pytest.fixture(scope="session")
def der_bytes(certificate: x509.Certificate) -> bytes:
    """The certificate, DER encoded."""
    return certificate.public_bytes(serialization.Encoding.DER)


@pytest.fixture
def recipe_dir(tmp_path: Path, der_bytes: bytes) -> Path:
    """A directory holding a CA certificate and a recipe that uses it."""
    (tmp_path / "ca.der").write_bytes(der_bytes)
    recipe = {
        "PayloadDisplayName": "Office",
        "PayloadIdentifier": "com.example.office",
        "PayloadOrganization": "Example Inc",
        "PayloadContent": [
            {
                "PayloadType": "com.apple.wifi.managed",
                "PayloadVersion": 1,
                "SSID_STR": "Office",
                "EncryptionType": "WPA",
                "IsHotspot": False,
                "EAPClientConfiguration": {
                    "AcceptEAPTypes": [25, 21],
                    "UserName": "alice",
                    "TLSTrustedServerNames": ["*.example.com"],
                },
            },
            {
                "PayloadType": "com.apple.security.root",
                "PayloadCertificateFileName": "ca.der",
                "PayloadContent": "ca.der",
            },
        ],
    }
    (tmp_path / "recipe.json").write_text(json.dumps(recipe, indent=2))
    return tmp_path


@pytest.fixture
def recipe_path(recipe_dir: Path) -> Path:
    """Path to the recipe in recipe_dir."""
    return recipe_dir / "recipe.json"


def write_recipe(directory: Path, recipe: dict, name: str = "recipe.json") -> Path:
    path = directory / name
    path.write_text(json.dumps(recipe))
    return path


@pytest.fixture
def make_recipe(tmp_path: Path):
    """Write a recipe dict to a file and return its path."""
    return lambda recipe, name="recipe.json": write_recipe(tmp_path, recipe, name)
