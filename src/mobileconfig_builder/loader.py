"""
Recipe loader: build a Profile from a JSON description.

A recipe is a JSON object holding the profile's keys. PayloadContent is a
list of objects, each naming its PayloadType:

    {
        "PayloadDisplayName": "Office Wi-Fi",
        "PayloadIdentifier": "com.example.office",
        "PayloadContent": [
            {"PayloadType": "com.apple.wifi.managed", "SSID_STR": "Office",
             "EncryptionType": "WPA", "EAPClientConfiguration": {"AcceptEAPTypes": [25]}},
            {"PayloadType": "com.apple.security.root", "PayloadContent": "ca.der"}
        ]
    }

Data keys hold file paths, relative to the recipe file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Type, Union

from .errors import InvalidValueError, ProfileError
from .payload import Payload
from .payloads import PAYLOAD_TYPES
from .profile import Profile
from .schema import Field
from .types import ValueType

logger = logging.getLogger(__name__)


class RecipeLoader:
    """Builds payload trees from JSON recipes."""

    def __init__(
        self,
        payload_types: Optional[Dict[str, Type[Payload]]] = None,
        base_dir: Optional[Path] = None,
    ):
        """
        Initialize the recipe loader.

        Args:
            payload_types: PayloadType -> class for PayloadContent entries.
                Defaults to every built-in payload family.
            base_dir: Directory Data paths are resolved against when
                building from a dict. load() uses the recipe's directory.
        """
        self.payload_types = dict(PAYLOAD_TYPES if payload_types is None else payload_types)
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()

    def load(self, path: Union[str, Path]) -> Profile:
        """
        Load a recipe file.

        Raises:
            ProfileError: The recipe can not be read or describes an
                invalid profile.
        """
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                recipe = json.load(f)
        except FileNotFoundError:
            raise ProfileError(f"Recipe not found: {path}") from None
        except json.JSONDecodeError as e:
            raise ProfileError(f"Invalid JSON in {path}: {e}") from None
        except (OSError, UnicodeDecodeError) as e:
            raise ProfileError(f"Can not read recipe {path}: {e}") from None

        self.base_dir = path.resolve().parent
        return self.build(recipe)

    def build(self, recipe: Any) -> Profile:
        """Build a Profile from an already-parsed recipe."""
        if not isinstance(recipe, dict):
            raise ProfileError("Recipe must be a JSON object")
        profile = Profile()
        self._fill(profile, recipe, "")
        return profile

    def _fill(self, payload: Payload, data: Dict[str, Any], prefix: str) -> None:
        for key, value in data.items():
            path = f"{prefix}.{key}" if prefix else key
            field = payload.schema.get(key)
            if field is None:
                raise ProfileError(f"{path}: not a key of {payload.payload_type}")

            if field.fixed:
                if value != field.value:
                    raise InvalidValueError(f"Must be {field.value!r}, not {value!r}", path)
                continue

            if value is None:
                continue

            try:
                payload.fields[key] = self._convert(field, value, path)
            except InvalidValueError as e:
                if e.key == key:
                    e.key = path
                    e.args = (f"{path}: {e.reason}",)
                raise

    def _convert(self, field: Field, value: Any, path: str) -> Any:
        if field.type == ValueType.ARRAY:
            if not isinstance(value, list):
                raise InvalidValueError("Expected a list", path)
            return [
                self._convert_one(field, field.subtype, item, f"{path}[{index}]")
                for index, item in enumerate(value)
            ]
        if field.type == ValueType.DICT:
            if not isinstance(value, dict):
                raise InvalidValueError("Expected an object", path)
            return {
                k: self._convert_one(field, field.subtype, v, f"{path}.{k}")
                for k, v in value.items()
            }
        return self._convert_one(field, field.type, value, path)

    def _convert_one(self, field: Field, value_type: ValueType, value: Any, path: str) -> Any:
        if value_type in (ValueType.DATA, ValueType.NSDATA_BLOB) and isinstance(value, str):
            return self._read_data(value, path)
        if value_type == ValueType.CLASS and isinstance(value, dict):
            return self._build_payload(field, value, path)
        return value

    def _read_data(self, name: str, path: str) -> bytes:
        file_path = Path(name)
        if not file_path.is_absolute():
            file_path = self.base_dir / file_path
        logger.debug(f"Reading {path} from {file_path}")
        try:
            with open(file_path, "rb") as f:
                return f.read()
        except OSError as e:
            raise InvalidValueError(f"Can not read {file_path}: {e.strerror}", path) from None

    def _build_payload(self, field: Field, data: Dict[str, Any], path: str) -> Payload:
        cls = field.payload_class
        payload_type = data.get("PayloadType")
        if payload_type is not None:
            cls = self.payload_types.get(payload_type)
            if cls is None or not issubclass(cls, field.payload_class):
                raise ProfileError(f"{path}: unknown PayloadType {payload_type!r}")
        elif cls is Payload:
            raise ProfileError(f"{path}: PayloadType is required")

        payload = cls()
        self._fill(payload, data, path)
        return payload
