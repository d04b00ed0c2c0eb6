"""
Font payload: add a TrueType or OpenType font to an iOS device.
"""

from ..payload import Payload
from ..schema import COMMON_FIELDS, IOS_ONLY, Field, fixed_payload_type
from ..types import ValueType


class Font(Payload):
    """A single font file. Use one payload per font."""

    schema = COMMON_FIELDS.extend(
        fixed_payload_type("com.apple.font", IOS_ONLY),
        name="Font",
        Name=Field(
            ValueType.STRING,
            IOS_ONLY,
            optional=True,
            description="The user-visible name for the font.",
        ),
        Font=Field(
            ValueType.DATA,
            IOS_ONLY,
            description="The font file.",
        ),
    )
