"""Tests for serialization, filtering and export."""

import io
import plistlib
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from mobileconfig_builder import (
    IncompleteExportError,
    Profile,
    ProfileError,
    Target,
    ValueType,
    export,
    export_file,
    render,
)
from mobileconfig_builder.serialize import ExportOptions, serialize_payload, serialize_value

from sample_payloads import Person, Sample


def filled_sample() -> Sample:
    sample = Sample()
    sample.fields["PayloadIdentifier"] = "com.example.sample"
    sample.fields["PayloadUUID"] = "12345678-1234-5678-1234-567812345678"
    sample.fields["Title"] = "Hello"
    sample.fields["Tags"] = ["a", "b"]
    return sample


class TestExportOptions:
    """Tests for ExportOptions."""

    def test_parses_target_and_version(self):
        options = ExportOptions(target="ios", version="7.0")
        assert options.target is Target.IOS
        assert options.version == (7,)

    def test_version_needs_target(self):
        with pytest.raises(ProfileError):
            ExportOptions(version="7.0")


class TestSerializeValue:
    """Tests for individual value conversion."""

    def test_scalars(self):
        assert serialize_value(ValueType.STRING, "x") == "x"
        assert serialize_value(ValueType.INTEGER, 5) == 5
        assert serialize_value(ValueType.REAL, 2) == 2.0
        assert serialize_value(ValueType.BOOLEAN, 1) is True

    def test_uuid_uppercase(self):
        value = uuid.UUID("abcdefab-1234-5678-9abc-def012345678")
        assert serialize_value(ValueType.UUID, value) == "ABCDEFAB-1234-5678-9ABC-DEF012345678"

    def test_date_converted_to_utc(self):
        moment = datetime(2014, 8, 1, 14, 30, 15, 500, tzinfo=timezone(timedelta(hours=2)))
        assert serialize_value(ValueType.DATE, moment) == datetime(2014, 8, 1, 12, 30, 15)

    def test_data_read_from_stream(self):
        assert serialize_value(ValueType.DATA, io.BytesIO(b"abc")) == b"abc"

    def test_collections(self):
        assert serialize_value(ValueType.ARRAY, [1, 2], ValueType.INTEGER) == [1, 2]
        assert serialize_value(ValueType.DICT, {"a": "b"}, ValueType.STRING) == {"a": "b"}


class TestSerializePayload:
    """Tests for whole-payload serialization and filtering."""

    def test_only_set_keys(self):
        person = Person()
        person.fields["Age"] = 30
        assert serialize_payload(person) == {"Age": 30}

    def test_fixed_values_included(self):
        tree = serialize_payload(filled_sample())
        assert tree["PayloadType"] == "com.example.sample"
        assert tree["PayloadVersion"] == 1
        assert tree["PayloadUUID"] == "12345678-1234-5678-1234-567812345678"

    def test_schema_order(self):
        sample = filled_sample()
        sample.fields["Count"] = 1
        keys = list(serialize_payload(sample))
        assert keys.index("Title") < keys.index("Count") < keys.index("Tags")

    def test_nested(self):
        sample = filled_sample()
        sample.fields["Owner"].fields["Age"] = 40
        sample.fields["Members"].append(Person())
        sample.fields["Members"][0].fields["Name"] = "Bob"
        tree = serialize_payload(sample)
        assert tree["Owner"] == {"Age": 40}
        assert tree["Members"] == [{"Name": "Bob"}]

    def test_no_target_exports_everything(self):
        sample = filled_sample()
        sample.fields["PhoneOnly"] = "x"
        sample.fields["Newer"] = True
        tree = serialize_payload(sample)
        assert "PhoneOnly" in tree
        assert "Newer" in tree

    def test_unsupported_target_dropped(self):
        sample = filled_sample()
        sample.fields["PhoneOnly"] = "x"
        tree = serialize_payload(sample, ExportOptions(target=Target.MACOS))
        assert "PhoneOnly" not in tree
        assert tree["Title"] == "Hello"

    def test_old_version_dropped(self):
        sample = filled_sample()
        sample.fields["Newer"] = True
        assert "Newer" not in serialize_payload(sample, ExportOptions(target="iOS", version="6.1"))
        assert "Newer" in serialize_payload(sample, ExportOptions(target="iOS", version="7.0"))
        assert "Newer" in serialize_payload(sample, ExportOptions(target="iOS"))

    def test_version_compared_numerically(self):
        sample = filled_sample()
        sample.fields["Newer"] = True
        assert "Newer" in serialize_payload(sample, ExportOptions(target="macOS", version="10.10"))

    def test_completeness_raises(self):
        sample = filled_sample()
        sample.fields["PhoneOnly"] = "x"
        with pytest.raises(IncompleteExportError) as exc_info:
            serialize_payload(sample, ExportOptions(target="macOS", completeness=True))
        assert exc_info.value.key == "PhoneOnly"
        assert "macOS" in str(exc_info.value)

    def test_completeness_on_profile_keys(self):
        profile = Profile()
        profile.fields["PayloadScope"] = "System"
        with pytest.raises(IncompleteExportError):
            serialize_payload(profile, ExportOptions(target="iOS", completeness=True))

    def test_dropped_key_logged(self, caplog):
        sample = filled_sample()
        sample.fields["PhoneOnly"] = "x"
        with caplog.at_level("DEBUG", logger="mobileconfig_builder.serialize"):
            serialize_payload(sample, ExportOptions(target="macOS"))
        assert "PhoneOnly" in caplog.text


class TestExport:
    """Tests for the export entry point."""

    def test_end_to_end(self):
        """Age=30, Name unset: the document has Age and no Name."""
        person = Person()
        person.fields["Age"] = 30
        assert person.exportable()
        document = plistlib.loads(export(person))
        assert document == {"Age": 30}

    def test_xml_plist(self):
        xml = export(filled_sample())
        assert xml.startswith(b"<?xml")
        assert b"<!DOCTYPE plist" in xml

    def test_populates_ids(self):
        sample = Sample()
        sample.fields["Title"] = "Hello"
        sample.fields["Tags"] = ["a"]
        document = plistlib.loads(export(sample))
        assert document["PayloadIdentifier"].startswith("payload")
        assert uuid.UUID(document["PayloadUUID"])
        assert document["PayloadUUID"] == document["PayloadUUID"].upper()

    def test_export_twice_same_ids(self):
        sample = filled_sample()
        del sample.fields["PayloadUUID"]
        assert export(sample) == export(sample)

    def test_profile_export(self):
        profile = Profile()
        profile.fields["PayloadDisplayName"] = "Example"
        profile.fields["PayloadContent"].append(filled_sample())
        document = plistlib.loads(profile.export())
        assert document["PayloadType"] == "Configuration"
        assert document["PayloadContent"][0]["Title"] == "Hello"

    def test_dates_written_in_utc(self):
        sample = filled_sample()
        sample.fields["When"] = datetime(2014, 8, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        assert b"<date>2014-08-01T12:00:00Z</date>" in export(sample)

    def test_data_written_base64(self):
        sample = filled_sample()
        sample.fields["Blob"] = b"\x00\x01\x02"
        assert plistlib.loads(export(sample))["Blob"] == b"\x00\x01\x02"
        # The stream is left where it was, so exporting again gives the same bytes
        assert plistlib.loads(export(sample))["Blob"] == b"\x00\x01\x02"

    def test_export_file(self, tmp_path):
        path = export_file(filled_sample(), tmp_path / "sample.mobileconfig")
        with open(path, "rb") as f:
            assert plistlib.load(f)["Title"] == "Hello"

    def test_failed_export_writes_nothing(self, tmp_path):
        sample = filled_sample()
        sample.fields["PhoneOnly"] = "x"
        path = tmp_path / "sample.mobileconfig"
        with pytest.raises(IncompleteExportError):
            export_file(sample, path, target="macOS", completeness=True)
        assert not path.exists()


EXAMPLE_UUID = uuid.UUID("0f8fad5b-d9cb-469f-a165-70867728950e")
SOUTH_OF_UTC = timezone(timedelta(hours=-5))


class TestRoundTrip:
    """A value set on a payload reads back from the rendered plist unchanged."""

    @pytest.mark.parametrize(
        "key, value, expected",
        [
            ("Title", "Grüße\nzweite Zeile", "Grüße\nzweite Zeile"),
            ("PayloadIdentifier", "com.example.other", "com.example.other"),
            ("Count", "-42", -42),
            ("Count", 2 ** 63 - 1, 2 ** 63 - 1),
            ("Ratio", 0.1, 0.1),
            ("Ratio", "1e-07", 1e-07),
            ("Ratio", -2.5e300, -2.5e300),
            ("Enabled", True, True),
            ("Enabled", 0, False),
            ("Blob", b"\x00\xffbinary", b"\x00\xffbinary"),
            ("When", datetime(2014, 8, 1, 20, 15, 30, 999999, tzinfo=SOUTH_OF_UTC), datetime(2014, 8, 2, 1, 15, 30)),
            ("When", "2014-08-01", datetime(2014, 8, 1)),
        ],
    )
    def test_scalar(self, key, value, expected):
        sample = filled_sample()
        sample.fields[key] = value
        loaded = plistlib.loads(export(sample))[key]
        assert loaded == expected
        assert type(loaded) is type(expected)

    @pytest.mark.parametrize("value", [EXAMPLE_UUID, str(EXAMPLE_UUID), EXAMPLE_UUID.hex, "{%s}" % EXAMPLE_UUID])
    def test_uuid(self, value):
        sample = filled_sample()
        sample.fields["Ref"] = value
        assert uuid.UUID(plistlib.loads(export(sample))["Ref"]) == EXAMPLE_UUID

    def test_tiny_real_uses_uppercase_exponent(self):
        sample = filled_sample()
        sample.fields["Ratio"] = 1e-07
        assert b"<real>1E-07</real>" in export(sample)


class TestRender:
    """Tests for plist rendering."""

    def test_real_exponent_uppercase(self):
        assert b"<real>1E+20</real>" in render({"x": 1e20})

    def test_plain_reals_unchanged(self):
        assert b"<real>1.5</real>" in render({"x": 1.5})
