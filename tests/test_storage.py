"""Tests for PayloadFields, PayloadArray and PayloadDict."""

import io
from datetime import datetime, timedelta, timezone

import pytest

from mobileconfig_builder import (
    InvalidValueError,
    MissingInputError,
    UnknownFieldError,
    UnsupportedOperationError,
)
from mobileconfig_builder.storage import PayloadArray, PayloadDict

from sample_payloads import Person, Sample


def int_array(*items) -> PayloadArray:
    sample = Person()
    return PayloadArray(lambda v: sample.validate_field("Age", v), items)


class TestPayloadFields:
    """Tests for the per-payload field store."""

    def test_unset_scalar_reads_none(self):
        sample = Sample()
        assert sample.fields["Title"] is None
        assert not sample.fields.is_set("Title")

    def test_set_and_read(self):
        sample = Sample()
        sample.fields["Count"] = "42"
        assert sample.fields["Count"] == 42
        assert sample.fields.is_set("Count")

    def test_unknown_key(self):
        sample = Sample()
        with pytest.raises(UnknownFieldError):
            sample.fields["Unknown"] = "x"
        with pytest.raises(UnknownFieldError):
            sample.fields["Unknown"]

    def test_contains_is_schema_membership(self):
        """'in' asks whether the key exists, not whether it is set."""
        sample = Sample()
        assert "Title" in sample.fields
        assert "Unknown" not in sample.fields
        assert list(sample.fields) == []

    def test_iteration_covers_stored_values(self):
        sample = Sample()
        sample.fields["Title"] = "Hello"
        assert list(sample.fields) == ["Title"]
        assert len(sample.fields) == 1

    def test_fixed_value_reads_back(self):
        sample = Sample()
        assert sample.fields["PayloadType"] == "com.example.sample"
        assert sample.fields["PayloadVersion"] == 1
        assert sample.fields.is_set("PayloadType")

    def test_fixed_value_can_not_be_set(self):
        sample = Sample()
        with pytest.raises(UnsupportedOperationError):
            sample.fields["PayloadType"] = "com.example.other"
        assert sample.fields["PayloadType"] == "com.example.sample"

    def test_failed_set_keeps_old_value(self):
        sample = Sample()
        sample.fields["Count"] = 5
        with pytest.raises(InvalidValueError):
            sample.fields["Count"] = "five"
        assert sample.fields["Count"] == 5

    def test_none_is_refused(self):
        sample = Sample()
        with pytest.raises(MissingInputError):
            sample.fields["Title"] = None

    @pytest.mark.parametrize("key", ["Tags", "Labels"])
    def test_none_is_refused_for_collections(self, key):
        sample = Sample()
        with pytest.raises(MissingInputError) as exc_info:
            sample.fields[key] = None
        assert exc_info.value.key == key
        assert not sample.fields.is_set(key)

    def test_out_of_range_date_not_stored(self):
        """A date that can not be expressed in UTC is refused when set, not on export."""
        sample = Sample()
        late = datetime(9999, 12, 31, 23, 30, tzinfo=timezone(timedelta(hours=-1)))
        with pytest.raises(InvalidValueError):
            sample.fields["When"] = late
        assert not sample.fields.is_set("When")

    def test_delete_unsets(self):
        """Deleting an unset key is not an error."""
        sample = Sample()
        sample.fields["Title"] = "Hello"
        del sample.fields["Title"]
        del sample.fields["Title"]
        assert sample.fields["Title"] is None

    def test_lazy_array(self):
        """An unset array reads as an empty array that is stored for reuse."""
        sample = Sample()
        assert not sample.fields.is_set("Tags")
        tags = sample.fields["Tags"]
        assert len(tags) == 0
        tags.append("one")
        assert sample.fields["Tags"] == ["one"]
        assert sample.fields.is_set("Tags")

    def test_lazy_dict_and_class(self):
        sample = Sample()
        sample.fields["Labels"]["en"] = "Hello"
        assert dict(sample.fields["Labels"]) == {"en": "Hello"}
        owner = sample.fields["Owner"]
        assert isinstance(owner, Person)
        assert sample.fields["Owner"] is owner

    def test_peek_does_not_create(self):
        sample = Sample()
        assert sample.fields.peek("Tags") is None
        assert not sample.fields.is_set("Tags")

    def test_assign_array(self):
        sample = Sample()
        sample.fields["Tags"] = ("a", "b")
        assert isinstance(sample.fields["Tags"], PayloadArray)
        assert sample.fields["Tags"] == ["a", "b"]

    def test_assign_array_is_atomic(self):
        """One bad item and nothing is replaced."""
        sample = Sample()
        sample.fields["Tags"] = ["keep"]
        with pytest.raises(InvalidValueError):
            sample.fields["Tags"] = ["ok", ""]
        assert sample.fields["Tags"] == ["keep"]

    def test_assign_string_to_array_rejected(self):
        sample = Sample()
        with pytest.raises(InvalidValueError):
            sample.fields["Tags"] = "not a list"

    def test_assign_dict(self):
        sample = Sample()
        sample.fields["Labels"] = {"a": "1"}
        assert isinstance(sample.fields["Labels"], PayloadDict)
        with pytest.raises(InvalidValueError):
            sample.fields["Labels"] = ["not", "a", "dict"]

    def test_class_checks_payload_class(self):
        sample = Sample()
        with pytest.raises(InvalidValueError):
            sample.fields["Owner"] = Sample()
        person = Person()
        sample.fields["Owner"] = person
        assert sample.fields["Owner"] is person

    def test_data_bytes_stored_as_stream(self):
        sample = Sample()
        sample.fields["Blob"] = b"\x01\x02"
        assert isinstance(sample.fields["Blob"], io.BytesIO)

    def test_clear(self):
        sample = Sample()
        sample.fields["Title"] = "Hello"
        sample.fields.clear()
        assert len(sample.fields) == 0


class TestPayloadArray:
    """Tests for the validated array."""

    def test_append_and_validate(self):
        array = int_array()
        assert array.append(1, "2") == 2
        assert array == [1, 2]

    def test_append_is_atomic(self):
        array = int_array(1)
        with pytest.raises(InvalidValueError):
            array.append(2, "three")
        assert array == [1]

    def test_none_items_refused(self):
        array = int_array()
        with pytest.raises(MissingInputError):
            array.append(None)

    def test_prepend_keeps_order(self):
        array = int_array(3)
        array.prepend(1, 2)
        assert array == [1, 2, 3]

    def test_pop_and_shift(self):
        array = int_array(1, 2, 3)
        assert array.pop() == 3
        assert array.shift() == 1
        assert array == [2]

    def test_pop_and_shift_empty(self):
        array = int_array()
        assert array.pop() is None
        assert array.shift() is None

    def test_indexed_store_refused(self):
        array = int_array(1, 2)
        with pytest.raises(UnsupportedOperationError):
            array[0] = 5
        with pytest.raises(UnsupportedOperationError):
            del array[0]
        assert array == [1, 2]

    def test_reading(self):
        array = int_array(1, 2, 3)
        assert array[0] == 1
        assert array[-1] == 3
        assert array[1:] == [2, 3]
        assert 2 in array
        assert list(reversed(array)) == [3, 2, 1]

    def test_splice(self):
        array = int_array(1, 2, 3, 4, 5)
        removed = array.splice(1, 2, 20, 30, 40)
        assert removed == [2, 3]
        assert array == [1, 20, 30, 40, 4, 5]

    def test_splice_defaults(self):
        """Omitting length removes everything from offset."""
        array = int_array(1, 2, 3)
        assert array.splice(1) == [2, 3]
        assert array == [1]

    def test_splice_negative(self):
        """Negative offsets count from the end; negative lengths leave items at the end."""
        array = int_array(1, 2, 3, 4, 5)
        assert array.splice(-2) == [4, 5]
        array = int_array(1, 2, 3, 4, 5)
        assert array.splice(1, -1) == [2, 3, 4]
        assert array == [1, 5]

    def test_splice_validates_first(self):
        array = int_array(1, 2, 3)
        with pytest.raises(InvalidValueError):
            array.splice(0, 1, "bad")
        assert array == [1, 2, 3]

    def test_insert_extend_iadd(self):
        array = int_array(1, 3)
        array.insert(1, 2)
        array.extend([4])
        array += [5]
        assert array == [1, 2, 3, 4, 5]

    def test_clear(self):
        array = int_array(1, 2)
        array.clear()
        assert len(array) == 0


class TestPayloadDict:
    """Tests for the validated dictionary."""

    def make(self) -> PayloadDict:
        sample = Person()
        return PayloadDict(lambda v: sample.validate_field("Age", v))

    def test_set_validates(self):
        data = self.make()
        data["a"] = "7"
        assert data["a"] == 7
        with pytest.raises(InvalidValueError):
            data["b"] = "seven"
        assert "b" not in data

    def test_keys_must_be_non_empty_strings(self):
        data = self.make()
        with pytest.raises(InvalidValueError):
            data[""] = 1
        with pytest.raises(InvalidValueError):
            data[5] = 1

    def test_none_refused(self):
        data = self.make()
        with pytest.raises(MissingInputError):
            data["a"] = None

    def test_delete(self):
        data = self.make()
        data.update({"a": 1, "b": 2})
        del data["a"]
        assert dict(data) == {"b": 2}
        with pytest.raises(KeyError):
            del data["missing"]
