from decimal import Decimal

import pytest
from boto3.dynamodb.types import Binary

from dynamo_migrate.errors import (
    EncodingError,
    EncodingTooDeepError,
    InvalidArgumentError,
    UnsupportedTypeError,
)
from dynamo_migrate.models.attribute import AttributeType
from dynamo_migrate.services.encoder import ItemEncoder, ValueDecoder, ValueEncoder
from dynamo_migrate.services.schema_registry import AttributeTypeRegistry
from dynamo_migrate.services.type_resolver import TypeResolver


class TestTypeResolver:
    def test_none_is_null_even_when_declared(self):
        assert TypeResolver().resolve(None, AttributeType.STRING) == AttributeType.NULL

    def test_declared_type_wins_over_inference(self):
        assert TypeResolver().resolve("42", AttributeType.NUMBER) == AttributeType.NUMBER

    @pytest.mark.parametrize("value, expected", [
        (True, AttributeType.BOOLEAN),
        (0, AttributeType.NUMBER),
        (Decimal("1.5"), AttributeType.NUMBER),
        (2.5, AttributeType.NUMBER),
        ("x", AttributeType.STRING),
        (b"\x00", AttributeType.BINARY),
        (Binary(b"\x01"), AttributeType.BINARY),
        ({"a": 1}, AttributeType.MAP),
        ([1], AttributeType.LIST),
        ({"a"}, AttributeType.LIST),
    ])
    def test_infer(self, value, expected):
        assert TypeResolver().infer(value) == expected

    def test_unsupported_kind(self):
        with pytest.raises(UnsupportedTypeError, match="Unsupported type: object"):
            TypeResolver().infer(object())


class TestAttributeType:
    def test_from_tag_is_case_insensitive(self):
        assert AttributeType.from_tag("s") is AttributeType.STRING
        assert AttributeType.from_tag("BOOL") is AttributeType.BOOLEAN

    def test_unknown_tag(self):
        with pytest.raises(UnsupportedTypeError):
            AttributeType.from_tag("SS")


class TestValueEncoder:
    def test_scalars(self):
        encoder = ValueEncoder()
        assert encoder.encode_value("hello") == {"S": "hello"}
        assert encoder.encode_value(42) == {"N": "42"}
        assert encoder.encode_value(Decimal("1.50")) == {"N": "1.50"}
        assert encoder.encode_value(2.5) == {"N": "2.5"}
        assert encoder.encode_value(False) == {"BOOL": False}
        assert encoder.encode_value(None) == {"NULL": True}
        assert encoder.encode_value(b"hi") == {"B": "aGk="}
        assert encoder.encode_value(Binary(b"hi")) == {"B": "aGk="}

    def test_declared_number_keeps_string_text(self):
        assert ValueEncoder().encode(" 42 ", AttributeType.NUMBER) == {"N": "42"}

    def test_declared_number_rejects_text(self):
        with pytest.raises(UnsupportedTypeError):
            ValueEncoder().encode("forty-two", AttributeType.NUMBER)

    def test_non_finite_numbers_are_rejected(self):
        with pytest.raises(UnsupportedTypeError):
            ValueEncoder().encode_value(float("nan"))
        with pytest.raises(UnsupportedTypeError):
            ValueEncoder().encode(Decimal("Infinity"), AttributeType.NUMBER)

    def test_declared_string_for_number(self):
        assert ValueEncoder().encode(7, AttributeType.STRING) == {"S": "7"}

    def test_declared_binary_for_text(self):
        assert ValueEncoder().encode("hi", "B") == {"B": "aGk="}

    def test_nested_containers(self):
        encoded = ValueEncoder().encode_value({"tags": ["a", 1], "meta": {"ok": True}})
        assert encoded == {
            "M": {
                "tags": {"L": [{"S": "a"}, {"N": "1"}]},
                "meta": {"M": {"ok": {"BOOL": True}}},
            }
        }

    def test_set_encodes_as_list(self):
        assert ValueEncoder().encode_value({"only"}) == {"L": [{"S": "only"}]}

    def test_depth_limit(self):
        encoder = ValueEncoder(max_depth=3)
        assert encoder.encode_value([[["x"]]]) == {"L": [{"L": [{"L": [{"S": "x"}]}]}]}
        with pytest.raises(EncodingTooDeepError):
            encoder.encode_value([[[["x"]]]])

    def test_depth_error_is_an_encoding_error(self):
        value = "leaf"
        for _ in range(40):
            value = [value]
        with pytest.raises(EncodingError):
            ValueEncoder().encode_value(value)


class TestValueDecoder:
    def test_round_trip_five_levels_deep(self):
        value = {"a": [{"b": [{"c": [Decimal("1.5"), "x", None, True, b"\x00\xff"]}]}]}
        encoded = ValueEncoder().encode_value(value)
        assert ValueDecoder().decode(encoded) == value

    def test_sets(self):
        decoder = ValueDecoder()
        assert decoder.decode({"SS": ["a", "b"]}) == {"a", "b"}
        assert decoder.decode({"NS": ["1", "2.5"]}) == {Decimal("1"), Decimal("2.5")}

    def test_rejects_multiple_tags(self):
        with pytest.raises(EncodingError):
            ValueDecoder().decode({"S": "a", "N": "1"})

    def test_rejects_bad_base64(self):
        with pytest.raises(EncodingError):
            ValueDecoder().decode({"B": "not base64!"})


class TestItemEncoder:
    def registry(self):
        return AttributeTypeRegistry(
            "orders",
            {"pk": AttributeType.STRING, "sk": AttributeType.NUMBER},
            ["pk", "sk"],
        )

    def test_encode_item_uses_declared_types(self):
        body = ItemEncoder().encode_item(
            {"pk": "order-1", "sk": "42", "total": Decimal("9.99"), "note": None},
            self.registry(),
            "orders_copy",
        )
        assert body == {
            "TableName": "orders_copy",
            "Item": {
                "pk": {"S": "order-1"},
                "sk": {"N": "42"},
                "total": {"N": "9.99"},
                "note": {"NULL": True},
            },
        }

    def test_plain_dict_registry(self):
        body = ItemEncoder().encode_item({"id": 5}, {"id": AttributeType.STRING}, "t")
        assert body["Item"] == {"id": {"S": "5"}}

    def test_unsupported_attribute_fails_whole_item(self):
        with pytest.raises(UnsupportedTypeError):
            ItemEncoder().encode_item({"pk": "a", "bad": object()}, self.registry(), "orders")

    @pytest.mark.parametrize("item, table", [
        ({"pk": "a"}, ""),
        (None, "orders"),
        (["pk"], "orders"),
    ])
    def test_invalid_arguments(self, item, table):
        with pytest.raises(InvalidArgumentError):
            ItemEncoder().encode_item(item, None, table)

    def test_to_json_is_compact(self):
        assert ItemEncoder.to_json({"TableName": "t", "Item": {"a": {"S": "b"}}}) == (
            '{"TableName":"t","Item":{"a":{"S":"b"}}}'
        )
