import json
from dataclasses import dataclass
from datetime import datetime, timezone

import pytest
from pydantic import BaseModel, Field

from exceptions import SerializationError
from services.serializer import JsonSerializer


class Dto(BaseModel):
    user_name: str = Field(alias="UserName")
    created: datetime


@dataclass
class Point:
    x: int
    y: int


def test_serializes_pydantic_models_by_alias():
    dto = Dto(UserName="ada", created=datetime(2024, 1, 1, tzinfo=timezone.utc))
    parsed = json.loads(JsonSerializer().serialize(dto))

    assert parsed["UserName"] == "ada"
    assert parsed["created"].startswith("2024-01-01T00:00:00")


def test_serializes_dataclasses_and_unicode():
    assert JsonSerializer().serialize({"p": Point(1, 2), "s": "é"}) == '{"p":{"x":1,"y":2},"s":"é"}'.encode("utf-8")


def test_output_is_deterministic():
    serializer = JsonSerializer()
    assert serializer.serialize({"a": [1, 2]}) == serializer.serialize({"a": [1, 2]})


def cyclic():
    value = {}
    value["self"] = value
    return value


@pytest.mark.parametrize("value", [float("inf"), {"x": float("nan")}, object(), cyclic()])
def test_unsupported_values_raise(value):
    with pytest.raises(SerializationError):
        JsonSerializer().serialize(value)


def test_deserialize():
    serializer = JsonSerializer()
    assert serializer.deserialize(b'{"a":1}') == {"a": 1}
    assert serializer.deserialize(b"") is None
    with pytest.raises(SerializationError):
        serializer.deserialize(b"{not json")
