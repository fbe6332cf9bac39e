from __future__ import annotations

import json

import pytest

from accounts.registry import Registry


def test_dotted_paths_read_nested_values() -> None:
    registry = Registry({"editor": {"theme": "dark", "font": {"size": 12}}})

    assert registry.get("editor.theme") == "dark"
    assert registry.get("editor.font.size") == 12
    assert registry.get("editor.missing", "fallback") == "fallback"
    assert registry.get("editor.theme.deeper") is None


def test_json_text_is_decoded() -> None:
    registry = Registry('{"language": "fr-FR", "timezone": "Europe/Paris"}')

    assert registry.get("language") == "fr-FR"
    assert Registry("").to_dict() == {}


def test_non_object_json_is_rejected() -> None:
    with pytest.raises(ValueError):
        Registry("[1, 2, 3]")


@pytest.mark.parametrize("source", ["[]", " [ ] ", b"[]", [], ()])
def test_empty_list_params_are_an_empty_registry(source: object) -> None:
    registry = Registry(source)  # type: ignore[arg-type]

    assert len(registry) == 0
    assert registry.to_dict() == {}


def test_unsupported_source_is_rejected() -> None:
    with pytest.raises(TypeError):
        Registry(42)  # type: ignore[arg-type]


def test_set_creates_intermediate_levels() -> None:
    registry = Registry()

    assert registry.set("notifications.email.digest", "weekly") is None
    assert registry.set("notifications.email.digest", "daily") == "weekly"
    assert registry.exists("notifications.email")
    assert not registry.exists("notifications.sms")
    assert registry.to_dict() == {"notifications": {"email": {"digest": "daily"}}}


def test_merge_is_deep_and_copies_input() -> None:
    source = {"editor": {"font": {"size": 14}}}
    registry = Registry({"editor": {"theme": "dark"}})
    registry.merge(source)
    source["editor"]["font"]["size"] = 99

    assert registry.get("editor.theme") == "dark"
    assert registry.get("editor.font.size") == 14


def test_registry_from_registry_and_json_output() -> None:
    original = Registry({"b": 1, "a": {"c": True}})
    copy = Registry(original)

    assert copy == original
    assert copy is not original
    assert json.loads(copy.to_json()) == {"a": {"c": True}, "b": 1}
    assert sorted(copy) == ["a", "b"]
