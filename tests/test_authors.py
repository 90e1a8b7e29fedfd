from __future__ import annotations

import json

import pytest

from tfs2git.authors import UserMapping, load_user_mapping
from tfs2git.errors import UserMappingError


def test_unmapped_user_passes_through() -> None:
    mapping = UserMapping()

    assert mapping.resolve("CORP\\jdoe") == "CORP\\jdoe <CORP\\jdoe>"
    assert mapping.resolve("Jane Doe <jane@example.com>") == "Jane Doe <jane@example.com>"


def test_unmapped_user_with_mail_domain() -> None:
    mapping = UserMapping(mail_domain="example.com")

    assert mapping.resolve("CORP\\jdoe") == "CORP\\jdoe <jdoe@example.com>"


def test_lookup_ignores_case() -> None:
    mapping = UserMapping({"CORP\\JDoe": "Jane Doe <jane@example.com>"})

    assert mapping.resolve("corp\\jdoe") == "Jane Doe <jane@example.com>"
    assert mapping.resolve("CORP\\JDoe") == "Jane Doe <jane@example.com>"


def test_load_authormap_lines(tmp_path) -> None:
    path = tmp_path / "authors.txt"
    path.write_text(
        "# TFVC users\n"
        "\n"
        "CORP\\jdoe = Jane Doe <jane@example.com>\n"
        "CORP\\Build Service=Build <build@example.com>\n",
        encoding="utf-8",
    )

    mapping = load_user_mapping(path)

    assert len(mapping) == 2
    assert mapping.resolve("CORP\\jdoe") == "Jane Doe <jane@example.com>"
    assert mapping.resolve("CORP\\Build Service") == "Build <build@example.com>"


def test_load_json_and_yaml(tmp_path) -> None:
    json_path = tmp_path / "authors.json"
    json_path.write_text(json.dumps({"CORP\\jdoe": "Jane <jane@example.com>"}), encoding="utf-8")
    yaml_path = tmp_path / "authors.yaml"
    yaml_path.write_text('"CORP\\\\asmith": "Al Smith <al@example.com>"\n', encoding="utf-8")

    assert load_user_mapping(json_path).resolve("CORP\\jdoe") == "Jane <jane@example.com>"
    assert load_user_mapping(yaml_path).resolve("CORP\\asmith") == "Al Smith <al@example.com>"


def test_malformed_authormap_line(tmp_path) -> None:
    path = tmp_path / "authors.txt"
    path.write_text("CORP\\jdoe Jane Doe\n", encoding="utf-8")

    with pytest.raises(UserMappingError):
        load_user_mapping(path)


def test_yaml_must_be_a_mapping(tmp_path) -> None:
    path = tmp_path / "authors.yml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(UserMappingError):
        load_user_mapping(path)


def test_authormap_value_without_email_is_rejected(tmp_path) -> None:
    path = tmp_path / "authors.txt"
    path.write_text(
        "CORP\\jdoe = Jane Doe <jane@example.com>\nCORP\\asmith = Alice Smith\n",
        encoding="utf-8",
    )

    with pytest.raises(UserMappingError, match="line 2"):
        load_user_mapping(path)


def test_json_value_without_email_is_rejected(tmp_path) -> None:
    path = tmp_path / "authors.json"
    path.write_text(json.dumps({"CORP\\asmith": "Alice Smith"}), encoding="utf-8")

    with pytest.raises(UserMappingError, match="asmith"):
        load_user_mapping(path)
