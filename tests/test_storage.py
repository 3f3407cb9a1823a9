import json

import pytest

from hurler.metadata import Metadata
from hurler.storage import (
    DEFAULT_REQUEST,
    AlreadyExistsError,
    InvalidNameError,
    NotFoundError,
    parse_env_file,
    serialize_env_file,
)


def test_create_and_list_files(workspace):
    name = workspace.create_file("get users!")
    assert name == "get_users_"
    assert workspace.read_file(name) == DEFAULT_REQUEST
    workspace.create_file("b", "POST https://x.test\n")
    assert workspace.list_files() == ["b", "get_users_"]
    assert workspace.describe_files() == [
        {"name": "b", "method": "POST"},
        {"name": "get_users_", "method": "GET"},
    ]


def test_create_existing_file(workspace):
    workspace.create_file("a", "")
    with pytest.raises(AlreadyExistsError):
        workspace.create_file("a")
    with pytest.raises(InvalidNameError):
        workspace.create_file("  ")


def test_read_missing_file(workspace):
    with pytest.raises(NotFoundError):
        workspace.read_file("missing")


def test_rename_keeps_section(workspace):
    workspace.create_file("a")
    workspace.create_file("b")
    metadata, section = Metadata().add_section("Users")
    workspace.write_metadata(metadata.move_file("a", section.id))

    assert workspace.rename_file("a", "a two") == "a_two"
    assert workspace.list_files() == ["a_two", "b"]
    assert workspace.read_metadata().file_groups == {"a_two": section.id}

    with pytest.raises(AlreadyExistsError):
        workspace.rename_file("b", "a_two")
    with pytest.raises(NotFoundError):
        workspace.rename_file("missing", "c")


def test_delete_drops_section_membership(workspace):
    workspace.create_file("a")
    metadata, section = Metadata().add_section()
    workspace.write_metadata(metadata.move_file("a", section.id))
    workspace.delete_file("a")
    assert workspace.list_files() == []
    assert workspace.read_metadata().file_groups == {}
    with pytest.raises(NotFoundError):
        workspace.delete_file("a")


def test_metadata_file_format(workspace):
    metadata, section = Metadata().add_section("Auth")
    workspace.write_metadata(metadata.move_file("login", section.id))
    raw = json.loads(workspace.metadata_path.read_text(encoding="utf-8"))
    assert raw == {
        "sections": [{"id": section.id, "name": "Auth"}],
        "fileGroups": {"login": section.id},
    }


def test_corrupt_metadata_reads_empty(workspace):
    workspace.metadata_path.parent.mkdir(parents=True)
    workspace.metadata_path.write_text("{oops", encoding="utf-8")
    assert workspace.read_metadata() == Metadata()


def test_environment_lifecycle(workspace):
    name = workspace.create_environment("dev", {"host": "localhost"}, {"token": "s3cret"})
    assert name == "dev"
    assert workspace.list_environments() == ["dev"]
    environment = workspace.read_environment("dev")
    assert environment.variables == {"host": "localhost"}
    assert environment.secrets == {"token": "s3cret"}
    assert [p.name for p in workspace.environment_files("dev")] == ["dev.env", "dev.secrets.env"]

    workspace.update_environment("dev", {"host": "example.com"}, {})
    environment = workspace.read_environment("dev")
    assert environment.variables == {"host": "example.com"}
    assert environment.secrets == {}
    assert not (workspace.environments_dir / "dev.secrets.env").exists()

    with pytest.raises(AlreadyExistsError):
        workspace.create_environment("dev")

    workspace.delete_environment("dev")
    assert workspace.list_environments() == []
    with pytest.raises(NotFoundError):
        workspace.read_environment("dev")
    with pytest.raises(NotFoundError):
        workspace.environment_files("dev")


def test_create_environment_without_secrets(workspace):
    workspace.create_environment("prod")
    assert not (workspace.environments_dir / "prod.secrets.env").exists()
    assert workspace.read_environment("prod").variables == {}


def test_env_file_format():
    content = "# comment\n\nhost=localhost\nquery=a=b\n=novalue\nbroken\n"
    assert parse_env_file(content) == {"host": "localhost", "query": "a=b"}
    assert serialize_env_file({"a": "1", "b": "2"}) == "a=1\nb=2"


def test_names_cannot_leave_the_workspace(workspace, tmp_path):
    outside = tmp_path / "outside.hurl"
    outside.write_text("GET /secret\n", encoding="utf-8")
    with pytest.raises(InvalidNameError):
        workspace.read_file("../../outside")
    with pytest.raises(InvalidNameError):
        workspace.write_file("../x", "GET /x\n")
    with pytest.raises(InvalidNameError):
        workspace.rename_file("../../outside", "inside")
    with pytest.raises(InvalidNameError):
        workspace.read_environment("../dev")
    assert outside.read_text(encoding="utf-8") == "GET /secret\n"
    assert not (workspace.collections_dir.parent / "x.hurl").exists()
