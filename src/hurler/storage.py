from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path

from hurler.app_logger import get_logger
from hurler.config import Settings
from hurler.hurl_document import request_method
from hurler.metadata import Metadata

logger = get_logger("storage")

HURL_SUFFIX = ".hurl"
ENV_SUFFIX = ".env"
SECRETS_SUFFIX = ".secrets.env"
DEFAULT_REQUEST = "GET https://httpbin.org/get\nHTTP 200\n"

_UNSAFE_NAME = re.compile(r"[^a-zA-Z0-9_-]")


class StorageError(Exception):
    pass


class NotFoundError(StorageError):
    pass


class AlreadyExistsError(StorageError):
    pass


class InvalidNameError(StorageError):
    pass


@dataclass
class Environment:
    name: str
    variables: dict[str, str] = field(default_factory=dict)
    secrets: dict[str, str] = field(default_factory=dict)


def safe_name(name: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidNameError("name is required")
    return _UNSAFE_NAME.sub("_", name.strip())


def checked_name(name: str) -> str:
    if not isinstance(name, str) or not name or _UNSAFE_NAME.search(name):
        raise InvalidNameError(f"Invalid name: {name!r}")
    return name


def parse_env_file(content: str) -> dict[str, str]:
    variables: dict[str, str] = {}
    for line in content.split("\n"):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        key, sep, value = trimmed.partition("=")
        if sep and key:
            variables[key] = value
    return variables


def serialize_env_file(variables: dict[str, str]) -> str:
    return "\n".join(f"{key}={value}" for key, value in variables.items())


class Workspace:
    """Collections, environments and metadata kept under one data directory."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.collections_dir = settings.collections_dir
        self.environments_dir = settings.environments_dir
        self.metadata_path = settings.metadata_path

    def ensure_dirs(self) -> None:
        self.collections_dir.mkdir(parents=True, exist_ok=True)
        self.environments_dir.mkdir(parents=True, exist_ok=True)

    # files

    def file_path(self, name: str) -> Path:
        return self.collections_dir / f"{checked_name(name)}{HURL_SUFFIX}"

    def list_files(self) -> list[str]:
        self.ensure_dirs()
        return sorted(path.stem for path in self.collections_dir.glob(f"*{HURL_SUFFIX}") if path.is_file())

    def describe_files(self) -> list[dict]:
        files = []
        for name in self.list_files():
            try:
                method = request_method(self.read_file(name))
            except (OSError, StorageError):
                method = None
            files.append({"name": name, "method": method})
        return files

    def create_file(self, name: str, content: str | None = None) -> str:
        self.ensure_dirs()
        name = safe_name(name)
        path = self.file_path(name)
        if path.exists():
            raise AlreadyExistsError(f"File already exists: {name}")
        path.write_text(DEFAULT_REQUEST if content is None else content, encoding="utf-8")
        logger.info("created %s", path)
        return name

    def read_file(self, name: str) -> str:
        path = self.file_path(name)
        if not path.is_file():
            raise NotFoundError(f"File not found: {name}")
        return path.read_text(encoding="utf-8")

    def write_file(self, name: str, content: str) -> None:
        self.ensure_dirs()
        self.file_path(name).write_text(content, encoding="utf-8")

    def delete_file(self, name: str) -> None:
        path = self.file_path(name)
        if not path.is_file():
            raise NotFoundError(f"File not found: {name}")
        path.unlink()
        metadata = self.read_metadata()
        if name in metadata.file_groups:
            self.write_metadata(metadata.forget_file(name))
        logger.info("deleted %s", path)

    def rename_file(self, old_name: str, new_name: str) -> str:
        new_name = safe_name(new_name)
        old_path = self.file_path(old_name)
        new_path = self.file_path(new_name)
        if not old_path.is_file():
            raise NotFoundError(f"File not found: {old_name}")
        if old_name != new_name and new_path.exists():
            raise AlreadyExistsError(f"A file with that name already exists: {new_name}")
        old_path.rename(new_path)
        metadata = self.read_metadata()
        if old_name in metadata.file_groups:
            self.write_metadata(metadata.rename_file(old_name, new_name))
        return new_name

    # environments

    def _env_paths(self, name: str) -> tuple[Path, Path]:
        name = checked_name(name)
        return (
            self.environments_dir / f"{name}{ENV_SUFFIX}",
            self.environments_dir / f"{name}{SECRETS_SUFFIX}",
        )

    def list_environments(self) -> list[str]:
        self.ensure_dirs()
        names = set()
        for path in self.environments_dir.glob(f"*{ENV_SUFFIX}"):
            if path.name.endswith(SECRETS_SUFFIX):
                continue
            names.add(path.name[: -len(ENV_SUFFIX)])
        return sorted(names)

    def create_environment(
        self,
        name: str,
        variables: dict[str, str] | None = None,
        secrets: dict[str, str] | None = None,
    ) -> str:
        self.ensure_dirs()
        name = safe_name(name)
        env_path, secrets_path = self._env_paths(name)
        if env_path.exists():
            raise AlreadyExistsError(f"Environment already exists: {name}")
        env_path.write_text(serialize_env_file(variables or {}), encoding="utf-8")
        if secrets:
            secrets_path.write_text(serialize_env_file(secrets), encoding="utf-8")
        return name

    def read_environment(self, name: str) -> Environment:
        env_path, secrets_path = self._env_paths(name)
        if not env_path.is_file() and not secrets_path.is_file():
            raise NotFoundError(f"Environment not found: {name}")
        environment = Environment(name)
        if env_path.is_file():
            environment.variables = parse_env_file(env_path.read_text(encoding="utf-8"))
        if secrets_path.is_file():
            environment.secrets = parse_env_file(secrets_path.read_text(encoding="utf-8"))
        return environment

    def update_environment(
        self,
        name: str,
        variables: dict[str, str] | None = None,
        secrets: dict[str, str] | None = None,
    ) -> None:
        self.ensure_dirs()
        env_path, secrets_path = self._env_paths(name)
        if variables is not None:
            env_path.write_text(serialize_env_file(variables), encoding="utf-8")
        if secrets is not None:
            if secrets:
                secrets_path.write_text(serialize_env_file(secrets), encoding="utf-8")
            elif secrets_path.exists():
                secrets_path.unlink()

    def delete_environment(self, name: str) -> None:
        deleted = False
        for path in self._env_paths(name):
            if path.is_file():
                path.unlink()
                deleted = True
        if not deleted:
            raise NotFoundError(f"Environment not found: {name}")

    def environment_files(self, name: str) -> list[Path]:
        files = [path for path in self._env_paths(name) if path.is_file()]
        if not files:
            raise NotFoundError(f"Environment file not found: {name}")
        return files

    # metadata

    def read_metadata(self) -> Metadata:
        try:
            raw = self.metadata_path.read_text(encoding="utf-8")
            return Metadata.from_dict(json.loads(raw))
        except (OSError, ValueError):
            return Metadata()

    def write_metadata(self, metadata: Metadata) -> Metadata:
        self.metadata_path.parent.mkdir(parents=True, exist_ok=True)
        with self.metadata_path.open("w", encoding="utf-8") as handle:
            json.dump(metadata.to_dict(), handle, ensure_ascii=False, indent=2)
        return metadata
