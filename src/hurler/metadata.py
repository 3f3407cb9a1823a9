"""Sidebar organisation: named sections and the file-to-section map.

Every operation returns a new :class:`Metadata`; callers persist the whole
document with :meth:`hurler.storage.Workspace.write_metadata`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Any

DEFAULT_SECTION_NAME = "New Section"


@dataclass(frozen=True)
class Section:
    id: str
    name: str


@dataclass(frozen=True)
class Metadata:
    sections: tuple[Section, ...] = ()
    file_groups: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> Metadata:
        if not isinstance(data, dict):
            return cls()
        sections = []
        for item in data.get("sections") or []:
            if isinstance(item, dict) and item.get("id"):
                sections.append(Section(str(item["id"]), str(item.get("name", ""))))
        groups = data.get("fileGroups") or {}
        file_groups = {str(k): str(v) for k, v in groups.items()} if isinstance(groups, dict) else {}
        return cls(tuple(sections), file_groups)

    def to_dict(self) -> dict:
        return {
            "sections": [{"id": s.id, "name": s.name} for s in self.sections],
            "fileGroups": dict(self.file_groups),
        }

    def section(self, section_id: str) -> Section | None:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def add_section(self, name: str = DEFAULT_SECTION_NAME) -> tuple[Metadata, Section]:
        section = Section(uuid.uuid4().hex[:8], name)
        return replace(self, sections=self.sections + (section,)), section

    def rename_section(self, section_id: str, name: str) -> Metadata:
        name = name.strip()
        if not name or self.section(section_id) is None:
            return self
        sections = tuple(Section(s.id, name) if s.id == section_id else s for s in self.sections)
        return replace(self, sections=sections)

    def delete_section(self, section_id: str) -> Metadata:
        sections = tuple(s for s in self.sections if s.id != section_id)
        groups = {f: g for f, g in self.file_groups.items() if g != section_id}
        return Metadata(sections, groups)

    def move_file(self, file_name: str, section_id: str | None) -> Metadata:
        groups = dict(self.file_groups)
        if section_id:
            groups[file_name] = section_id
        else:
            groups.pop(file_name, None)
        return replace(self, file_groups=groups)

    def rename_file(self, old_name: str, new_name: str) -> Metadata:
        if old_name not in self.file_groups:
            return self
        groups = dict(self.file_groups)
        groups[new_name] = groups.pop(old_name)
        return replace(self, file_groups=groups)

    def forget_file(self, file_name: str) -> Metadata:
        return self.move_file(file_name, None)

    def group_files(self, files: list[str]) -> tuple[list[tuple[Section, list[str]]], list[str]]:
        grouped: dict[str, list[str]] = {s.id: [] for s in self.sections}
        ungrouped: list[str] = []
        for name in files:
            section_id = self.file_groups.get(name)
            if section_id in grouped:
                grouped[section_id].append(name)
            else:
                ungrouped.append(name)
        return [(s, grouped[s.id]) for s in self.sections], ungrouped
