"""
Stack model — what detection found in a project.

A DetectedStack is produced fresh by every scan and never mutated
afterwards.  Field names are snake_case in Python and camelCase when
serialized to .aiops.yaml.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _StackModel(BaseModel):
    """Frozen base with camelCase aliases for persistence."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Language(_StackModel):
    """A detected language.

    ``entry_dir`` is set when the marker file was found in an immediate
    subdirectory rather than at the project root.
    """

    name: str
    confidence: str = "high"
    entry_dir: str = ""


class Framework(_StackModel):
    """A framework matched in one manifest directory ("." for the root)."""

    name: str
    language: str
    confidence: str = "high"
    dir: str = "."


class BuildInfo(_StackModel):
    """Build/test command hints derived from languages and frameworks.

    These are suggestions for the generated rules, not authoritative
    build definitions.
    """

    commands: list[str] = Field(default_factory=list)
    test_commands: list[str] = Field(default_factory=list)
    generate_commands: list[str] = Field(default_factory=list)
    generated_file_markers: list[str] = Field(default_factory=list)


class MCPServer(_StackModel):
    """An MCP server declared in an editor configuration file."""

    name: str
    command: str = ""
    source: str = ""


class DetectedStack(_StackModel):
    """Root detection result — languages, frameworks, patterns, build hints."""

    languages: list[Language] = Field(default_factory=list)
    frameworks: list[Framework] = Field(default_factory=list)
    build: BuildInfo = Field(default_factory=BuildInfo)
    patterns: list[str] = Field(default_factory=list)
    go_module: str = ""
    mcp_servers: list[MCPServer] = Field(default_factory=list)

    def has_language(self, name: str) -> bool:
        return any(lang.name == name for lang in self.languages)

    def has_framework(self, name: str) -> bool:
        return any(fw.name == name for fw in self.frameworks)

    def has_pattern(self, tag: str) -> bool:
        return tag in self.patterns

    @property
    def language_names(self) -> list[str]:
        return [lang.name for lang in self.languages]

    @property
    def framework_names(self) -> list[str]:
        """Framework names, deduplicated across module roots."""
        return list(dict.fromkeys(fw.name for fw in self.frameworks))
