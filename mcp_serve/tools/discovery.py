"""
Tool Discovery

Finds executable tools in directories and loads their definitions.

Each executable carries its metadata either in a sidecar YAML file next to
it (``create-ticket`` / ``create-ticket.yaml``, ``file-info.sh`` /
``file-info.yaml``) or embedded in its leading comment block between two
``# ---`` lines:

    #!/bin/bash
    # ---
    # name: FileInfo
    # description: Get information about a file.
    # input:
    #   template: '{{filepath}}'
    #   schema:
    #     type: object
    #     properties:
    #       filepath: {type: string}
    #     required: [filepath]
    # output:
    #   template: |-
    #     Size: (?<size>\\d+) bytes
    #   schema:
    #     type: object
    #     properties:
    #       size: {type: string}
    # ---

A sidecar takes precedence over embedded metadata. Scanning problems are
collected rather than raised so one unreadable file does not hide the rest.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml
from pydantic import ValidationError

from mcp_serve.core.exceptions import DefinitionError
from mcp_serve.models.domain import ToolDefinition
from mcp_serve.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

SIDECAR_SUFFIXES = (".yaml", ".yml")
METADATA_FENCE = "---"

# How far into a script the embedded metadata block may start.
_MAX_HEADER_LINES = 200


# =============================================================================
# Scanner
# =============================================================================


class MetadataKind(str, Enum):
    EMBEDDED = "embedded"
    SIDECAR = "sidecar"


@dataclass(frozen=True)
class MetadataSource:
    """Where a tool's metadata lives."""

    kind: MetadataKind
    path: Path


@dataclass(frozen=True)
class DiscoveredTool:
    """An executable file and the source of its metadata."""

    executable_path: Path
    metadata_source: MetadataSource


@dataclass(frozen=True)
class ScanError:
    """A problem met while scanning; scanning continues past it."""

    path: Path
    message: str


@dataclass
class DirectoryScanner:
    """
    Scans directories for executable tools.

    Hidden files, sidecar metadata files and files without execute
    permission are skipped. Subdirectories are only entered when
    ``recursive`` is set.

    Example:
        >>> scanner = DirectoryScanner()
        >>> tools = scanner.scan_directory(Path("./tools"))
        >>> problems = scanner.take_errors()
    """

    recursive: bool = False
    errors: list[ScanError] = field(default_factory=list)

    def scan_directory(self, directory: Path) -> list[DiscoveredTool]:
        """
        Scan a directory for tools.

        Args:
            directory: Directory to scan.

        Returns:
            Discovered tools sorted by path.

        Raises:
            DefinitionError: The directory itself cannot be read.
        """
        directory = Path(directory)
        try:
            entries = sorted(directory.iterdir())
        except OSError as e:
            raise DefinitionError(
                f"Cannot scan directory {directory}: {e}", source=str(directory)
            ) from e

        discovered: list[DiscoveredTool] = []
        for path in entries:
            if path.name.startswith("."):
                continue
            try:
                if path.is_dir():
                    if self.recursive:
                        discovered.extend(self.scan_directory(path))
                    continue
            except DefinitionError as e:
                self.errors.append(ScanError(path, e.message))
                continue
            except OSError as e:
                self.errors.append(ScanError(path, str(e)))
                continue

            tool = self._check_executable(path)
            if tool is not None:
                discovered.append(tool)

        return discovered

    def _check_executable(self, path: Path) -> Optional[DiscoveredTool]:
        if path.suffix in SIDECAR_SUFFIXES:
            return None
        try:
            if not path.is_file() or not os.access(path, os.X_OK):
                return None
        except OSError as e:
            self.errors.append(ScanError(path, str(e)))
            return None
        return DiscoveredTool(
            executable_path=path,
            metadata_source=self._find_metadata_source(path),
        )

    def _find_metadata_source(self, executable_path: Path) -> MetadataSource:
        for suffix in SIDECAR_SUFFIXES:
            sidecar = executable_path.with_suffix(suffix)
            if sidecar.exists():
                if os.access(sidecar, os.R_OK):
                    return MetadataSource(MetadataKind.SIDECAR, sidecar)
                self.errors.append(ScanError(sidecar, "Permission denied"))
        return MetadataSource(MetadataKind.EMBEDDED, executable_path)

    def take_errors(self) -> list[ScanError]:
        """Return and clear the errors collected so far."""
        errors, self.errors = self.errors, []
        return errors


# =============================================================================
# Metadata loading
# =============================================================================


def extract_embedded_metadata(text: str) -> Optional[str]:
    """
    Extract the YAML block between ``# ---`` fences in a script header.

    Returns:
        The YAML text with comment prefixes removed, or None if the script
        has no metadata block.
    """
    lines = text.splitlines()[:_MAX_HEADER_LINES]
    start: Optional[int] = None
    for index, line in enumerate(lines):
        stripped = line.strip()
        is_fence = stripped.startswith("#") and stripped.lstrip("#").strip() == METADATA_FENCE
        if start is None:
            if not stripped:
                continue
            if not stripped.startswith("#"):
                # Code before any metadata block: the script has none.
                return None
            if is_fence:
                start = index + 1
        elif is_fence:
            return "\n".join(_uncomment(body) for body in lines[start:index])
    return None


def _uncomment(line: str) -> str:
    line = line.lstrip()
    if line.startswith("# "):
        return line[2:]
    return line[1:] if line.startswith("#") else line


def parse_metadata(data: Any, executable_path: Path) -> ToolDefinition:
    """
    Build a ToolDefinition from parsed metadata.

    Both the nested layout (``input: {template, schema}``) and the flat
    layout (``input_schema``, ``input_template``) are accepted. The name
    defaults to the executable's file name.

    Raises:
        DefinitionError: The metadata is not a mapping or fails validation.
    """
    if not isinstance(data, dict):
        raise DefinitionError(
            "Tool metadata must be a YAML mapping", source=str(executable_path)
        )

    input_section = data.get("input") or {}
    output_section = data.get("output") or {}
    if not isinstance(input_section, dict) or not isinstance(output_section, dict):
        raise DefinitionError(
            "'input' and 'output' must be mappings", source=str(executable_path)
        )

    fields: dict[str, Any] = {
        "name": data.get("name") or executable_path.name,
        "title": data.get("title"),
        "description": data.get("description") or "",
        "input_template": input_section.get("template", data.get("input_template", "")),
        "output_template": output_section.get("template", data.get("output_template")),
        "annotations": data.get("annotations"),
        "executable_path": executable_path,
    }
    input_schema = input_section.get("schema", data.get("input_schema"))
    if input_schema is not None:
        fields["input_schema"] = input_schema
    output_schema = output_section.get("schema", data.get("output_schema"))
    if output_schema is not None:
        fields["output_schema"] = output_schema

    try:
        return ToolDefinition.model_validate(fields)
    except ValidationError as e:
        raise DefinitionError(
            f"Invalid tool metadata: {e}", source=str(executable_path)
        ) from e


def load_tool_definition(tool: DiscoveredTool) -> ToolDefinition:
    """
    Load the definition of a discovered tool from its metadata source.

    Raises:
        DefinitionError: The metadata is missing, unreadable or invalid.
    """
    source = tool.metadata_source
    try:
        text = source.path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise DefinitionError(
            f"Cannot read metadata: {e}", source=str(source.path)
        ) from e

    if source.kind == MetadataKind.EMBEDDED:
        block = extract_embedded_metadata(text)
        if block is None:
            raise DefinitionError(
                "No embedded metadata block found", source=str(source.path)
            )
        text = block

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DefinitionError(
            f"Invalid YAML metadata: {e}", source=str(source.path)
        ) from e

    return parse_metadata(data, tool.executable_path)


def discover_tools(
    directories: Iterable[Path], recursive: bool = False
) -> tuple[list[ToolDefinition], list[ScanError]]:
    """
    Scan directories and load every tool definition found.

    Missing directories and tools with bad metadata are reported in the
    returned errors and skipped.

    Args:
        directories: Directories to scan, in order.
        recursive: Descend into subdirectories.

    Returns:
        Tuple of (definitions, errors).
    """
    scanner = DirectoryScanner(recursive=recursive)
    definitions: list[ToolDefinition] = []
    errors: list[ScanError] = []

    for directory in directories:
        directory = Path(directory)
        try:
            discovered = scanner.scan_directory(directory)
        except DefinitionError as e:
            logger.warning(e.message)
            errors.append(ScanError(directory, e.message))
            continue

        for tool in discovered:
            try:
                definitions.append(load_tool_definition(tool))
            except DefinitionError as e:
                logger.warning(f"Skipping {tool.executable_path}: {e.message}")
                errors.append(ScanError(tool.executable_path, e.message))

    errors.extend(scanner.take_errors())
    logger.info(f"Discovered {len(definitions)} tools ({len(errors)} problems)")
    return definitions, errors


def reload_registry(
    registry: ToolRegistry, directories: Iterable[Path], recursive: bool = False
) -> tuple[list[str], dict[str, str]]:
    """
    Rediscover tools and publish them as the registry's complete new set.

    Args:
        registry: Registry to republish.
        directories: Directories to scan.
        recursive: Descend into subdirectories.

    Returns:
        Tuple of (registered tool names, rejected source -> reason). Rejected
        sources are tool names for template errors and paths for metadata
        or scanning problems.
    """
    definitions, errors = discover_tools(directories, recursive=recursive)
    rejected_templates = registry.replace_all(definitions)

    rejected: dict[str, str] = {str(error.path): error.message for error in errors}
    rejected.update({name: e.message for name, e in rejected_templates.items()})
    return sorted(registry.snapshot()), rejected
