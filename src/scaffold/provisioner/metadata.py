"""Project metadata patching.

Reads the project's package.json, replaces its "name" field and writes it
back with a stable format: two-space indentation, original key order,
unescaped non-ASCII text and a trailing newline.
"""

import json
from pathlib import Path
from typing import Any, Dict

import structlog

from src.scaffold.errors import MetadataPatchFailedError

logger = structlog.get_logger(__name__)

METADATA_FILENAME = "package.json"
METADATA_INDENT = 2


def read_metadata(path: Path) -> Dict[str, Any]:
    """Load a metadata file as a JSON object.

    Raises:
        MetadataPatchFailedError: If the file cannot be read or parsed,
            or its top-level value is not an object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8-sig"))
    except OSError as exc:
        raise MetadataPatchFailedError(
            f"Failed to read {path}: {exc}", cause=exc
        ) from exc
    except ValueError as exc:
        raise MetadataPatchFailedError(
            f"Failed to parse {path}: {exc}", cause=exc
        ) from exc

    if not isinstance(data, dict):
        raise MetadataPatchFailedError(
            f"Expected a JSON object in {path}, got {type(data).__name__}"
        )
    return data


def format_metadata(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=METADATA_INDENT, ensure_ascii=False) + "\n"


def write_metadata(path: Path, data: Dict[str, Any]) -> None:
    """Write a metadata object back to disk in the stable format.

    Raises:
        MetadataPatchFailedError: If the file cannot be written.
    """
    try:
        path.write_text(format_metadata(data), encoding="utf-8")
    except OSError as exc:
        raise MetadataPatchFailedError(
            f"Failed to write {path}: {exc}", cause=exc
        ) from exc


def patch_project_metadata(
    directory: Path,
    project_name: str,
    filename: str = METADATA_FILENAME,
) -> bool:
    """Set the "name" field of the metadata file in directory.

    Args:
        directory: Project root containing the metadata file.
        project_name: Value to store in the "name" field.
        filename: Metadata file name relative to the project root.

    Returns:
        True if the file was patched, False if it does not exist.

    Raises:
        MetadataPatchFailedError: If the file exists but cannot be
            read, parsed or rewritten.
    """
    path = directory / filename
    if not path.exists():
        logger.info("No metadata file found", path=str(path))
        return False

    data = read_metadata(path)
    previous_name = data.get("name")
    data["name"] = project_name
    write_metadata(path, data)

    logger.info(
        "Patched project metadata",
        path=str(path),
        previous_name=previous_name,
        name=project_name,
    )
    return True
