"""
Heuristic extraction of structured facts from project manifests and READMEs.
"""

import json
import logging
import posixpath
import re
import tomllib

logger = logging.getLogger(__name__)

SETUP_HEADINGS: tuple[str, ...] = ("setup", "installation", "getting started")

_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


def _dedupe(names: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for name in names:
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return result


def _package_json(content: str) -> list[str]:
    data = json.loads(content)
    if not isinstance(data, dict):
        return []
    names: list[str] = []
    for section in ("dependencies", "devDependencies", "peerDependencies"):
        deps = data.get(section)
        if isinstance(deps, dict):
            names.extend(str(k) for k in deps)
    return names


def _cargo_toml(content: str) -> list[str]:
    data = tomllib.loads(content)
    names: list[str] = []
    for section in ("dependencies", "dev-dependencies", "build-dependencies"):
        deps = data.get(section)
        if isinstance(deps, dict):
            names.extend(deps.keys())
    return names


def _requirement_names(lines: list[str]) -> list[str]:
    names = []
    for line in lines:
        line = line.split("#", 1)[0].strip()
        if not line or line.startswith("-"):
            continue
        match = _REQUIREMENT_NAME.match(line)
        if match:
            names.append(match.group(1))
    return names


def _pyproject_toml(content: str) -> list[str]:
    data = tomllib.loads(content)
    project = data.get("project", {})
    names = _requirement_names(list(project.get("dependencies", [])))
    poetry = data.get("tool", {}).get("poetry", {}).get("dependencies", {})
    if isinstance(poetry, dict):
        names.extend(k for k in poetry if k.lower() != "python")
    return names


def _go_mod(content: str) -> list[str]:
    names = []
    in_block = False
    for raw in content.splitlines():
        line = raw.strip()
        if line.startswith("require ("):
            in_block = True
            continue
        if in_block and line == ")":
            in_block = False
            continue
        if in_block and line:
            names.append(line.split()[0])
        elif line.startswith("require "):
            parts = line.split()
            if len(parts) >= 2:
                names.append(parts[1])
    return names


_PARSERS = {
    "package.json": _package_json,
    "cargo.toml": _cargo_toml,
    "pyproject.toml": _pyproject_toml,
    "go.mod": _go_mod,
    "requirements.txt": lambda content: _requirement_names(content.splitlines()),
}


def is_manifest(path: str) -> bool:
    """True if the file name is a manifest we know how to parse."""
    return posixpath.basename(path).lower() in _PARSERS


def extract_dependencies(path: str, content: str) -> list[str]:
    """
    Extract dependency names from a manifest file.

    Args:
        path: Relative path of the file (only the base name matters)
        content: Decoded file content

    Returns:
        Dependency names in declaration order without duplicates; empty for
        unknown or unparsable files
    """
    parser = _PARSERS.get(posixpath.basename(path).lower())
    if parser is None:
        return []
    try:
        return _dedupe(parser(content))
    except (ValueError, tomllib.TOMLDecodeError, AttributeError, TypeError) as e:
        # Content is often truncated before it reaches us
        logger.debug(f"Could not parse manifest {path}: {e}")
        return []


def extract_markdown_section(content: str, headings: tuple[str, ...] = SETUP_HEADINGS) -> str | None:
    """
    Return the body under the first heading whose title contains one of headings.

    The section ends at the next heading of the same or a higher level.

    Returns:
        Stripped section text, or None if no matching non-empty section exists
    """
    in_section = False
    level = 0
    section: list[str] = []

    for line in content.splitlines():
        stripped = line.strip()
        hashes, _, title = stripped.partition(" ")
        if hashes and set(hashes) == {"#"}:
            current = len(hashes)
            if in_section and current <= level:
                break
            if not in_section and any(h in title.lower() for h in headings):
                in_section = True
                level = current
                continue
        if in_section:
            section.append(line)

    text = "\n".join(section).strip()
    return text or None


def setup_instructions_from_readme(content: str) -> str:
    """Setup section of a README, or the whole README when it has none."""
    return extract_markdown_section(content) or content.strip()
