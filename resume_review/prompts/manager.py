from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from string import Template
from typing import Any

import yaml

VERSION_RE = re.compile(r"^v(\d{3})$")

DEFAULT_PROMPTS_ROOT = Path(__file__).resolve().parent

SYSTEM_PROMPT_FILE = "system_prompt.txt"
SCHEMA_FILE = "schema.json"
META_FILE = "meta.yaml"


@dataclass(frozen=True, slots=True)
class PromptSet:
    """Review instructions and the feedback schema the model must follow."""

    prompt_name: str
    version: str
    system_prompt_text: str
    schema_text: str
    meta: dict[str, Any]
    prompt_dir: Path

    @property
    def schema(self) -> dict[str, Any]:
        return _parse_schema(self.schema_text)


class PromptManager:
    """Versioned prompt directories laid out as ``<name>/vNNN/``."""

    def __init__(self, prompts_root: Path | str = DEFAULT_PROMPTS_ROOT) -> None:
        self.prompts_root = Path(prompts_root)

    def list_prompt_names(self) -> list[str]:
        if not self.prompts_root.is_dir():
            return []
        return sorted(
            child.name
            for child in self.prompts_root.iterdir()
            if child.is_dir()
            and not child.name.startswith("__")
            and self.list_versions(child.name)
        )

    def list_versions(self, prompt_name: str) -> list[str]:
        prompt_dir = self.prompts_root / prompt_name
        if not prompt_dir.is_dir():
            return []
        versions = [
            child.name
            for child in prompt_dir.iterdir()
            if child.is_dir() and VERSION_RE.match(child.name)
        ]
        return sorted(versions, key=_version_number)

    def latest_version(self, prompt_name: str) -> str:
        versions = self.list_versions(prompt_name)
        if not versions:
            raise FileNotFoundError(f"No versions found for prompt: {prompt_name}")
        return versions[-1]

    def load_prompt_set(
        self, *, prompt_name: str, version: str | None = None
    ) -> PromptSet:
        resolved_version = version or self.latest_version(prompt_name)
        if not VERSION_RE.match(resolved_version):
            raise ValueError(f"Invalid prompt version format: {resolved_version}")

        prompt_dir = self.prompts_root / prompt_name / resolved_version
        schema_text = _read_required(prompt_dir / SCHEMA_FILE, label="schema")
        _parse_schema(schema_text)

        return PromptSet(
            prompt_name=prompt_name,
            version=resolved_version,
            system_prompt_text=_read_required(
                prompt_dir / SYSTEM_PROMPT_FILE, label="system prompt"
            ),
            schema_text=schema_text,
            meta=_read_meta(prompt_dir / META_FILE),
            prompt_dir=prompt_dir,
        )


def build_instructions(
    prompt_set: PromptSet,
    *,
    job_title: str,
    job_description: str,
) -> str:
    """Fill the prompt template with the job context and response format.

    Unknown ``$placeholders`` are left untouched so prompt text may contain
    literal dollar signs.
    """
    template = Template(prompt_set.system_prompt_text)
    return template.safe_substitute(
        job_title=job_title,
        job_description=job_description,
        response_format=prompt_set.schema_text.strip(),
    )


def _read_required(path: Path, *, label: str) -> str:
    if not path.is_file():
        raise FileNotFoundError(f"{label} not found: {path}")
    return path.read_text(encoding="utf-8")


def _read_meta(path: Path) -> dict[str, Any]:
    # meta.yaml is optional and informational only
    if not path.is_file():
        return {}
    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    return parsed if isinstance(parsed, dict) else {}


def _parse_schema(schema_text: str) -> dict[str, Any]:
    try:
        parsed = json.loads(schema_text)
    except json.JSONDecodeError as error:
        raise ValueError(f"Invalid schema JSON: {error}") from error

    if not isinstance(parsed, dict):
        raise ValueError("Schema JSON root must be an object")
    return parsed


def _version_number(version: str) -> int:
    match = VERSION_RE.match(version)
    if match is None:
        raise ValueError(f"Invalid version format: {version}")
    return int(match.group(1))
