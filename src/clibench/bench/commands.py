"""Benchmark configuration and command profile loading.

Handles:
- The commands a benchmark run executes, in order.
- Loading command profiles from YAML files.
- The built-in profile benchmarking the Atom package manager.
- Locating the installation under test and its version label.
- Validating the final configuration before execution.
"""

from __future__ import annotations

import json
import shlex
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from clibench.logging import get_logger

log = get_logger("commands")


# ---------------------------------------------------------------------------
# CommandSpec
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CommandSpec:
    """One configured invocation of the tool under test."""

    args: tuple[str, ...]
    name: str | None = None
    omit_from_report: bool = False  # still executed, never recorded
    clean_cache: bool = False  # wipe the tool's cache directory first
    run_in_target_directory: bool = False  # run with the target dir as cwd

    @property
    def identity(self) -> str:
        """Key under which this command's durations are reported.

        The explicit ``name`` if set, otherwise the arguments joined
        with shell quoting, which ``shlex.split`` reverses exactly.
        """
        if self.name is not None:
            return self.name
        return shlex.join(self.args)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a profile entry (sparse: omits defaults)."""
        d: dict[str, Any] = {}
        if self.name is not None:
            d["name"] = self.name
        d["args"] = list(self.args)
        if self.omit_from_report:
            d["omit_from_report"] = True
        if self.clean_cache:
            d["clean_cache"] = True
        if self.run_in_target_directory:
            d["run_in_target_directory"] = True
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CommandSpec:
        """Build a spec from a profile entry.

        Raises:
            ValueError: If the entry is malformed or has unknown keys.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Command entry must be a mapping, got {type(data).__name__}")
        unknown = set(data) - _COMMAND_KEYS
        if unknown:
            raise ValueError(f"Unknown command keys: {', '.join(sorted(unknown))}")

        args = data.get("args")
        if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
            raise ValueError(f"Command 'args' must be a list of strings, got {args!r}")

        name = data.get("name")
        if name is not None and not isinstance(name, str):
            raise ValueError(f"Command 'name' must be a string, got {name!r}")

        flags: dict[str, bool] = {}
        for key in ("omit_from_report", "clean_cache", "run_in_target_directory"):
            value = data.get(key, False)
            if not isinstance(value, bool):
                raise ValueError(f"Command flag '{key}' must be true or false, got {value!r}")
            flags[key] = value

        return cls(args=tuple(args), name=name, **flags)


_COMMAND_KEYS = {"name", "args", "omit_from_report", "clean_cache", "run_in_target_directory"}


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


@dataclass
class Profile:
    """A named command sequence plus where to find the tool it drives."""

    tool: str
    commands: list[CommandSpec] = field(default_factory=list)
    install_candidates: list[str] = field(default_factory=list)
    target_candidates: list[str] = field(default_factory=list)
    cache_dir: str | None = None


def _apm_commands() -> list[CommandSpec]:
    install = ("install",)
    return [
        CommandSpec(name="version", args=("--version",), omit_from_report=True),
        CommandSpec(
            name="clean slate",
            args=(
                "uninstall",
                "teletype",
                "atom-lcov",
                "atom-ide-ui",
                "hydrogen",
                "latex",
                "github",
                "git-plus",
            ),
            omit_from_report=True,
        ),
        CommandSpec(
            name="from atom.io: teletype", args=(*install, "teletype"), clean_cache=True
        ),
        CommandSpec(
            name="from atom.io: atom-lcov", args=(*install, "atom-lcov"), clean_cache=True
        ),
        CommandSpec(
            name="with prebuilt native dependencies: atom-ide-ui",
            args=(*install, "atom-ide-ui"),
            clean_cache=True,
        ),
        CommandSpec(
            name="with native dependencies: hydrogen",
            args=(*install, "hydrogen"),
            clean_cache=True,
        ),
        CommandSpec(
            name="with native dependencies: latex", args=(*install, "latex"), clean_cache=True
        ),
        CommandSpec(
            name="with native dependencies: github", args=(*install, "github"), clean_cache=True
        ),
        CommandSpec(
            name="with package-lock.json: git-plus",
            args=(*install, "git-plus"),
            clean_cache=True,
        ),
        CommandSpec(
            name="from git repository: atom/github",
            args=(*install, "atom/github"),
            clean_cache=True,
        ),
        CommandSpec(
            name="within package repository: atom/github",
            args=install,
            clean_cache=True,
            run_in_target_directory=True,
        ),
        CommandSpec(
            name="dedupe", args=("dedupe",), clean_cache=True, run_in_target_directory=True
        ),
        CommandSpec(name="clean", args=("clean",), run_in_target_directory=True),
        CommandSpec(name="rebuild individual package: hydrogen", args=("rebuild", "hydrogen")),
        CommandSpec(name="rebuild all packages", args=("rebuild",)),
        CommandSpec(
            name="set a config option",
            args=("config", "set", "somevalue", "1234"),
            omit_from_report=True,
        ),
        CommandSpec(
            name="read a config option",
            args=("config", "get", "somevalue"),
            omit_from_report=True,
        ),
        CommandSpec(
            name="delete a config option",
            args=("config", "delete", "somevalue"),
            omit_from_report=True,
        ),
        CommandSpec(
            name="remove unused packages",
            args=("uninstall", "hydrogen", "latex", "github", "git-plus"),
            omit_from_report=True,
        ),
        CommandSpec(
            name="reinstall used packages",
            args=(*install, "atom/github"),
            omit_from_report=True,
        ),
    ]


def default_profile() -> Profile:
    """The built-in profile: package operations of the Atom package manager."""
    return Profile(
        tool="apm",
        commands=_apm_commands(),
        install_candidates=["~/src/atom/apm", "~/src/apm"],
        target_candidates=["~/src/atom/github", "~/src/github"],
        cache_dir="~/.atom/.apm",
    )


def load_profile(profile_path: Path) -> Profile:
    """Load a command profile from a YAML file.

    Profile format::

        tool: apm
        install_candidates: ["~/src/atom/apm", "~/src/apm"]
        target_candidates: ["~/src/atom/github"]
        cache_dir: "~/.atom/.apm"
        commands:
          - name: version
            args: ["--version"]
            omit_from_report: true
          - name: "from atom.io: teletype"
            args: ["install", "teletype"]
            clean_cache: true

    Raises:
        FileNotFoundError: If *profile_path* does not exist.
        ValueError: If the profile is malformed.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    try:
        data = yaml.safe_load(profile_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Cannot parse {profile_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")
    profile = profile_from_dict(data)
    log.debug("Loaded %d commands from %s", len(profile.commands), profile_path)
    return profile


def profile_from_dict(data: dict[str, Any]) -> Profile:
    """Build a Profile from parsed profile data."""
    tool = data.get("tool", "")
    if not isinstance(tool, str) or not tool:
        raise ValueError("Profile 'tool' must be a non-empty string")

    commands_data = data.get("commands") or []
    if not isinstance(commands_data, list):
        raise ValueError("Profile 'commands' must be a list of command entries")

    commands: list[CommandSpec] = []
    for i, entry in enumerate(commands_data, 1):
        try:
            commands.append(CommandSpec.from_dict(entry))
        except ValueError as exc:
            raise ValueError(f"Command #{i}: {exc}") from exc

    for key in ("install_candidates", "target_candidates"):
        value = data.get(key, [])
        if not isinstance(value, list):
            raise ValueError(f"Profile '{key}' must be a list of paths")

    cache_dir = data.get("cache_dir")
    if cache_dir is not None and not isinstance(cache_dir, str):
        raise ValueError("Profile 'cache_dir' must be a path string")

    return Profile(
        tool=tool,
        commands=commands,
        install_candidates=[str(p) for p in data.get("install_candidates", [])],
        target_candidates=[str(p) for p in data.get("target_candidates", [])],
        cache_dir=cache_dir,
    )


# ---------------------------------------------------------------------------
# Installation discovery
# ---------------------------------------------------------------------------


def find_first_directory(*candidates: str | Path) -> Path:
    """Return the first of *candidates* that is an existing directory.

    ``~`` is expanded in each candidate.

    Raises:
        FileNotFoundError: If none of them exists.
    """
    for candidate in candidates:
        path = Path(candidate).expanduser()
        if path.is_dir():
            log.debug("Using directory %s", path)
            return path
    tried = ", ".join(str(c) for c in candidates) or "(none)"
    raise FileNotFoundError(f"Unable to find a directory; tried: {tried}")


def read_tool_version(install_dir: Path) -> str:
    """Read the ``version`` field of ``install_dir/package.json``.

    Raises:
        FileNotFoundError: If there is no ``package.json``.
        ValueError: If it has no usable version.
    """
    manifest = install_dir / "package.json"
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Cannot parse {manifest}: {exc}") from exc
    version = data.get("version") if isinstance(data, dict) else None
    if not isinstance(version, str) or not version:
        raise ValueError(f"No version in {manifest}")
    return version


def resolve_executable(install_dir: Path, tool: str) -> tuple[Path, bool]:
    """Locate the tool's launcher inside *install_dir*.

    Returns ``(path, use_shell)``.  Windows launchers are ``.cmd``
    scripts, which only run through the shell.
    """
    if sys.platform == "win32":
        return install_dir / "bin" / f"{tool}.cmd", True
    return install_dir / "bin" / tool, False


# ---------------------------------------------------------------------------
# BenchConfig
# ---------------------------------------------------------------------------


@dataclass
class BenchConfig:
    """Resolved configuration for a benchmark run."""

    executable: Path
    use_shell: bool = False
    version: str | None = None  # None = unlabeled, never persisted
    target_dir: Path | None = None
    cache_dir: Path | None = None
    report_path: Path | None = None  # None = default location


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: BenchConfig, commands: list[CommandSpec]) -> list[ValidationError]:
    """Validate a configuration against the commands it will run.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if not config.use_shell and not config.executable.exists():
        errors.append(
            ValidationError(
                field="executable",
                message=f"Executable does not exist: {config.executable}",
                severity="warning",
            )
        )

    if any(c.clean_cache for c in commands) and config.cache_dir is None:
        errors.append(
            ValidationError(
                field="cache_dir",
                message="Commands clean the cache but no cache directory is configured.",
            )
        )

    if any(c.run_in_target_directory for c in commands):
        if config.target_dir is None:
            errors.append(
                ValidationError(
                    field="target_dir",
                    message="Commands run in the target directory but none is configured.",
                )
            )
        elif not config.target_dir.is_dir():
            errors.append(
                ValidationError(
                    field="target_dir",
                    message=f"Target directory does not exist: {config.target_dir}",
                )
            )

    seen: set[str] = set()
    for i, cmd in enumerate(commands, 1):
        if not cmd.identity.strip():
            errors.append(
                ValidationError(
                    field=f"commands[{i}]",
                    message="Command has neither a name nor arguments to identify it.",
                )
            )
            continue
        if cmd.omit_from_report:
            continue
        if cmd.identity in seen:
            errors.append(
                ValidationError(
                    field=f"commands[{i}]",
                    message=f"Duplicate reported command '{cmd.identity}'.",
                )
            )
        seen.add(cmd.identity)

    return errors
