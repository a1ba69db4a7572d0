"""Environment and configuration diagnostics for lokma-i18n.

This module inspects optional/required dependencies, the project config,
directories and credentials so users get actionable guidance instead of a
failed run halfway through a stage.
"""

from __future__ import annotations

import importlib.util
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .catalog import CatalogStore
from .config import SyncConfig
from .credentials import find_credentials
from .errors import CatalogError, ConfigError


@dataclass
class CheckResult:
    """Represents a diagnostic check with status and human-readable detail."""

    name: str
    status: str  # ok | warn | error
    detail: str


def _module_available(module_name: str) -> bool:
    try:
        return importlib.util.find_spec(module_name) is not None
    except ModuleNotFoundError:
        return False


def _check_dependency(module: str, friendly: str, required: bool = False) -> CheckResult:
    available = _module_available(module)
    status = "ok" if available else ("error" if required else "warn")
    detail = f"{friendly} available" if available else f"{friendly} missing"
    return CheckResult(friendly, status, detail)


def _check_catalogs(config: SyncConfig) -> List[CheckResult]:
    if not config.messages_dir.is_dir():
        return [CheckResult("Messages directory", "error", f"Not found: {config.messages_dir}")]

    results = [CheckResult("Messages directory", "ok", str(config.messages_dir))]
    store = CatalogStore(config.messages_dir)
    for lang in config.all_langs:
        if not store.path_for(lang).exists():
            results.append(CheckResult(f"Catalog {lang}", "warn", "missing, run extract/inject"))
            continue
        try:
            catalog = store.load(lang)
        except CatalogError as e:
            results.append(CheckResult(f"Catalog {lang}", "error", str(e)))
            continue
        results.append(CheckResult(f"Catalog {lang}", "ok", f"{len(catalog)} keys"))
    return results


def _check_sources(config: SyncConfig) -> List[CheckResult]:
    if not config.sources:
        return [CheckResult("Source bindings", "warn", "No 'sources' configured")]
    results = []
    for binding in config.sources:
        status = "ok" if binding.directory.is_dir() else "error"
        detail = str(binding.directory) if status == "ok" else f"Not found: {binding.directory}"
        results.append(CheckResult(f"Source {binding.namespace}", status, detail))
    return results


def _check_credentials(config: SyncConfig) -> CheckResult:
    info = find_credentials(config.secrets_file)
    if not info.is_set:
        return CheckResult("Credentials", "warn", "No service account found; sync to Firestore will fail")
    project = f" (project {info.project_id})" if info.project_id else ""
    return CheckResult("Credentials", "ok", f"{info.path} via {info.source}{project}")


def run_diagnostics(config_path: Path) -> List[CheckResult]:
    """Run every check; never raises."""
    results = [
        _check_dependency("tree_sitter", "tree-sitter", required=True),
        _check_dependency("tree_sitter_typescript", "tree-sitter-typescript", required=True),
        _check_dependency("requests", "requests", required=True),
        _check_dependency("google.cloud.firestore", "google-cloud-firestore"),
    ]

    try:
        config = SyncConfig.load(config_path)
    except ConfigError as e:
        results.append(CheckResult("Config", "error", str(e)))
        return results

    results.append(CheckResult("Config", "ok", str(config_path)))
    results.extend(_check_catalogs(config))
    results.extend(_check_sources(config))
    results.append(_check_credentials(config))
    return results


def summarize(results: List[CheckResult]) -> str:
    """Short status line used by the CLI."""
    errors = sum(1 for r in results if r.status == "error")
    warns = sum(1 for r in results if r.status == "warn")
    return f"{len(results)} checks, {errors} errors, {warns} warnings"
