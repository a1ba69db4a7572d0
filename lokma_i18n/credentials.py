"""
Service-account credential resolution for the remote document store.

Priority order:
1. LOKMA_I18N_CREDENTIALS environment variable (path to a JSON key file)
2. GOOGLE_APPLICATION_CREDENTIALS environment variable
3. Local secrets file from the config (default .secrets/service-account.json)

A missing credential is a configuration error: the run aborts before any
catalog is touched and it is never retried.

Usage:
    from lokma_i18n.credentials import resolve_credentials

    path = resolve_credentials(config.secrets_file)
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from lokma_i18n.errors import ConfigError

ENV_VARS = ("LOKMA_I18N_CREDENTIALS", "GOOGLE_APPLICATION_CREDENTIALS")


@dataclass
class CredentialInfo:
    """Where the credential came from, for diagnostics."""
    path: Optional[Path]
    source: str  # env var name, 'secrets-file' or 'none'
    project_id: Optional[str] = None

    @property
    def is_set(self) -> bool:
        return self.path is not None


def find_credentials(secrets_file: Optional[Path] = None) -> CredentialInfo:
    """Locate a credential file without raising."""
    for var in ENV_VARS:
        if value := os.getenv(var):
            path = Path(value).expanduser()
            if path.is_file():
                return CredentialInfo(path=path, source=var, project_id=_project_id(path))

    if secrets_file is not None and Path(secrets_file).is_file():
        path = Path(secrets_file)
        return CredentialInfo(path=path, source="secrets-file", project_id=_project_id(path))

    return CredentialInfo(path=None, source="none")


def resolve_credentials(secrets_file: Optional[Path] = None) -> Path:
    """Return the credential path or raise ConfigError."""
    info = find_credentials(secrets_file)
    if not info.is_set:
        checked = ", ".join(ENV_VARS)
        if secrets_file is not None:
            checked += f", {secrets_file}"
        raise ConfigError(f"No service-account credentials found (checked {checked})")
    return info.path


def _project_id(path: Path) -> Optional[str]:
    try:
        return json.loads(path.read_text(encoding="utf-8")).get("project_id")
    except (OSError, ValueError, AttributeError):
        return None
