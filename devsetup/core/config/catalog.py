"""
Catalogue loader — reads packages.yml into a Catalog model.

The catalogue is static data shipped with the package. It is read with
``yaml.safe_load`` and validated with Pydantic, so a typo in a manager
name or a malformed step fails loudly at load time.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from devsetup.core.errors import SetupError
from devsetup.core.models.package import AbstractPackage

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_FILE = Path(__file__).resolve().parent.parent / "data" / "packages.yml"


class CatalogError(SetupError):
    """Raised when the package catalogue is invalid or missing."""

    kind = "invalid_catalog"


class Catalog(BaseModel):
    """System packages by abstract name, plus named pip package sets."""

    packages: list[AbstractPackage] = Field(default_factory=list)
    python_packages: dict[str, list[str]] = Field(default_factory=dict)

    def get(self, name: str) -> AbstractPackage:
        """Look up a package by abstract name.

        Raises:
            CatalogError: If the catalogue does not define it.
        """
        for pkg in self.packages:
            if pkg.name == name:
                return pkg
        raise CatalogError(f"Package '{name}' is not in the catalogue")

    def python_set(self, name: str) -> list[str]:
        try:
            return list(self.python_packages[name])
        except KeyError:
            raise CatalogError(f"Python package set '{name}' is not in the catalogue") from None

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.packages]


def load_catalog(path: Path | None = None) -> Catalog:
    """Load and validate a package catalogue.

    Args:
        path: Catalogue file. Defaults to the bundled packages.yml.

    Raises:
        CatalogError: If the file is missing or invalid.
    """
    path = path or DEFAULT_CATALOG_FILE

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise CatalogError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise CatalogError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        catalog = Catalog.model_validate(data)
    except Exception as e:
        raise CatalogError(f"Invalid package catalogue {path}: {e}") from e

    names = catalog.names
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise CatalogError(f"Duplicate packages in {path}: {', '.join(duplicates)}")

    logger.debug("Loaded %d packages from %s", len(names), path)
    return catalog


@lru_cache(maxsize=1)
def default_catalog() -> Catalog:
    """The bundled catalogue (loaded once per process)."""
    return load_catalog()
