# Copyright 2025 TIER IV, INC. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Build recipe(.paxmeta) schema.

A recipe is a YAML document like the following:

    name: hello
    version: 1.0.0
    description: GNU hello
    source: https://ftp.gnu.org/gnu/hello/hello-1.0.0.tar.gz
    hash: sha256:<hex>
    arch: [x86_64]
    dependencies:
      - libc>=2.31
    build: |
      ./configure --prefix=/usr && make && make install DESTDIR=$PAX_BUILD_ROOT
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import ConfigDict, Field
from typing_extensions import Self

from paxbuild.common import MetaFileBase
from paxbuild.consts import DEFAULT_ARCHS, DEFAULT_BUILD_SCRIPT, PAX_EXT
from paxbuild.errors import RecipeParseError, RecipeValidationError

from .arch import validate_architectures


def _default_arch() -> list[str]:
    return list(DEFAULT_ARCHS)


class BuildRecipe(MetaFileBase):
    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    description: str
    source: str
    hash: Optional[str] = None
    arch: List[str] = Field(default_factory=_default_arch)
    dependencies: List[str] = Field(default_factory=list)
    runtime_dependencies: List[str] = Field(default_factory=list)
    provides: List[str] = Field(default_factory=list)
    conflicts: List[str] = Field(default_factory=list)
    build: Optional[str] = None
    install: Optional[str] = None
    uninstall: Optional[str] = None

    @classmethod
    def parse_metafile(cls, _input: str) -> Self:
        try:
            return super().parse_metafile(_input)
        except ValueError as e:
            raise RecipeParseError(f"failed to parse recipe: {e}") from e

    def validate(self) -> None:
        """Check the recipe before any build step is taken.

        Raises:
            RecipeValidationError with the reason of the first failed check.
        """
        if not self.name:
            raise RecipeValidationError("Package name cannot be empty")
        if not self.version:
            raise RecipeValidationError("Package version cannot be empty")
        if not self.description:
            raise RecipeValidationError("Package description cannot be empty")
        if not self.source:
            raise RecipeValidationError("Package source cannot be empty")

        if not all(c.isalnum() or c in "-_" for c in self.name):
            raise RecipeValidationError(
                "Package name contains invalid characters. "
                "Only alphanumeric, dash, and underscore are allowed"
            )
        if not any(c.isdigit() for c in self.version):
            raise RecipeValidationError(
                "Package version must contain at least one number"
            )
        validate_architectures(self.arch)

    def get_build_script(self) -> str:
        return self.build if self.build else DEFAULT_BUILD_SCRIPT

    def package_id(self) -> str:
        return f"{self.name}-{self.version}"

    def package_filename(self) -> str:
        """Filename of legacy single-architecture package."""
        return f"{self.package_id()}{PAX_EXT}"

    def package_filename_for_arch(self, arch: str) -> str:
        return f"{self.package_id()}-{arch}{PAX_EXT}"
