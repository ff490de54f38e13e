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
"""Metadata document(metadata.yaml) carried inside a .pax package."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from paxbuild.common import MetaFileBase
from paxbuild.recipe.schema import BuildRecipe


class PackageMetadata(MetaFileBase):
    name: str
    version: str
    description: str
    arch: List[str]
    dependencies: List[str] = Field(default_factory=list)
    runtime_dependencies: List[str] = Field(default_factory=list)
    provides: List[str] = Field(default_factory=list)
    conflicts: List[str] = Field(default_factory=list)
    install_script: Optional[str] = None
    uninstall_script: Optional[str] = None
    files: List[str] = Field(default_factory=list)
    """Relative path of every regular file in the package, except the metadata itself."""

    @classmethod
    def from_recipe(
        cls, recipe: BuildRecipe, *, arch: str, files: list[str]
    ) -> PackageMetadata:
        """Synthesize the metadata for the package built for <arch>."""
        return cls(
            name=recipe.name,
            version=recipe.version,
            description=recipe.description,
            arch=[arch],
            dependencies=list(recipe.dependencies),
            runtime_dependencies=list(recipe.runtime_dependencies),
            provides=list(recipe.provides) or [recipe.name],
            conflicts=list(recipe.conflicts),
            install_script=recipe.install,
            uninstall_script=recipe.uninstall,
            files=files,
        )
