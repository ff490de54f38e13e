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
"""The build-and-package pipeline: recipe -> source -> build -> .pax packages."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Sequence

from paxbuild.common import remove_file, tmp_fname
from paxbuild.consts import (
    DEFAULT_SHELL,
    WORKSPACE_PACKAGES_DIR,
    WORKSPACE_SOURCE_DIR,
    ZSTD_COMPRESSION_LEVEL,
)
from paxbuild.errors import RecipeValidationError
from paxbuild.recipe.arch import validate_architectures
from paxbuild.recipe.schema import BuildRecipe
from paxbuild.source import SourceManager

from .assembler import PackageAssembler
from .executor import BuildExecutor

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "paxbuild_"


def publish_packages(packages: Sequence[Path], output_dir: Path) -> list[Path]:
    """Copy all the staged <packages> into <output_dir>.

    Either all packages are published, or none of them is left in <output_dir>.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    published: list[Path] = []
    try:
        for _staged in packages:
            _dst = output_dir / _staged.name
            _tmp_dst = output_dir / tmp_fname(_staged.name)
            try:
                shutil.copyfile(_staged, _tmp_dst)
                os.replace(_tmp_dst, _dst)
            finally:
                remove_file(_tmp_dst)
            published.append(_dst)
    except Exception:
        for _published in published:
            remove_file(_published)
        raise
    return published


class PackageBuilder:
    """Build .pax packages from a recipe.

    All intermediate files(downloaded source, extracted source tree, per-arch build dirs
        and install roots, staged packages) live in one workspace, which is removed
        when the builder is closed. Use the builder as a context manager to make sure
        the workspace is cleaned up on error.

    This class is NOT thread-safe, architectures are built one at a time.
    """

    def __init__(
        self,
        *,
        zstd_compression_level: int = ZSTD_COMPRESSION_LEVEL,
        shell: str = DEFAULT_SHELL,
    ) -> None:
        self._tmp_dir = TemporaryDirectory(prefix=WORKSPACE_PREFIX)
        self.workspace = Path(self._tmp_dir.name)
        self.packages_dir = self.workspace / WORKSPACE_PACKAGES_DIR
        self.shell = shell
        self.assembler = PackageAssembler(
            zstd_compression_level=zstd_compression_level
        )
        self.source_mgr = SourceManager(self.workspace / WORKSPACE_SOURCE_DIR)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self) -> None:
        self._tmp_dir.cleanup()

    def build(self, recipe: BuildRecipe, output_dir: Path | None = None) -> list[Path]:
        """Build packages for all the architectures listed in the recipe."""
        return self.build_for_architectures(recipe, recipe.arch, output_dir)

    def build_for_architectures(
        self,
        recipe: BuildRecipe,
        architectures: Sequence[str],
        output_dir: Path | None = None,
    ) -> list[Path]:
        """Build one package per architecture in <architectures>.

        The source is downloaded and extracted once, and shared by all the builds.
        Any failure aborts the whole build, and no package is published to
            <output_dir> in such case.

        Args:
            recipe (BuildRecipe): The recipe to build.
            architectures (Sequence[str]): Target architectures, all of them must be
                listed in the recipe.
            output_dir (Path | None): Where to publish the packages. If not specified,
                the packages stay in the workspace until the builder is closed.

        Returns:
            A list of package paths, in the same order as <architectures>.
        """
        logger.info(
            f"building package: {recipe.name} {recipe.version} "
            f"for architectures: {list(architectures)}"
        )
        recipe.validate()
        if not architectures:
            raise RecipeValidationError("No architectures specified for build")
        validate_architectures(architectures)
        for _arch in architectures:
            if _arch not in recipe.arch:
                raise RecipeValidationError(
                    f"Architecture '{_arch}' is not supported by this recipe. "
                    f"Supported architectures: {recipe.arch}"
                )

        source_root = self.source_mgr.acquire(recipe.source, recipe.hash)

        executor = BuildExecutor(self.workspace, source_root, shell=self.shell)
        staged: list[Path] = []
        for _arch in architectures:
            logger.info(f"building for architecture: {_arch}")
            _output = executor.run(recipe, _arch)
            staged.append(
                self.assembler.assemble(
                    recipe, _arch, _output.install_root, self.packages_dir
                )
            )
        logger.info(f"all {len(staged)} architecture-specific packages are built")

        if output_dir is None:
            return staged
        return publish_packages(staged, output_dir)


def build_package(
    recipe: BuildRecipe,
    output_dir: Path,
    architectures: Sequence[str] | None = None,
    **kwargs,
) -> list[Path]:
    """Build packages from <recipe> into <output_dir> with a one-shot workspace."""
    with PackageBuilder(**kwargs) as builder:
        return builder.build_for_architectures(
            recipe, architectures or recipe.arch, output_dir
        )
