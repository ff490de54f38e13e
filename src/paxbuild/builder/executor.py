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
"""Run the recipe's build script for one target architecture."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from paxbuild.consts import (
    DEFAULT_SHELL,
    ENV_ARCH,
    ENV_BUILD_DIR,
    ENV_BUILD_ROOT,
    ENV_PACKAGE_NAME,
    ENV_PACKAGE_VERSION,
    ENV_SOURCE_DIR,
    ENV_TARGET_ARCH,
    WORKSPACE_BUILD_DIR,
    WORKSPACE_INSTALL_DIR,
)
from paxbuild.errors import BuildScriptFailed
from paxbuild.recipe.schema import BuildRecipe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildOutput:
    arch: str
    install_root: Path
    build_dir: Path
    stdout: str = ""
    stderr: str = ""


def build_environ(
    recipe: BuildRecipe,
    *,
    arch: str,
    source_root: Path,
    build_dir: Path,
    install_root: Path,
) -> dict[str, str]:
    """The environment bindings exposed to the build script."""
    return {
        ENV_BUILD_ROOT: str(install_root),
        ENV_PACKAGE_NAME: recipe.name,
        ENV_PACKAGE_VERSION: recipe.version,
        ENV_ARCH: arch,
        ENV_TARGET_ARCH: arch,
        ENV_SOURCE_DIR: str(source_root),
        ENV_BUILD_DIR: str(build_dir),
    }


def _prepare_fresh_dir(_dir: Path) -> Path:
    if _dir.exists():
        shutil.rmtree(_dir)
    _dir.mkdir(parents=True)
    return _dir


class BuildExecutor:
    """Execute the build script against a shared source root.

    Each architecture gets its own build dir and install root under <workdir>,
        `build/<arch>` and `install/<arch>`, so install trees of different
        architectures never commingle.
    """

    def __init__(
        self, workdir: Path, source_root: Path, *, shell: str = DEFAULT_SHELL
    ) -> None:
        self.workdir = workdir
        self.source_root = source_root
        self.shell = shell

    def build_dir(self, arch: str) -> Path:
        return self.workdir / WORKSPACE_BUILD_DIR / arch

    def install_root(self, arch: str) -> Path:
        return self.workdir / WORKSPACE_INSTALL_DIR / arch

    def run(self, recipe: BuildRecipe, arch: str) -> BuildOutput:
        """Run the build script for <arch>.

        Raises:
            BuildScriptFailed if the script exits with non-zero code, with both
                captured output streams attached.
        """
        logger.info(f"running build script for architecture: {arch} ...")
        _build_dir = _prepare_fresh_dir(self.build_dir(arch))
        _install_root = _prepare_fresh_dir(self.install_root(arch))

        _env = os.environ.copy()
        _env.update(
            build_environ(
                recipe,
                arch=arch,
                source_root=self.source_root,
                build_dir=_build_dir,
                install_root=_install_root,
            )
        )

        _cmd = [self.shell, "-c", recipe.get_build_script()]
        logger.debug(f"build command: {_cmd}")
        try:
            _res = subprocess.run(
                _cmd,
                cwd=self.source_root,
                env=_env,
                capture_output=True,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise BuildScriptFailed(arch, stderr=str(e)) from e

        if _res.returncode != 0:
            logger.debug(f"build output for {arch}:\n{_res.stdout}")
            logger.debug(f"build errors for {arch}:\n{_res.stderr}")
            raise BuildScriptFailed(
                arch,
                stdout=_res.stdout,
                stderr=_res.stderr,
                returncode=_res.returncode,
            )

        logger.info(f"build completed successfully for architecture: {arch}")
        return BuildOutput(
            arch=arch,
            install_root=_install_root,
            build_dir=_build_dir,
            stdout=_res.stdout,
            stderr=_res.stderr,
        )
