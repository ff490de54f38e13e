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
"""Build .pax packages from a .paxmeta recipe."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from paxbuild.builder import PackageBuilder
from paxbuild.common import remove_file, tmp_fname
from paxbuild.consts import RECIPE_EXT, SUPPORTED_ARCHS
from paxbuild.errors import PaxBuildError
from paxbuild.recipe import load_recipe
from paxbuild_tools._utils import exit_on_paxbuild_error, exit_with_err_msg

if TYPE_CHECKING:
    from argparse import ArgumentParser, Namespace, _SubParsersAction

logger = logging.getLogger(__name__)


def build_cmd_args(
    sub_arg_parser: _SubParsersAction[ArgumentParser], *parent_parser: ArgumentParser
) -> None:
    build_arg_parser = sub_arg_parser.add_parser(
        name="build",
        help=(_help_txt := "Build .pax package(s) from a .paxmeta recipe"),
        description=_help_txt,
        parents=parent_parser,
    )
    build_arg_parser.add_argument(
        "--output",
        "-o",
        help=(
            "Output path. When building for one architecture, this is the "
            "package file path, otherwise the folder to hold the packages. "
            "Default to current folder."
        ),
    )
    build_arg_parser.add_argument(
        "--arch",
        "-a",
        action="append",
        choices=SUPPORTED_ARCHS,
        help=(
            "Target architecture, can be specified multiple times. "
            "If not specified, build for all architectures listed in the recipe."
        ),
    )
    build_arg_parser.add_argument(
        "recipe",
        help=f"Path or http(s) URL of the {RECIPE_EXT} recipe.",
    )
    build_arg_parser.set_defaults(handler=build_cmd)


def _publish_to_file(staged: Path, dst: Path) -> Path:
    dst.parent.mkdir(parents=True, exist_ok=True)
    _tmp_dst = dst.parent / tmp_fname(dst.name)
    try:
        shutil.copyfile(staged, _tmp_dst)
        os.replace(_tmp_dst, dst)
    finally:
        remove_file(_tmp_dst)
    return dst


def build_cmd(args: Namespace) -> None:
    logger.debug(f"calling {build_cmd.__name__} with {args}")
    try:
        recipe = load_recipe(args.recipe)
        architectures = args.arch or recipe.arch
        print(f"Building {recipe.name} {recipe.version} for {architectures} ...")

        with PackageBuilder() as builder:
            _output = Path(args.output) if args.output else Path.cwd()
            if args.output and len(architectures) == 1 and not _output.is_dir():
                (_staged,) = builder.build_for_architectures(recipe, architectures)
                packages = [_publish_to_file(_staged, _output)]
            else:
                packages = builder.build_for_architectures(
                    recipe, architectures, _output
                )
    except PaxBuildError as e:
        logger.debug(f"failed to build package: {e!r}", exc_info=e)
        exit_on_paxbuild_error(e)
    except OSError as e:
        exit_with_err_msg(f"failed to save package to {args.output}: {e!r}")

    print(f"Successfully built {len(packages)} package(s):")
    for _package in packages:
        print(f"  {_package}")
