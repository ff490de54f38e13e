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
"""Show information about a .pax package."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from paxbuild.errors import PaxBuildError
from paxbuild.package import PaxPackage
from paxbuild_tools._utils import exit_on_paxbuild_error

if TYPE_CHECKING:
    from argparse import ArgumentParser, Namespace, _SubParsersAction

logger = logging.getLogger(__name__)

MAX_LISTED_FILES = 20


def info_cmd_args(
    sub_arg_parser: _SubParsersAction[ArgumentParser], *parent_parser: ArgumentParser
) -> None:
    info_arg_parser = sub_arg_parser.add_parser(
        name="info",
        help=(_help_txt := "Show information about a .pax package"),
        description=_help_txt,
        parents=parent_parser,
    )
    info_arg_parser.add_argument(
        "package",
        help="Path to the .pax package.",
    )
    info_arg_parser.set_defaults(handler=info_cmd)


def info_cmd(args: Namespace) -> None:
    logger.debug(f"calling {info_cmd.__name__} with {args}")
    try:
        with PaxPackage.open(args.package) as package:
            metadata = package.load_metadata()
            _size, _hash = package.size(), package.calculate_hash()
            _parsed = package.parse_package_info()
    except PaxBuildError as e:
        logger.debug(f"failed to inspect package: {e!r}", exc_info=e)
        exit_on_paxbuild_error(e)

    print("Package Information:")
    print(f"  Name: {metadata.name}")
    print(f"  Version: {metadata.version}")
    print(f"  Description: {metadata.description}")
    print(f"  Architectures: {metadata.arch}")
    print(f"  Filename: {package.filename()}")
    if _parsed:
        _name, _version, _arch = _parsed
        print("  Parsed from filename:")
        print(f"    Name: {_name}")
        print(f"    Version: {_version}")
        print(f"    Architecture: {_arch}")

    for _title, _values in (
        ("Dependencies", metadata.dependencies),
        ("Runtime Dependencies", metadata.runtime_dependencies),
        ("Provides", metadata.provides),
        ("Conflicts", metadata.conflicts),
    ):
        if _values:
            print(f"  {_title}: {_values}")
    if metadata.install_script:
        print(f"  Install Script: {metadata.install_script}")
    if metadata.uninstall_script:
        print(f"  Uninstall Script: {metadata.uninstall_script}")

    print("Package File Information:")
    print(f"  Size: {_size} bytes")
    print(f"  Hash: {_hash}")
    print(f"  Files: {len(metadata.files)}")
    if len(metadata.files) <= MAX_LISTED_FILES:
        for _fname in metadata.files:
            print(f"    {_fname}")
