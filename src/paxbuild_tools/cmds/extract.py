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
"""Extract a .pax package into a folder."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from paxbuild.consts import PAX_EXT
from paxbuild.errors import PaxBuildError
from paxbuild.package import PaxPackage
from paxbuild_tools._utils import exit_on_paxbuild_error

if TYPE_CHECKING:
    from argparse import ArgumentParser, Namespace, _SubParsersAction

logger = logging.getLogger(__name__)


def extract_cmd_args(
    sub_arg_parser: _SubParsersAction[ArgumentParser], *parent_parser: ArgumentParser
) -> None:
    extract_arg_parser = sub_arg_parser.add_parser(
        name="extract",
        help=(_help_txt := "Extract contents of a .pax package"),
        description=_help_txt,
        parents=parent_parser,
    )
    extract_arg_parser.add_argument(
        "--output",
        "-o",
        help="Output folder. Default to the package filename without suffix.",
    )
    extract_arg_parser.add_argument(
        "package",
        help="Path to the .pax package.",
    )
    extract_arg_parser.set_defaults(handler=extract_cmd)


def extract_cmd(args: Namespace) -> None:
    logger.debug(f"calling {extract_cmd.__name__} with {args}")
    try:
        with PaxPackage.open(args.package) as package:
            if args.output:
                _output = Path(args.output)
            else:
                _output = Path(package.filename().removesuffix(PAX_EXT))

            print(f"Extracting {package.path} to {_output} ...")
            package.extract_to(_output)
            _files_num = len(package.list_files())
    except PaxBuildError as e:
        logger.debug(f"failed to extract package: {e!r}", exc_info=e)
        exit_on_paxbuild_error(e)

    print(f"Extracted {_files_num} files to {_output}")
