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
"""Verify the integrity, and optionally the signature, of a .pax package."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from paxbuild._crypto.sign_utils import (
    load_public_key,
    signature_path_of,
    verify_package_signature,
)
from paxbuild.errors import PaxBuildError
from paxbuild.package import PaxPackage
from paxbuild_tools._utils import exit_on_paxbuild_error, exit_with_err_msg

if TYPE_CHECKING:
    from argparse import ArgumentParser, Namespace, _SubParsersAction

logger = logging.getLogger(__name__)


def verify_cmd_args(
    sub_arg_parser: _SubParsersAction[ArgumentParser], *parent_parser: ArgumentParser
) -> None:
    verify_arg_parser = sub_arg_parser.add_parser(
        name="verify",
        help=(_help_txt := "Verify a .pax package"),
        description=_help_txt,
        parents=parent_parser,
    )
    verify_arg_parser.add_argument(
        "--key",
        "-k",
        help=(
            "Hex-encoded Ed25519 public key file. If specified, also verify "
            "the package against its detached signature <package>.sig."
        ),
    )
    verify_arg_parser.add_argument(
        "package",
        help="Path to the .pax package.",
    )
    verify_arg_parser.set_defaults(handler=verify_cmd)


def _verify_signature(package: Path, key: Path) -> None:
    _sig_f = signature_path_of(package)
    if not _sig_f.is_file():
        exit_with_err_msg(f"signature file {_sig_f} not found, package not signed?")

    print(f"Verifying signature {_sig_f} ...")
    try:
        _pub_key = load_public_key(key)
    except (ValueError, OSError) as e:
        exit_with_err_msg(f"failed to load public key {key}: {e}")
    verify_package_signature(package, _sig_f.read_bytes(), _pub_key)
    print("Package signature verified")


def verify_cmd(args: Namespace) -> None:
    logger.debug(f"calling {verify_cmd.__name__} with {args}")
    print(f"Verifying package {args.package} ...")
    try:
        with PaxPackage.open(args.package) as package:
            package.verify()
            print("Package integrity verified")

            metadata = package.load_metadata()
            print("Package metadata:")
            print(f"  Name: {metadata.name}")
            print(f"  Version: {metadata.version}")
            print(f"  Description: {metadata.description}")
            print(f"Package hash: {package.calculate_hash()}")
            print(f"Package contains {len(package.list_files())} files")

            if args.key:
                _verify_signature(package.path, Path(args.key))
    except PaxBuildError as e:
        logger.debug(f"failed to verify package: {e!r}", exc_info=e)
        exit_on_paxbuild_error(e)
