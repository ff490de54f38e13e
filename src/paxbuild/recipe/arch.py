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
"""Target architecture tags."""

from __future__ import annotations

import platform
from typing import Iterable

from paxbuild.consts import SUPPORTED_ARCHS
from paxbuild.errors import RecipeValidationError

# `platform.machine()` spelling -> architecture tag
_MACHINE_ALIASES = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch64",
    "armv7l": "armv7",
    "i386": "i686",
    "x86": "i686",
}


def is_architecture_supported(arch: str) -> bool:
    return arch in SUPPORTED_ARCHS


def validate_architectures(archs: Iterable[str]) -> None:
    for _arch in archs:
        if not is_architecture_supported(_arch):
            raise RecipeValidationError(
                f"Invalid architecture: {_arch}. "
                f"Valid architectures are: {list(SUPPORTED_ARCHS)}"
            )


def current_architecture() -> str:
    _machine = platform.machine().lower()
    return _MACHINE_ALIASES.get(_machine, _machine)


def get_compatible_architectures() -> list[str]:
    """Architectures whose packages can run on the current system."""
    _current = current_architecture()
    if _current == "x86_64":
        return ["x86_64", "i686"]
    return [_current]
