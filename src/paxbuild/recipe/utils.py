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

from __future__ import annotations

import logging
from pathlib import Path

import requests

from paxbuild.consts import MAX_ARCH_SEGMENT_LEN, PAX_EXT
from paxbuild.errors import RecipeFetchError, RecipeParseError

from .arch import is_architecture_supported
from .schema import BuildRecipe

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("http://", "https://")


def is_remote_location(location: str) -> bool:
    return location.startswith(REMOTE_SCHEMES)


def fetch_recipe_text(url: str) -> str:
    """Download the recipe text from <url>, no retry is performed."""
    logger.debug(f"fetching recipe from {url}")
    try:
        resp = requests.get(url)
    except requests.RequestException as e:
        raise RecipeFetchError(f"failed to download recipe from {url}: {e}") from e

    if not resp.ok:
        raise RecipeFetchError(f"HTTP error {resp.status_code}: {url}")
    return resp.text


def load_recipe(location: str | Path) -> BuildRecipe:
    """Load a recipe from a local file or a http(s) URL."""
    if isinstance(location, str) and is_remote_location(location):
        return BuildRecipe.parse_metafile(fetch_recipe_text(location))

    _fpath = Path(location)
    try:
        _text = _fpath.read_text(encoding="utf-8")
    except OSError as e:
        raise RecipeFetchError(f"failed to read recipe file {_fpath}: {e}") from e
    except UnicodeDecodeError as e:
        raise RecipeParseError(f"recipe file {_fpath} is not valid UTF-8: {e}") from e
    return BuildRecipe.parse_metafile(_text)


def _looks_like_arch(segment: str) -> bool:
    return (
        segment.replace("_", "").isalnum()
        and "." not in segment
        and len(segment) <= MAX_ARCH_SEGMENT_LEN
        and is_architecture_supported(segment)
    )


def _looks_like_version_start(segment: str) -> bool:
    return "." in segment or segment.isdigit()


def parse_package_filename(filename: str) -> tuple[str, str, str] | None:
    """Recover (name, version, arch) from `<name>-<version>-<arch>.pax`.

    The architecture is the rightmost whitelisted segment. The version starts at
        the nearest segment left to the architecture that contains a dot or is
        purely numeric, and must contain at least one digit.

    NOTE: there is no reserved separator, so this is a heuristic. Names or versions
        with architecture-like or numeric-only trailing segments can be split
        at the wrong position, e.g. `foo-1.0-2-x86_64.pax` gives (`foo-1.0`, `2`).

    Returns:
        A tuple of (name, version, arch), or None if <filename> cannot be parsed.
    """
    if not filename.endswith(PAX_EXT):
        return
    parts = filename[: -len(PAX_EXT)].split("-")
    if len(parts) < 3:
        return

    arch_index = None
    for _idx in range(len(parts) - 1, -1, -1):
        if _looks_like_arch(parts[_idx]):
            arch_index = _idx
            break
    if not arch_index:  # not found, or nothing left for name and version
        return

    version_start = arch_index
    for _idx in range(arch_index - 1, -1, -1):
        if _looks_like_version_start(parts[_idx]):
            version_start = _idx
            break

    name = "-".join(parts[:version_start])
    version = "-".join(parts[version_start:arch_index])
    if not name or not any(c.isdigit() for c in version):
        return
    return name, version, parts[arch_index]
