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
"""Unpack source archives with tarfile and zipfile.

The extraction strategy is selected purely by the filename suffix.
"""

from __future__ import annotations

import logging
import os
import sys
import tarfile
import zipfile
from functools import partial
from pathlib import Path
from typing import Callable

from paxbuild.errors import ExtractionFailed, UnsupportedArchiveFormat

logger = logging.getLogger(__name__)


def _check_member_path(member_name: str, dest: Path) -> None:
    _dest = os.path.realpath(dest)
    _target = os.path.realpath(os.path.join(_dest, member_name))
    if os.path.commonpath([_target, _dest]) != _dest:
        raise ExtractionFailed(f"refuse to extract {member_name!r} outside {dest}")


def safe_tar_extractall(tar: tarfile.TarFile, dest: Path) -> None:
    """Extract all members of <tar> into <dest>, rejecting unsafe members."""
    if sys.version_info >= (3, 12):
        tar.extractall(dest, filter="data")
        return

    for _member in tar:
        _check_member_path(_member.name, dest)
        if _member.issym() or _member.islnk():
            if os.path.isabs(_member.linkname):
                raise ExtractionFailed(
                    f"refuse to extract link {_member.name!r} to absolute path"
                )
            _link_base = dest / os.path.dirname(_member.name)
            _check_member_path(os.path.join(_link_base, _member.linkname), dest)
        elif not (_member.isfile() or _member.isdir()):
            raise ExtractionFailed(f"refuse to extract special file {_member.name!r}")
        tar.extract(_member, dest)


def extract_tar(archive: Path, dest: Path, *, mode: str = "r") -> None:
    try:
        with tarfile.open(archive, mode=mode) as _tar:
            safe_tar_extractall(_tar, dest)
    except (tarfile.TarError, EOFError, OSError) as e:
        raise ExtractionFailed(f"failed to extract {archive.name}: {e!r}") from e


def extract_zip(archive: Path, dest: Path) -> None:
    """Extract zip archive, restoring the unix permission bits."""
    try:
        with zipfile.ZipFile(archive) as _zip:
            for _info in _zip.infolist():
                _check_member_path(_info.filename, dest)
                _extracted = _zip.extract(_info, dest)
                if _mode := (_info.external_attr >> 16) & 0o777:
                    os.chmod(_extracted, _mode)
    except (zipfile.BadZipFile, OSError) as e:
        raise ExtractionFailed(f"failed to extract {archive.name}: {e!r}") from e


# NOTE: order matters, the first matched suffix wins.
EXTRACT_STRATEGIES = (
    ((".tar.gz", ".tgz"), partial(extract_tar, mode="r:gz")),
    ((".tar.xz",), partial(extract_tar, mode="r:xz")),
    ((".tar.bz2",), partial(extract_tar, mode="r:bz2")),
    ((".zip",), extract_zip),
    ((".tar",), partial(extract_tar, mode="r:")),
)


def select_extract_strategy(filename: str) -> Callable[[Path, Path], None]:
    for _suffixes, _strategy in EXTRACT_STRATEGIES:
        if filename.endswith(_suffixes):
            return _strategy
    raise UnsupportedArchiveFormat(filename)


def extract_archive(archive: Path, dest: Path) -> Path:
    """Extract <archive> into <dest> with the strategy chosen by its suffix."""
    _strategy = select_extract_strategy(archive.name)
    dest.mkdir(parents=True, exist_ok=True)
    logger.info(f"extracting {archive.name} to {dest} ...")
    _strategy(archive, dest)
    return dest


def find_source_root(extract_dir: Path) -> Path:
    """Resolve the effective source root.

    If the archive wraps everything in one top-level directory, that directory
        is the source root, otherwise <extract_dir> itself.
    """
    _entries = list(extract_dir.iterdir())
    if len(_entries) == 1 and _entries[0].is_dir():
        return _entries[0]
    return extract_dir
