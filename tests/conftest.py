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
"""Shared test fixtures for paxbuild tests."""

from __future__ import annotations

import hashlib
import io
import shutil
import tarfile
from pathlib import Path
from typing import Any

import pytest

from paxbuild.recipe.schema import BuildRecipe

requires_bash = pytest.mark.skipif(
    shutil.which("bash") is None, reason="bash is required to run build scripts"
)

SOURCE_TOP_DIR = "hello-1.0"
SOURCE_FILES = {
    "README": b"hello world\n",
    "src/hello.sh": b"#!/bin/sh\necho hello\n",
}

INSTALL_SCRIPT = (
    'mkdir -p "$PAX_BUILD_ROOT/usr/bin" "$PAX_BUILD_ROOT/usr/share/doc" && '
    'cp src/hello.sh "$PAX_BUILD_ROOT/usr/bin/hello" && '
    'cp README "$PAX_BUILD_ROOT/usr/share/doc/README" && '
    'echo "$PAX_ARCH" > "$PAX_BUILD_ROOT/usr/share/doc/ARCH"'
)


def make_tarball(
    dst: Path,
    files: dict[str, bytes] | None = None,
    *,
    top_dir: str | None = SOURCE_TOP_DIR,
    mode: str = "w:gz",
) -> Path:
    """Create a source tarball at <dst> holding <files>."""
    files = SOURCE_FILES if files is None else files
    with tarfile.open(dst, mode=mode) as tar:
        for _relpath, _contents in files.items():
            _arcname = f"{top_dir}/{_relpath}" if top_dir else _relpath
            _tarinfo = tarfile.TarInfo(_arcname)
            _tarinfo.size = len(_contents)
            _tarinfo.mode = 0o755 if _relpath.endswith(".sh") else 0o644
            tar.addfile(_tarinfo, io.BytesIO(_contents))
    return dst


def sha256_of(fpath: Path) -> str:
    return hashlib.sha256(fpath.read_bytes()).hexdigest()


@pytest.fixture
def source_tarball(tmp_path: Path) -> Path:
    """A source tarball with one top-level folder."""
    _srcs_dir = tmp_path / "srcs"
    _srcs_dir.mkdir()
    return make_tarball(_srcs_dir / f"{SOURCE_TOP_DIR}.tar.gz")


@pytest.fixture
def recipe_factory(source_tarball: Path):
    """Create a BuildRecipe pointing to the local source tarball."""

    def _factory(**kwargs: Any) -> BuildRecipe:
        _fields: dict[str, Any] = {
            "name": "hello",
            "version": "1.0",
            "description": "hello world package",
            "source": str(source_tarball),
            "hash": f"sha256:{sha256_of(source_tarball)}",
            "arch": ["x86_64", "aarch64"],
            "build": INSTALL_SCRIPT,
        }
        _fields.update(kwargs)
        return BuildRecipe(**_fields)

    return _factory
