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
"""Assemble one architecture's install tree into a .pax package.

A .pax package is a tar container compressed with zstd, with the following constrains:

1. the metadata document `metadata.yaml` is placed at the top level, next to
    the installed files.
2. only directories and regular files are packed, other kinds of entries
    are skipped.
3. all entries have fixed mtime and owner set, setuid/setgid/sticky bits are dropped.
4. the entries are added in a sorted top-down walk order, metadata.yaml comes last.

The package build is reproducible, the same install tree and recipe will always
    generate the same package.
"""

from __future__ import annotations

import io
import logging
import os
import tarfile
from pathlib import Path
from typing import Generator

import zstandard

from paxbuild.common import remove_file, tmp_fname
from paxbuild.consts import (
    DEFAULT_MTIME,
    DIR_PERMISSION,
    METADATA_FNAME,
    PERMISSION_MASK,
    ZSTD_COMPRESSION_LEVEL,
)
from paxbuild.errors import PackagingFailed
from paxbuild.package.schema import PackageMetadata
from paxbuild.recipe.schema import BuildRecipe

logger = logging.getLogger(__name__)

FILE_PERMISSION = 0o644


def _iter_install_tree(
    install_root: Path,
) -> Generator[tuple[Path, str, bool]]:
    """Yield (fpath, relative_path, is_dir) in a deterministic order.

    Only directories and regular files are yielded, symlinks are not followed.
    """
    for curdir, dirnames, fnames in os.walk(install_root):
        curdir = Path(curdir)
        dirnames.sort()
        for _dname in list(dirnames):
            _dpath = curdir / _dname
            if _dpath.is_symlink():
                logger.warning(f"skip non-regular entry: {_dpath}")
                dirnames.remove(_dname)

        if curdir != install_root:
            yield curdir, curdir.relative_to(install_root).as_posix(), True

        for _fname in sorted(fnames):
            _fpath = curdir / _fname
            if _fpath.is_symlink() or not _fpath.is_file():
                logger.warning(f"skip non-regular entry: {_fpath}")
                continue
            yield _fpath, _fpath.relative_to(install_root).as_posix(), False


def list_files(install_root: Path) -> list[str]:
    """List relative paths of every regular file under <install_root>.

    A non-existed <install_root> means the build installs nothing.
    """
    if not install_root.is_dir():
        return []
    return sorted(
        _relpath
        for _, _relpath, _is_dir in _iter_install_tree(install_root)
        if not _is_dir
    )


def _normalize_tarinfo(tarinfo: tarfile.TarInfo) -> tarfile.TarInfo:
    tarinfo.mtime = DEFAULT_MTIME
    tarinfo.uid = tarinfo.gid = 0
    tarinfo.uname = tarinfo.gname = ""
    tarinfo.mode &= PERMISSION_MASK
    return tarinfo


def add_dir(tar: tarfile.TarFile, arcname: str) -> None:
    _tarinfo = tarfile.TarInfo(arcname)
    _tarinfo.type = tarfile.DIRTYPE
    _tarinfo.mode = DIR_PERMISSION
    tar.addfile(_normalize_tarinfo(_tarinfo))


def add_file(tar: tarfile.TarFile, fpath: Path, arcname: str) -> None:
    _tarinfo = _normalize_tarinfo(tar.gettarinfo(fpath, arcname=arcname))
    with open(fpath, "rb") as _src:
        tar.addfile(_tarinfo, _src)


def add_bytes(tar: tarfile.TarFile, contents: bytes, arcname: str) -> None:
    _tarinfo = tarfile.TarInfo(arcname)
    _tarinfo.size = len(contents)
    _tarinfo.mode = FILE_PERMISSION
    tar.addfile(_normalize_tarinfo(_tarinfo), io.BytesIO(contents))


class PackageAssembler:
    def __init__(
        self, *, zstd_compression_level: int = ZSTD_COMPRESSION_LEVEL
    ) -> None:
        self.zstd_compression_level = zstd_compression_level

    def create_metadata(
        self, recipe: BuildRecipe, arch: str, install_root: Path
    ) -> PackageMetadata:
        return PackageMetadata.from_recipe(
            recipe, arch=arch, files=list_files(install_root)
        )

    def _pack(
        self, install_root: Path, metadata: PackageMetadata, output: Path
    ) -> None:
        cctx = zstandard.ZstdCompressor(
            level=self.zstd_compression_level, write_checksum=True
        )
        _metadata_contents = metadata.export_metafile().encode("utf-8")
        with open(output, "wb") as _dst, cctx.stream_writer(
            _dst, closefd=False
        ) as _zstd_writer, tarfile.open(
            fileobj=_zstd_writer, mode="w|", format=tarfile.PAX_FORMAT
        ) as _tar:
            if install_root.is_dir():
                for _fpath, _relpath, _is_dir in _iter_install_tree(install_root):
                    if _is_dir:
                        add_dir(_tar, _relpath)
                    else:
                        add_file(_tar, _fpath, _relpath)
            add_bytes(_tar, _metadata_contents, METADATA_FNAME)

    def assemble(
        self,
        recipe: BuildRecipe,
        arch: str,
        install_root: Path,
        output_dir: Path,
    ) -> Path:
        """Pack <install_root> into `<name>-<version>-<arch>.pax` under <output_dir>.

        Raises:
            PackagingFailed if the tar container or the compressed archive cannot be
                generated, no partial archive is left in <output_dir>.
        """
        logger.info(f"creating package for architecture: {arch} ...")
        if (install_root / METADATA_FNAME).exists():
            raise PackagingFailed(
                f"{METADATA_FNAME} is reserved, but found in {install_root}"
            )

        metadata = self.create_metadata(recipe, arch, install_root)
        output_dir.mkdir(parents=True, exist_ok=True)
        _output = output_dir / recipe.package_filename_for_arch(arch)
        _tmp_output = output_dir / tmp_fname(arch)
        try:
            self._pack(install_root, metadata, _tmp_output)
            os.replace(_tmp_output, _output)
        except (tarfile.TarError, zstandard.ZstdError, OSError) as e:
            raise PackagingFailed(
                f"failed to create package {_output.name}: {e!r}"
            ) from e
        finally:
            remove_file(_tmp_output)

        logger.info(
            f"package created: {_output}, {len(metadata.files)} files, "
            f"{_output.stat().st_size} bytes"
        )
        return _output
