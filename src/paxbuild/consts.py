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
"""Consts related to .pax packages and the build pipeline."""

PAX_EXT = ".pax"
RECIPE_EXT = ".paxmeta"
SIGNATURE_EXT = ".sig"
METADATA_FNAME = "metadata.yaml"

SUPPORTED_ARCHS = ("x86_64", "aarch64", "armv7", "i686", "riscv64")
DEFAULT_ARCHS = ("x86_64", "aarch64")
MAX_ARCH_SEGMENT_LEN = 20

DEFAULT_SOURCE_FNAME = "source.tar.gz"

# environment bindings exposed to the build script
ENV_BUILD_ROOT = "PAX_BUILD_ROOT"
ENV_PACKAGE_NAME = "PAX_PACKAGE_NAME"
ENV_PACKAGE_VERSION = "PAX_PACKAGE_VERSION"
ENV_ARCH = "PAX_ARCH"
ENV_TARGET_ARCH = "PAX_TARGET_ARCH"
ENV_SOURCE_DIR = "PAX_SOURCE_DIR"
ENV_BUILD_DIR = "PAX_BUILD_DIR"

DEFAULT_BUILD_SCRIPT = (
    "./configure --prefix=/usr && make -j$(nproc) "
    f"&& make install DESTDIR=${ENV_BUILD_ROOT}"
)
DEFAULT_SHELL = "bash"

ZSTD_COMPRESSION_LEVEL = 19
DOWNLOAD_CHUNK_SIZE = 1024**2  # 1MiB

# workspace layout
WORKSPACE_SOURCE_DIR = "source"
WORKSPACE_EXTRACT_DIR = "extracted"
WORKSPACE_BUILD_DIR = "build"
WORKSPACE_INSTALL_DIR = "install"
WORKSPACE_PACKAGES_DIR = "packages"

# some constants that required for making a reproducible package build
DEFAULT_MTIME = 1230768000  # 2009-01-01T00:00:00Z
DIR_PERMISSION = 0o755
PERMISSION_MASK = 0o777
