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
"""Exceptions raised by the paxbuild pipeline."""

from __future__ import annotations


class PaxBuildError(Exception):
    """Base class for exceptions generated from paxbuild."""


class RecipeParseError(PaxBuildError):
    """The recipe text is not a valid recipe document."""


class RecipeValidationError(PaxBuildError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class RecipeFetchError(PaxBuildError):
    """Failed to load the recipe from a file or a remote location."""


class SourceFetchError(PaxBuildError):
    """Failed to download the source artifact."""


class ChecksumMismatch(PaxBuildError):
    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"checksum mismatch: {expected=}, {actual=}")


class UnsupportedArchiveFormat(PaxBuildError):
    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(f"unsupported archive format: {filename}")


class ExtractionFailed(PaxBuildError):
    """Failed to unpack an archive."""


class BuildScriptFailed(PaxBuildError):
    def __init__(
        self,
        arch: str,
        stdout: str = "",
        stderr: str = "",
        returncode: int | None = None,
    ) -> None:
        self.arch = arch
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(
            f"build script failed for architecture {arch} ({returncode=})"
        )


class PackagingFailed(PaxBuildError):
    """Failed to assemble the package archive."""


class PackageNotFound(PaxBuildError):
    def __init__(self, path) -> None:
        self.path = path
        super().__init__(f"package file does not exist: {path}")


class MetadataMissing(PaxBuildError):
    """The package archive doesn't carry a metadata document."""


class MetadataInvalid(PaxBuildError):
    """The metadata document in the package archive cannot be parsed."""


class SignatureInvalid(PaxBuildError):
    """The signature doesn't match the package."""
