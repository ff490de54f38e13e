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

from typing import List, Optional

import pytest
from pydantic import Field

from paxbuild.common import MetaFileBase, tmp_fname


class _ExampleMeta(MetaFileBase):
    name: str
    version: str
    tags: List[str] = Field(default_factory=list)
    note: Optional[str] = None


class TestTmpFname:
    def test_tmp_fname_all_parameters(self):
        """Test tmp_fname with all parameters."""
        result = tmp_fname(
            hint="test", prefix="pre", suffix=".log", sep="-", random_bytes=6
        )

        assert result.startswith("pre-test-")
        assert result.endswith(".log")
        # 6 bytes = 12 hex characters
        assert len(result.removesuffix(".log").split("-")[-1]) == 12

    def test_tmp_fname_is_random(self):
        assert tmp_fname("x") != tmp_fname("x")


class TestMetaFileBase:
    def test_parse_metafile(self):
        """Test parsing YAML document, unknown keys are ignored."""
        _meta = _ExampleMeta.parse_metafile(
            "name: foo\nversion: 1.0\ntags: [a, b]\nunknown: value\n"
        )
        assert _meta.name == "foo"
        # YAML parses 1.0 as float
        assert _meta.version == "1.0"
        assert _meta.tags == ["a", "b"]
        assert _meta.note is None

    @pytest.mark.parametrize(
        "_input",
        (
            "- a\n- b\n",
            "just a string",
            "name: [unclosed",
            "",
        ),
    )
    def test_parse_metafile_invalid(self, _input):
        with pytest.raises(ValueError):
            _ExampleMeta.parse_metafile(_input)

    def test_parse_metafile_missing_field(self):
        with pytest.raises(ValueError):
            _ExampleMeta.parse_metafile("name: foo\n")

    def test_export_metafile(self):
        """Test None fields are not exported, and fields order is kept."""
        _exported = _ExampleMeta(name="foo", version="1.0").export_metafile()
        assert _exported == "name: foo\nversion: '1.0'\ntags: []\n"

    def test_write_and_load_metafile(self, tmp_path):
        _meta = _ExampleMeta(name="foo", version="1.0", note="ünïcode")
        _fpath = _meta.write_metafile(tmp_path / "meta.yaml")
        assert _ExampleMeta.load_metafile(_fpath) == _meta
