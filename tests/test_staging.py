"""Tests for the staging assembler"""

import asyncio
from pathlib import Path

import pytest

from globlist_packer.errors import CopyError, LimitExceededError, ValidationError
from globlist_packer.models import BLOCKED_BY_TRANSFORMER
from globlist_packer.staging import StagingAssembler, is_within, replace_last
from globlist_packer.walker import WalkResult


def test_replace_last():
    assert replace_last("/a/data/data.txt", "data.txt", "x.txt") == "/a/data/x.txt"
    assert replace_last("/a/b", "zzz", "y") == "/a/b"


def test_is_within_uses_ancestry():
    assert is_within(Path("/r/out/a.txt"), Path("/r/out"))
    assert is_within(Path("/r/out"), Path("/r/out"))
    assert not is_within(Path("/r/output/a.txt"), Path("/r/out"))


class TestStagingAssembler:
    """Test cases for StagingAssembler"""

    @pytest.fixture
    def root(self, make_tree, tmp_path):
        return make_tree(tmp_path / "root", {
            "a.txt": "alpha",
            "sub/b.txt": "beta",
            "sub/deep/c.txt": "gamma",
        })

    @pytest.fixture
    def walk(self):
        return WalkResult(files=["a.txt", "sub/b.txt", "sub/deep/c.txt"])

    @pytest.mark.asyncio
    async def test_temporary_area_copies_and_cleans_up(self, root, walk):
        assembler = StagingAssembler(root)
        area = assembler.prepare()
        assert area.is_temporary

        report = await assembler.assemble(area, walk)

        assert sorted(r.relative_path for r in report.copied) == walk.files
        assert (area.copy_root / "sub/deep/c.txt").read_text() == "gamma"
        assert area.cleanup()
        assert not area.root.exists()
        assert not area.cleanup()

    @pytest.mark.asyncio
    async def test_persistent_area_is_kept(self, root, walk, tmp_path):
        destination = tmp_path / "dest"
        assembler = StagingAssembler(root, copy_files_to=destination)
        area = assembler.prepare()

        await assembler.assemble(area, walk)

        assert not area.cleanup()
        assert (destination / "sub/b.txt").read_text() == "beta"

    @pytest.mark.asyncio
    async def test_archive_root_dir_name_nests_files(self, root, walk):
        assembler = StagingAssembler(root, archive_root_dir_name="bundle")
        area = assembler.prepare()
        try:
            await assembler.assemble(area, walk)
            assert (area.root / "bundle" / "a.txt").read_text() == "alpha"
        finally:
            area.cleanup()

    @pytest.mark.asyncio
    async def test_transformer_omits_file(self, root, walk):
        def omit_b(base_name, abs_path):
            return False if base_name == "b.txt" else None

        assembler = StagingAssembler(root, file_name_transformer=omit_b)
        area = assembler.prepare()
        try:
            report = await assembler.assemble(area, walk)
            assert not (area.copy_root / "sub/b.txt").exists()
            assert [b.relative_path for b in report.blocked] == ["sub/b.txt"]
            assert report.blocked[0].blocked_by == BLOCKED_BY_TRANSFORMER
        finally:
            area.cleanup()

    @pytest.mark.asyncio
    async def test_empty_string_omits_file(self, root, walk):
        assembler = StagingAssembler(root, file_name_transformer=lambda name, path: "")
        area = assembler.prepare()
        try:
            report = await assembler.assemble(area, walk)
            assert report.copied == []
            assert len(report.blocked) == 3
        finally:
            area.cleanup()

    @pytest.mark.asyncio
    async def test_rename_keeps_original_content(self, root, walk):
        def rename(base_name, abs_path):
            assert Path(abs_path).is_absolute()
            if base_name == "a.txt":
                return "renamed.txt"
            return True

        assembler = StagingAssembler(root, file_name_transformer=rename)
        area = assembler.prepare()
        try:
            report = await assembler.assemble(area, walk)
            assert (area.copy_root / "renamed.txt").read_text() == "alpha"
            assert not (area.copy_root / "a.txt").exists()
            renamed = [r for r in report.copied if r.was_renamed]
            assert [(r.renamed_from, r.base_name) for r in renamed] == [("a.txt", "renamed.txt")]
        finally:
            area.cleanup()

    @pytest.mark.asyncio
    async def test_async_transformer(self, root, walk):
        async def rename(base_name, abs_path):
            await asyncio.sleep(0)
            return base_name.upper()

        assembler = StagingAssembler(root, file_name_transformer=rename)
        area = assembler.prepare()
        try:
            await assembler.assemble(area, walk)
            assert (area.copy_root / "sub/deep/C.TXT").read_text() == "gamma"
        finally:
            area.cleanup()

    @pytest.mark.asyncio
    async def test_block_dir_blocks_contents(self, root, walk):
        assembler = StagingAssembler(root, block_dirs=[root / "sub"])
        area = assembler.prepare()
        try:
            report = await assembler.assemble(area, walk)
            assert [r.relative_path for r in report.copied] == ["a.txt"]
            assert {b.blocked_by for b in report.blocked} == {str(root / "sub")}
        finally:
            area.cleanup()

    @pytest.mark.asyncio
    async def test_copy_destination_inside_root_is_blocked(self, root, tmp_path):
        destination = root / "out"
        (destination / "stale.txt").parent.mkdir(parents=True)
        (destination / "stale.txt").write_text("old")
        walk = WalkResult(files=["a.txt", "out/stale.txt"])

        assembler = StagingAssembler(root, copy_files_to=destination)
        area = assembler.prepare()
        report = await assembler.assemble(area, walk)

        assert [r.relative_path for r in report.copied] == ["a.txt"]
        assert [b.relative_path for b in report.blocked] == ["out/stale.txt"]
        assert not (destination / "out").exists()

    @pytest.mark.asyncio
    async def test_empty_dirs_recreated(self, root):
        (root / "empty").mkdir()
        assembler = StagingAssembler(root)
        area = assembler.prepare()
        try:
            report = await assembler.assemble(area, WalkResult(files=["a.txt"], empty_dirs=["empty"]))
            assert (area.copy_root / "empty").is_dir()
            assert report.empty_dirs == ["empty"]
        finally:
            area.cleanup()

    @pytest.mark.asyncio
    async def test_missing_source_raises_copy_error(self, root):
        assembler = StagingAssembler(root)
        area = assembler.prepare()
        try:
            with pytest.raises(CopyError):
                await assembler.assemble(area, WalkResult(files=["a.txt", "gone.txt"]))
        finally:
            area.cleanup()

    def test_limit(self, root):
        assembler = StagingAssembler(root, max_file_count=10)
        assembler.check_limit(10)

        with pytest.raises(LimitExceededError, match="Matched file count of 11 exceeds maxFileCount of 10"):
            assembler.check_limit(11)

    def test_copy_destination_must_be_directory(self, root):
        with pytest.raises(ValidationError):
            StagingAssembler(root, copy_files_to=root / "a.txt").prepare()
