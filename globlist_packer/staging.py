"""
Staging of matched files into a destination directory.

All per-file tasks are launched at once with asyncio.gather and no task
limit; the blocking copies run on the default thread executor. Very large
trees therefore create one pending task per file, which is a known
memory/handle pressure risk rather than a guaranteed-safe default.
"""

import asyncio
import inspect
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .config import FileNameTransformer
from .errors import CopyError, LimitExceededError, ValidationError
from .models import BLOCKED_BY_TRANSFORMER, BlockedFileRecord, FileRecord
from .utils import get_logger
from .walker import WalkResult

logger = get_logger(__name__)

STAGING_DIR_PREFIX = "globlist-packer-"


def replace_last(value: str, old: str, new: str) -> str:
    """Replace the last occurrence of old in value"""
    index = value.rfind(old)
    if index < 0:
        return value
    return value[:index] + new + value[index + len(old):]


def is_within(path: Path, directory: Path) -> bool:
    """True if path is directory itself or lies beneath it"""
    try:
        path.relative_to(directory)
        return True
    except ValueError:
        return False


@dataclass
class StagingArea:
    """
    Directory receiving the staged files.

    root is what gets archived; copy_root is root or, with a root-prefix
    name, the nested folder the files are copied into.
    """
    root: Path
    copy_root: Path
    is_temporary: bool
    cleaned: bool = False

    def cleanup(self) -> bool:
        """
        Remove the directory if this run created it, at most once

        Returns:
            True if the directory was removed by this call
        """
        if self.cleaned or not self.is_temporary:
            return False
        self.cleaned = True
        try:
            shutil.rmtree(self.root)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to remove staging directory {self.root}: {e}")
            return False
        logger.debug(f"Deleted {self.root}")
        return True


@dataclass
class StagingReport:
    """What happened to each matched file"""
    copied: List[FileRecord] = field(default_factory=list)
    blocked: List[BlockedFileRecord] = field(default_factory=list)
    empty_dirs: List[str] = field(default_factory=list)


class StagingAssembler:
    """
    Prepares the destination and copies, renames or omits matched files.
    """

    def __init__(self,
                 root_dir: Union[str, Path],
                 copy_files_to: Optional[Union[str, Path]] = None,
                 archive_root_dir_name: Optional[str] = None,
                 file_name_transformer: Optional[FileNameTransformer] = None,
                 max_file_count: Optional[int] = None,
                 block_dirs: Optional[Sequence[Union[str, Path]]] = None):
        """
        Args:
            root_dir: Absolute root the relative paths belong to
            copy_files_to: Persistent destination; None stages into a temp dir
            archive_root_dir_name: Optional folder every file nests under
            file_name_transformer: Rename/omit hook (base_name, abs_path)
            max_file_count: Hard cap on the number of matched files
            block_dirs: Directories whose contents are never staged
        """
        self.root_dir = Path(root_dir)
        self.copy_files_to = Path(copy_files_to) if copy_files_to else None
        self.archive_root_dir_name = archive_root_dir_name
        self.file_name_transformer = file_name_transformer
        self.max_file_count = max_file_count
        self.block_dirs: List[Path] = []

        # A persistent destination inside the root must not be copied into itself
        if self.copy_files_to is not None:
            self.register_block_dir(self.copy_files_to)
        for block_dir in block_dirs or []:
            self.register_block_dir(block_dir)

    def register_block_dir(self, directory: Union[str, Path]) -> None:
        path = Path(os.path.normpath(Path(directory).absolute()))
        if path not in self.block_dirs:
            self.block_dirs.append(path)

    def check_limit(self, matched: int) -> None:
        """
        Raises:
            LimitExceededError: more files matched than max_file_count allows
        """
        if self.max_file_count and matched > self.max_file_count:
            raise LimitExceededError(matched, self.max_file_count)

    def prepare(self) -> StagingArea:
        """
        Create the destination directory for this run

        Returns:
            StagingArea; temporary areas must be cleaned up by the caller
        """
        if self.copy_files_to is not None:
            if self.copy_files_to.exists() and not self.copy_files_to.is_dir():
                raise ValidationError(
                    f"copyFilesTo exists and is not a directory: {self.copy_files_to}"
                )
            self.copy_files_to.mkdir(parents=True, exist_ok=True)
            area = StagingArea(root=self.copy_files_to, copy_root=self.copy_files_to,
                               is_temporary=False)
        else:
            temp_dir = Path(tempfile.mkdtemp(prefix=STAGING_DIR_PREFIX))
            area = StagingArea(root=temp_dir, copy_root=temp_dir, is_temporary=True)

        if self.archive_root_dir_name:
            area.copy_root = area.root / self.archive_root_dir_name
            try:
                area.copy_root.mkdir(parents=True, exist_ok=True)
            except OSError:
                area.cleanup()
                raise

        logger.debug(
            f"Prepared {'temporary' if area.is_temporary else 'persistent'} "
            f"staging directory {area.copy_root}"
        )
        return area

    async def assemble(self, area: StagingArea, walk: WalkResult) -> StagingReport:
        """
        Stage every matched file concurrently

        Waits for all tasks to settle, then raises the first failure.

        Args:
            area: Destination prepared by prepare()
            walk: Walker output

        Returns:
            StagingReport with copied and blocked records

        Raises:
            CopyError: a file could not be copied after one retry
        """
        report = StagingReport()

        for rel_dir in walk.empty_dirs:
            if self._blocking_dir(self.root_dir / rel_dir) is not None:
                continue
            (area.copy_root / rel_dir).mkdir(parents=True, exist_ok=True)
            report.empty_dirs.append(rel_dir)

        logger.info(f"Copying {len(walk.files)} file(s) to {area.copy_root}")
        outcomes = await asyncio.gather(
            *(self._stage_one(area, rel_path, report) for rel_path in walk.files),
            return_exceptions=True,
        )

        failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        if failures:
            for extra in failures[1:]:
                logger.error(f"Additional staging failure: {extra}")
            raise failures[0]

        return report

    def _blocking_dir(self, path: Path) -> Optional[Path]:
        for block_dir in self.block_dirs:
            if is_within(path, block_dir):
                return block_dir
        return None

    async def _stage_one(self, area: StagingArea, rel_path: str, report: StagingReport) -> None:
        record = FileRecord(
            relative_path=rel_path,
            source_path=Path(os.path.normpath(self.root_dir / rel_path)),
            dest_path=Path(os.path.normpath(area.copy_root / rel_path)),
            base_name=Path(rel_path).name,
        )

        block_dir = self._blocking_dir(record.source_path)
        if block_dir is not None:
            report.blocked.append(BlockedFileRecord(record, str(block_dir)))
            return

        if not await self._apply_transformer(record):
            report.blocked.append(BlockedFileRecord(record, BLOCKED_BY_TRANSFORMER))
            return

        await asyncio.to_thread(self._copy_file, record)
        report.copied.append(record)

    async def _apply_transformer(self, record: FileRecord) -> bool:
        """Run the hook; returns False when the file is to be omitted"""
        if self.file_name_transformer is None:
            return True

        result = self.file_name_transformer(record.base_name, str(record.source_path))
        if inspect.isawaitable(result):
            result = await result

        if result is False or result == "":
            return False

        if isinstance(result, str) and result != record.base_name:
            # The source keeps pointing at the real file; only the staged name changes
            record.dest_path = Path(replace_last(str(record.dest_path), record.base_name, result))
            record.renamed_from = record.base_name
            record.base_name = result
            logger.trace(f"Renamed {record.relative_path} -> {record.base_name}")

        return True

    def _copy_file(self, record: FileRecord) -> None:
        try:
            shutil.copy2(record.source_path, record.dest_path)
        except OSError as first_error:
            logger.trace(f"Copy of {record.relative_path} failed ({first_error}), creating parents")
            try:
                record.dest_path.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(record.source_path, record.dest_path)
            except OSError as e:
                raise CopyError(record.source_path, record.dest_path, e) from e
        logger.trace(f"Copied {record.source_path} -> {record.dest_path}")
