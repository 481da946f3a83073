"""
Pack pipeline: compose rules, walk, stage, then archive or leave the copy.

Every exit path removes the synthetic defaults file and, in archive mode,
the temporary staging directory. A persistent copy destination is never
removed. Scanning, archiving and cleanup run on the default thread executor
so the caller's event loop keeps running; progress callbacks fired while
archiving are therefore called from a worker thread.
"""

import asyncio
import json
from typing import Any, Optional

from .archive import ArchiveEmitter
from .config import PackerConfig
from .ignore import RuleSetComposer
from .models import PackMode, PackResult
from .naming import ArchiveNamer
from .progress import ProgressEvent, ProgressSignal, ProgressStep
from .staging import StagingAssembler, StagingReport
from .utils import get_logger
from .walker import TreeWalker

logger = get_logger(__name__)


def _build_config(config: Optional[PackerConfig], options: Any) -> PackerConfig:
    if config is None:
        return PackerConfig(**options)
    if options:
        raise TypeError("Pass either a PackerConfig or keyword options, not both")
    return config


def _log_report(report: StagingReport) -> None:
    if report.blocked:
        logger.info("These files were blocked from being copied:")
        for blocked in report.blocked:
            logger.info(f"  {blocked.relative_path:<50} blocked by {blocked.blocked_by}")
    logger.info("Copied files:")
    for record in report.copied:
        if record.was_renamed:
            logger.info(f"  {record.relative_path} (renamed to {record.base_name})")
        else:
            logger.info(f"  {record.relative_path}")


async def pack_async(config: Optional[PackerConfig] = None, **options: Any) -> PackResult:
    """
    Run one pack

    Args:
        config: Run options; alternatively pass PackerConfig fields as keywords
        **options: PackerConfig fields, used when config is None

    Returns:
        PackResult describing the archive or copy destination

    Raises:
        ValidationError: invalid options, or the defaults file cannot be created
        LimitExceededError: more files matched than max_file_count
        CopyError: a file could not be staged
        ArchiveError: the archive could not be written
    """
    config = _build_config(config, options)
    resolved = config.resolve()

    progress = ProgressSignal(resolved.mode)
    if config.on_step_change is not None:
        on_step_change = config.on_step_change

        def _notify(event: ProgressEvent) -> None:
            on_step_change(event.step)

        progress.subscribe(_notify)

    if config.verbose:
        logger.info(f"Options: {json.dumps(config.describe(), indent=2, default=str)}")

    composer = RuleSetComposer(
        resolved.root_dir,
        include_default_ignores=config.include_default_ignores,
        use_gitignore_files=config.use_gitignore_files,
        ignore_list_file_names=config.ignore_list_file_names,
    )
    ignore_files = composer.compose()

    progress.advance(ProgressStep.SCANNING)
    walker = TreeWalker(
        resolved.root_dir,
        ignore_files,
        follow_symlinks=config.follow_symlink,
        include_empty=config.include_empty,
    )
    with composer.defaults_file():
        walk = await asyncio.to_thread(walker.walk)

    if config.verbose:
        logger.info(f"Matched {len(walk.files)} file(s)")

    assembler = StagingAssembler(
        resolved.root_dir,
        copy_files_to=resolved.copy_files_to,
        archive_root_dir_name=config.archive_root_dir_name,
        file_name_transformer=config.file_name_transformer,
        max_file_count=config.max_file_count,
    )
    assembler.check_limit(len(walk.files))

    area = await asyncio.to_thread(assembler.prepare)
    try:
        progress.advance(ProgressStep.COPYING)
        report = await assembler.assemble(area, walk)
        if config.verbose:
            _log_report(report)

        result = PackResult(
            mode=resolved.mode,
            destination=area.root,
            copied=report.copied,
            blocked=report.blocked,
            empty_dirs=report.empty_dirs,
        )

        if resolved.mode is PackMode.COPY:
            progress.advance(ProgressStep.DONE)
            logger.info(f"Copied {len(report.copied)} file(s) to {area.root}")
            return result

        namer = ArchiveNamer(
            archive_type=config.archive_type,
            archive_name=config.archive_name,
            ignore_list_file_names=config.ignore_list_file_names,
        )
        descriptor = namer.describe(resolved.root_dir, resolved.out_dir, config.archive_options)
        emitter = ArchiveEmitter(descriptor, progress)
        result.destination = await asyncio.to_thread(emitter.emit, area)
        result.archive = descriptor
        result.bytes_written = emitter.bytes_written
        logger.info(f"Archive written to {result.destination}")
        return result
    finally:
        await asyncio.to_thread(area.cleanup)


def pack(config: Optional[PackerConfig] = None, **options: Any) -> PackResult:
    """Blocking wrapper around pack_async"""
    return asyncio.run(pack_async(config, **options))
