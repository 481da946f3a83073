"""
Archive emission: streams a staging directory into a .tgz or .zip file
"""

import logging
import os
import tarfile
import zipfile
import zlib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional

from .errors import ArchiveError
from .models import ArchiveDescriptor, ArchiveType
from .progress import ProgressSignal, ProgressStep
from .staging import StagingArea
from .utils import get_logger, log_with_context

logger = get_logger(__name__)


class Compressor(ABC):
    """Writes archive entries into an already open binary stream"""

    @abstractmethod
    def add_file(self, path: str, arcname: str) -> None:
        ...

    @abstractmethod
    def add_dir(self, path: str, arcname: str) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        ...


class TarGzCompressor(Compressor):
    def __init__(self, stream: BinaryIO, level: int):
        self._tar = tarfile.open(fileobj=stream, mode='w:gz', compresslevel=level)

    def add_file(self, path: str, arcname: str) -> None:
        self._tar.add(path, arcname=arcname, recursive=False)

    def add_dir(self, path: str, arcname: str) -> None:
        self._tar.add(path, arcname=arcname, recursive=False)

    def close(self) -> None:
        self._tar.close()


class ZipCompressor(Compressor):
    def __init__(self, stream: BinaryIO, level: int, store: bool = False,
                 comment: Optional[str] = None):
        if store:
            self._zip = zipfile.ZipFile(stream, 'w', compression=zipfile.ZIP_STORED)
        else:
            self._zip = zipfile.ZipFile(stream, 'w', compression=zipfile.ZIP_DEFLATED,
                                        compresslevel=level)
        if comment:
            self._zip.comment = comment.encode('utf-8')

    def add_file(self, path: str, arcname: str) -> None:
        self._zip.write(path, arcname)

    def add_dir(self, path: str, arcname: str) -> None:
        # ZipFile.write stores directories as "name/" entries
        self._zip.write(path, arcname)

    def close(self) -> None:
        self._zip.close()


def create_compressor(archive_type: ArchiveType, stream: BinaryIO,
                      options: Dict[str, Any]) -> Compressor:
    """
    Build the codec for an archive type

    Args:
        archive_type: tar (gzip-compressed) or zip
        stream: Open binary stream the archive is written to
        options: Merged archive options; zlib.level is the compression level

    Returns:
        A Compressor writing into stream
    """
    level = options.get('zlib', {}).get('level', 6)
    if isinstance(level, bool) or not isinstance(level, int) or not 0 <= level <= 9:
        raise ArchiveError(f"Compression level must be an integer from 0 to 9, got {level!r}")

    if archive_type is ArchiveType.TAR:
        return TarGzCompressor(stream, level)
    return ZipCompressor(stream, level, store=bool(options.get('store')),
                         comment=options.get('comment'))


class ArchiveEmitter:
    """
    Owns one archive stream from open to close.

    The staging directory is added recursively with the archive root equal
    to the staging root. Once the stream is closed the staging directory is
    cleaned up (temporary areas only) and completion is signalled.
    """

    def __init__(self, descriptor: ArchiveDescriptor, progress: Optional[ProgressSignal] = None):
        self.descriptor = descriptor
        self.progress = progress
        self.bytes_written = 0
        self.warnings: List[str] = []

    def emit(self, area: StagingArea) -> Path:
        """
        Write the archive

        Args:
            area: Staging area to archive; cleaned up after the stream closes

        Returns:
            Path of the finished archive

        Raises:
            ArchiveError: the stream or codec failed; the partial file is removed
        """
        path = self.descriptor.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'wb') as stream:
                compressor = create_compressor(
                    self.descriptor.archive_type, stream, self.descriptor.options
                )
                self._advance(ProgressStep.COMPRESSING)
                self._add_directory(compressor, area.root)
                self._advance(ProgressStep.FINALIZING)
                compressor.close()
                self.bytes_written = stream.tell()
        except ArchiveError:
            self._discard_partial(path)
            raise
        except (OSError, tarfile.TarError, zipfile.BadZipFile, zlib.error) as e:
            self._discard_partial(path)
            raise ArchiveError(f"Failed to write archive {path}: {e}") from e

        self._on_close(area)
        return path

    def _on_close(self, area: StagingArea) -> None:
        log_with_context(
            logger, logging.INFO, f"{self.bytes_written} total bytes",
            archive=str(self.descriptor.path), archive_type=self.descriptor.archive_type.value,
        )
        logger.debug("Archive has been finalized and the output file descriptor has closed.")
        self._advance(ProgressStep.CLEANING_UP)
        area.cleanup()
        self._advance(ProgressStep.DONE)

    def _add_directory(self, compressor: Compressor, root: Path) -> None:
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            rel_dir = os.path.relpath(dirpath, root)
            if rel_dir != os.curdir and not dirnames and not filenames:
                compressor.add_dir(dirpath, Path(rel_dir).as_posix())
                continue

            for name in sorted(filenames):
                full_path = os.path.join(dirpath, name)
                arcname = Path(os.path.relpath(full_path, root)).as_posix()
                try:
                    compressor.add_file(full_path, arcname)
                except OSError as e:
                    self._on_warning(e, arcname)

    def _on_warning(self, error: OSError, arcname: str) -> None:
        """Missing files are logged and skipped; everything else is fatal"""
        if isinstance(error, FileNotFoundError):
            logger.warning(f"Skipping missing file {arcname}: {error}")
            self.warnings.append(arcname)
            return
        raise ArchiveError(f"Failed to add {arcname} to archive: {error}") from error

    def _advance(self, step: ProgressStep) -> None:
        if self.progress is not None:
            self.progress.advance(step)

    def _discard_partial(self, path: Path) -> None:
        try:
            path.unlink()
            logger.debug(f"Removed partial archive {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove partial archive {path}: {e}")
