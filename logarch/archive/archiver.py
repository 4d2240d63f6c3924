"""
Compression of single source files into the archive tree.

Each artifact is written to a temporary file of its own next to its final
location, synced, and moved into place with an atomic rename, so a file at an
artifact path is always complete, even when two runs archive the same
source. Failures are returned as results, never raised, so one bad file does
not stop the rest of the run.
"""

import bz2
import logging
import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import Union

from .archive_models import (
    ArchiveMode,
    ArchiveResult,
    SourceFile,
    TEMP_SUFFIX,
    compression_ratio,
)
from .path_pattern import destination_for

logger = logging.getLogger(__name__)

# rough size of compressed text logs, used in simulate mode only
ESTIMATED_COMPRESSED_FRACTION = 10

COPY_CHUNK_BYTES = 1024 * 1024

# temp files untouched for this long belong to a killed run
STALE_TEMP_SECONDS = 3600

ARTIFACT_MODE = 0o644


class Archiver:
    """Compresses source files into the archive tree."""

    def __init__(self, src_root: Union[str, Path], dst_root: Union[str, Path],
                 compress_level: int = 9, mode: ArchiveMode = ArchiveMode.REAL):
        self.src_root = src_root
        self.dst_root = dst_root
        self.compress_level = compress_level
        self.mode = mode

    def archive(self, source: SourceFile) -> ArchiveResult:
        """
        Archive one source file.

        Args:
            source: File discovered by the age selector.

        Returns:
            ArchiveResult with measured sizes, estimated sizes in simulate
            mode, or a failure reason.
        """
        artifact = destination_for(self.src_root, self.dst_root, source.path)
        relative = os.path.relpath(source.path, self.src_root)

        if self.mode.is_simulated:
            return self._simulate(source, artifact, relative)

        try:
            bytes_before = os.path.getsize(source.path)
        except OSError:
            bytes_before = source.size_bytes

        try:
            artifact.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create directory: {artifact.parent} ({e})")
            return ArchiveResult(source.path, artifact, False, bytes_before,
                                 reason=f"mkdir failed: {e}")

        self._remove_stale_temps(artifact)
        try:
            fd, temp_name = tempfile.mkstemp(dir=artifact.parent, prefix=f".{artifact.name}.",
                                             suffix=TEMP_SUFFIX)
        except OSError as e:
            logger.error(f"Failed to create temporary file in {artifact.parent} ({e})")
            return ArchiveResult(source.path, artifact, False, bytes_before,
                                 reason=f"compression failed: {e}")

        temp_path = Path(temp_name)
        logger.debug(f"Compressing: {source.path} -> {artifact}")

        try:
            self._compress(source.path, fd)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to compress: {source.path} ({e})")
            self._discard(temp_path)
            return ArchiveResult(source.path, artifact, False, bytes_before,
                                 reason=f"compression failed: {e}")

        try:
            os.replace(temp_path, artifact)
        except OSError as e:
            logger.error(f"Failed to move compressed file: {artifact} ({e})")
            self._discard(temp_path)
            return ArchiveResult(source.path, artifact, False, bytes_before,
                                 reason=f"rename failed: {e}")

        try:
            self._sync_directory(artifact.parent)
        except OSError as e:
            logger.warning(f"Could not sync directory {artifact.parent}: {e}")

        try:
            bytes_after = artifact.stat().st_size
        except OSError as e:
            # the artifact is in place; only the measurement is missing
            logger.warning(f"Archived but could not stat {artifact}: {e}")
            bytes_after = 0

        ratio = compression_ratio(bytes_before, bytes_after)
        logger.info(f"SUCCESS Archived: {relative} ({ratio}% compression)")
        return ArchiveResult(source.path, artifact, True, bytes_before, bytes_after)

    def _simulate(self, source: SourceFile, artifact: Path, relative: str) -> ArchiveResult:
        bytes_before = source.size_bytes
        estimated_after = bytes_before // ESTIMATED_COMPRESSED_FRACTION
        ratio = compression_ratio(bytes_before, estimated_after)

        logger.debug(f"[DRY-RUN] Would compress: {source.path} -> {artifact}")
        logger.info(f"SUCCESS [DRY-RUN] Would archive: {relative} (~{ratio}% compression, estimated)")
        return ArchiveResult(source.path, artifact, True, bytes_before, estimated_after, estimated=True)

    def _compress(self, source_path: Path, fd: int):
        """Write the bz2 stream of ``source_path`` through ``fd`` and sync it."""
        with os.fdopen(fd, 'wb') as raw, open(source_path, 'rb') as f_in:
            with bz2.BZ2File(raw, 'wb', compresslevel=self.compress_level) as f_out:
                shutil.copyfileobj(f_in, f_out, COPY_CHUNK_BYTES)
            # mkstemp creates 0600 files
            os.fchmod(raw.fileno(), ARTIFACT_MODE)
            raw.flush()
            os.fsync(raw.fileno())

    @staticmethod
    def _sync_directory(directory: Path):
        fd = os.open(directory, os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)

    def _remove_stale_temps(self, artifact: Path):
        """Remove temp files for ``artifact`` left behind by killed runs."""
        now = time.time()
        candidates = list(artifact.parent.glob(f".{artifact.name}.*{TEMP_SUFFIX}"))
        candidates.append(artifact.with_name(artifact.name + TEMP_SUFFIX))
        for candidate in candidates:
            try:
                if now - candidate.stat().st_mtime < STALE_TEMP_SECONDS:
                    # may belong to a concurrent run
                    continue
            except FileNotFoundError:
                continue
            logger.debug(f"Removing stale temporary file: {candidate}")
            self._discard(candidate)

    def _discard(self, temp_path: Path):
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temporary file {temp_path}: {e}")
