"""
Batch processing for ShadowLift.

Processes files one after another (keeps peak memory to a single image),
records per-file failures without stopping the batch, and packages the
results into a ZIP archive.
"""

import logging
import time
import zipfile
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from tqdm import tqdm

from ..exceptions import BatchProcessingError, ShadowLiftError
from ..io.filesystem import edited_name, mime_type_for
from ..io.images import DEFAULT_QUALITY, encode_image, load_image
from ..utils.logging import ProcessingStats, StructuredLogger
from .tone.algorithms import ToneAlgorithm
from .tone.engine import ShadowRecoveryEngine
from .tone.models import ToneSettings, DEFAULT_SETTINGS

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_NAME = 'adjusted_photos_{date}.zip'


@dataclass
class BatchFailure:
    """A file that could not be processed."""
    name: str
    reason: str


@dataclass
class BatchResult:
    """Encoded outputs keyed by archive entry name, plus failures."""
    outputs: Dict[str, bytes] = field(default_factory=dict)
    failures: List[BatchFailure] = field(default_factory=list)
    stats: Optional[ProcessingStats] = None

    @property
    def success_count(self) -> int:
        return len(self.outputs)


def archive_name(template: str = DEFAULT_ARCHIVE_NAME, today: Optional[date] = None) -> str:
    """Archive file name with the ISO date filled in"""
    return template.format(date=(today or date.today()).isoformat())


class BatchProcessor:
    """
    Applies one settings record to many files.

    Features:
    - Sequential processing
    - Per-file failure capture
    - Progress bar and summary statistics
    - ZIP packaging of the results
    """

    def __init__(self, engine: Optional[ShadowRecoveryEngine] = None,
                 settings: ToneSettings = DEFAULT_SETTINGS,
                 algorithm: Union[ToneAlgorithm, str, None] = None,
                 quality: int = DEFAULT_QUALITY,
                 prefix: str = 'edited_'):
        self.engine = engine or ShadowRecoveryEngine()
        self.settings = settings
        self.algorithm = algorithm
        self.quality = quality
        self.prefix = prefix
        self.log = StructuredLogger(__name__)

    def process_file(self, path: Path) -> bytes:
        """Load, process and encode one file in its own format"""
        pixels = load_image(path)
        output = self.engine.process(pixels, self.settings, self.algorithm)
        return encode_image(output, mime_type_for(path), self.quality)

    def process_files(self, paths: Iterable[Union[str, Path]],
                      show_progress: bool = True) -> BatchResult:
        """
        Process every file, collecting failures.

        Raises:
            BatchProcessingError: if no file could be processed
        """
        paths = [Path(p) for p in paths]
        result = BatchResult(stats=ProcessingStats())
        result.stats.set_total(len(paths))

        for path in tqdm(paths, desc="Processing images", unit="img",
                         disable=not show_progress):
            start = time.time()
            entry = edited_name(path, self.prefix)
            try:
                result.outputs[entry] = self.process_file(path)
                result.stats.add_success(time.time() - start)
            except (ShadowLiftError, OSError, ValueError) as e:
                reason = str(e) or type(e).__name__
                result.failures.append(BatchFailure(name=path.name, reason=reason))
                result.stats.add_failure(path.name, reason)
                self.log.error("Failed to process file", file=path.name, reason=reason)

        if paths and result.success_count == 0:
            raise BatchProcessingError(
                f"All {len(paths)} images failed to process",
                failures=result.failures,
            )

        self.log.info("Batch complete", succeeded=result.success_count,
                      failed=len(result.failures))
        return result

    @staticmethod
    def write_archive(result: BatchResult, destination: Union[str, Path],
                      template: str = DEFAULT_ARCHIVE_NAME) -> Path:
        """
        Write outputs to a ZIP archive.

        destination may be a .zip path or a directory (the dated default
        archive name is used inside it).
        """
        destination = Path(destination)
        if destination.suffix.lower() != '.zip':
            destination = destination / archive_name(template)
        destination.parent.mkdir(parents=True, exist_ok=True)

        with zipfile.ZipFile(destination, 'w', compression=zipfile.ZIP_DEFLATED) as archive:
            for name, data in result.outputs.items():
                archive.writestr(name, data)

        logger.info(f"Wrote {len(result.outputs)} images to {destination}")
        return destination
