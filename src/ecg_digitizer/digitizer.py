"""Digitizer: single-image and parallel batch digitization."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from ecg_digitizer._logging import logger
from ecg_digitizer.models import (
    DigitizationError,
    DigitizationResult,
    DigitizerConfig,
    EcgImage,
    ProcessingError,
    ProcessingStage,
)
from ecg_digitizer.pipeline import digitize as run_digitize
from ecg_digitizer.utils.cv_utils import VisionBackend, init_backend, load_image

ProgressCallback = Callable[[int, int, "BatchItem"], None]


@dataclass(frozen=True)
class BatchItem:
    """Outcome of one batch entry; exactly one of result/error is set unless cancelled."""

    name: str
    result: DigitizationResult | None = None
    error: DigitizationError | None = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.result is not None


class Digitizer:
    """Digitize ECG images with a fixed configuration.

    Args:
        config: Layout and calibration options.
        backend: Initialized vision backend; created with ``init_backend`` when
            omitted.
    """

    def __init__(
        self,
        config: DigitizerConfig | None = None,
        backend: VisionBackend | None = None,
    ) -> None:
        self.config = config or DigitizerConfig()
        self.backend = backend or init_backend(self.config.opencv_threads)

    def digitize(self, image: EcgImage) -> DigitizationResult:
        """Digitize one decoded image.

        Node failures already carry their stage; anything else escaped the
        graph itself and is reported under ``ProcessingStage.PIPELINE``.

        Raises:
            DigitizationError: If any stage fails; no partial result is returned.
        """
        try:
            return run_digitize(image, self.config, self.backend)
        except DigitizationError:
            raise
        except Exception as e:
            raise DigitizationError(
                f"Digitization failed: {e}", stage=ProcessingStage.PIPELINE
            ) from e

    def digitize_path(self, path: str | Path) -> DigitizationResult:
        image = load_image(path, stage=ProcessingStage.INPUT)
        if isinstance(image, ProcessingError):
            raise DigitizationError(image.message, stage=image.stage)
        return self.digitize(image)

    def _run_one(
        self,
        name: str,
        source: EcgImage | str | Path,
        cancel_event: threading.Event | None,
    ) -> BatchItem:
        if cancel_event is not None and cancel_event.is_set():
            return BatchItem(name=name, cancelled=True)
        logger.debug(f"Digitizing {name}")
        try:
            if isinstance(source, EcgImage):
                result = self.digitize(source)
            else:
                result = self.digitize_path(source)
        except DigitizationError as e:
            logger.warning(f"{name}: {e}")
            return BatchItem(name=name, error=e)
        return BatchItem(name=name, result=result)

    def digitize_batch(
        self,
        items: Sequence[EcgImage | str | Path] | Sequence[tuple[str, EcgImage | str | Path]],
        cancel_event: threading.Event | None = None,
        progress: ProgressCallback | None = None,
        max_workers: int | None = None,
    ) -> list[BatchItem]:
        """Digitize independent images in parallel, one task per image.

        ``cancel_event`` is checked before each image starts; images already
        running finish. A failing image is reported in its ``BatchItem`` and
        does not affect the others. Results keep the input order.

        Args:
            items: Images or paths, optionally as ``(name, source)`` pairs.
            cancel_event: Set it to skip images that have not started.
            progress: Called as ``progress(done, total, item)`` after each image.
            max_workers: Overrides ``config.max_workers``.
        """
        named = [_named(i, item) for i, item in enumerate(items)]
        total = len(named)
        if total == 0:
            return []

        workers = max(1, min(max_workers or self.config.max_workers, total))
        logger.info(f"Digitizing {total} images with {workers} workers")

        done = 0
        lock = threading.Lock()
        results: list[BatchItem | None] = [None] * total

        def _task(index: int) -> None:
            nonlocal done
            name, source = named[index]
            item = self._run_one(name, source, cancel_event)
            results[index] = item
            with lock:
                done += 1
                finished = done
            if progress is not None:
                progress(finished, total, item)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(_task, i) for i in range(total)]
            for future in futures:
                future.result()

        out = [r for r in results if r is not None]
        n_ok = sum(1 for r in out if r.ok)
        n_cancelled = sum(1 for r in out if r.cancelled)
        logger.info(
            f"Batch finished: {n_ok} succeeded, {total - n_ok - n_cancelled} failed, "
            f"{n_cancelled} cancelled"
        )
        return out


def _named(index: int, item: object) -> tuple[str, EcgImage | str | Path]:
    if isinstance(item, tuple):
        name, source = item
        return str(name), source
    if isinstance(item, (str, Path)):
        return Path(item).name, item
    return f"image_{index}", item  # type: ignore[return-value]
