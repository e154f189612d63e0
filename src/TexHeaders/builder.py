"""Build texture index models from batches of source textures.

`Builder` sorts its inputs, turns each source texture into a
`TextureEntry` (serially or on a fixed worker pool), and assembles the
entries into a `File` in canonical order.
"""

import logging
import os
import threading
from dataclasses import dataclass, asdict
from queue import Empty, Queue
from typing import BinaryIO, List, Optional

import numpy as np
from tqdm import tqdm

from .config import (
    BuildConfig, FILE_MAGIC, SUPPORTED_VERSION, TRANSPARENT_COLOR_NONE,
    WORKERS_AUTO, PAA_EXTENSION, PAC_EXTENSION, PAX_FORMAT_CODES,
)
from .core import (
    File, TextureEntry, MipMap, AssetMetadata, MetadataProvider,
    read_paa_metadata, guess_suffix_type, normalize_entry_path,
    write, write_file, to_u32,
)
from .core.errors import (
    BuildError, EmptyInputPathError, FormatError, PacUnsupportedError,
    UnsupportedInputFormatError, UnsupportedPaxFormatError,
)

logger = logging.getLogger("texheaders.builder")

_OPAQUE_ALPHA_MIN = 0x80


@dataclass
class BuildIssue:
    """One input skipped during a lenient build."""

    path: str
    error: str

    def to_dict(self) -> dict:
        """Return dataclass fields as a plain dictionary."""
        return asdict(self)


def floor_pow2(value: int) -> int:
    """Return the largest power of two not greater than value (min 1)."""
    if value <= 1:
        return 1
    return 1 << (value.bit_length() - 1)


def resolve_build_workers(requested: int, file_count: int,
                          cpu_count: Optional[int] = None) -> int:
    """Resolve a requested worker setting to an effective pool size."""
    if file_count <= 1:
        return 1
    if requested == WORKERS_AUTO:
        cpus = cpu_count if cpu_count is not None else (os.cpu_count() or 1)
        workers = max(cpus // 4, 2)
        workers = min(workers, file_count)
        return floor_pow2(workers)
    if requested <= 1:
        return 1
    return min(requested, file_count)


class Builder:
    """Collect source texture paths and build a texture index from them.

    Output order is the lexicographic order of the appended paths, whatever
    order they were appended in and however many workers build them.
    """

    def __init__(
        self,
        config: Optional[BuildConfig] = None,
        provider: Optional[MetadataProvider] = None,
    ):
        """Initialize builder state with a config and metadata provider."""
        self.config = config or BuildConfig()
        self._provider = provider or read_paa_metadata
        self._inputs: List[str] = []
        self._issues: List[BuildIssue] = []
        self._progress_lock = threading.Lock()

    def append(self, path: str) -> None:
        """Register one source texture path."""
        if not isinstance(path, str) or not path.strip():
            raise EmptyInputPathError()
        self._inputs.append(path)

    def append_many(self, *paths: str) -> None:
        """Register several paths, stopping at the first invalid one."""
        for path in paths:
            self.append(path)

    @property
    def inputs(self) -> List[str]:
        """Copy of the registered input paths."""
        return list(self._inputs)

    @property
    def issues(self) -> List[BuildIssue]:
        """Copy of the inputs skipped by the last lenient build."""
        return list(self._issues)

    def build(self) -> File:
        """Build every registered input into a File."""
        self._inputs.sort()
        self._issues = []
        file = File(magic=FILE_MAGIC, version=SUPPORTED_VERSION, textures=[])
        if not self._inputs:
            return file

        inputs = list(self._inputs)
        workers = resolve_build_workers(self.config.workers, len(inputs))
        logger.info(
            "Building %d texture entries with %d worker(s)", len(inputs), workers
        )

        with tqdm(total=len(inputs), desc="Building texture headers",
                  disable=not self.config.show_progress) as pbar:
            if workers <= 1:
                self._build_serial(inputs, file, pbar)
            else:
                entries, errors = self._build_parallel(inputs, workers, pbar)
                self._collect(inputs, entries, errors, file)

        logger.info(
            "Built %d texture entries (%d skipped)", len(file.textures), len(self._issues)
        )
        return file

    def write(self, stream: BinaryIO) -> int:
        """Build and encode into a binary stream."""
        return write(stream, self.build())

    def write_file(self, path: str) -> int:
        """Build and encode to a file on disk."""
        return write_file(path, self.build())

    def _tick(self, pbar) -> None:
        with self._progress_lock:
            pbar.update(1)

    def _build_serial(self, inputs: List[str], file: File, pbar) -> None:
        # Strict mode stops at the first failure; later inputs are never opened.
        for path in inputs:
            try:
                entry = self.build_entry(path)
            except Exception as exc:
                self._handle_failure(path, exc)
                continue
            finally:
                self._tick(pbar)
            file.textures.append(entry)

    def _build_parallel(self, inputs: List[str], workers: int, pbar):
        """Run every input on a fixed pool and return per-index results.

        Workers pop indices from a shared queue and each writes only the
        slot of the index it popped, so the result lists need no lock.
        Every queued job runs even when an earlier one has failed.
        """
        entries: List[Optional[TextureEntry]] = [None] * len(inputs)
        errors: List[Optional[Exception]] = [None] * len(inputs)
        jobs: Queue = Queue()
        for i in range(len(inputs)):
            jobs.put(i)

        def _worker():
            while True:
                try:
                    i = jobs.get_nowait()
                except Empty:
                    return
                try:
                    entries[i] = self.build_entry(inputs[i])
                except Exception as exc:
                    errors[i] = exc
                finally:
                    self._tick(pbar)

        threads = [
            threading.Thread(target=_worker, name=f"texheaders-build-{n}", daemon=True)
            for n in range(workers)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return entries, errors

    def _collect(self, inputs, entries, errors, file: File) -> None:
        for i, path in enumerate(inputs):
            exc = errors[i]
            if exc is None and entries[i] is None:
                # The worker died on a non-Exception before filling either slot.
                exc = BuildError("worker stopped without a result", path=path)
            if exc is None:
                file.textures.append(entries[i])
                continue
            self._handle_failure(path, exc)

    def _handle_failure(self, path: str, exc: Exception) -> None:
        """Record a lenient-mode issue, or re-raise in strict mode."""
        if self.config.skip_invalid:
            logger.warning("Skipping %s: %s", path, exc)
            self._issues.append(BuildIssue(path=path, error=str(exc)))
            return
        logger.error("Build failed for %s: %s", path, exc)
        exc.add_note(f"while building {path!r}")
        raise exc

    def build_entry(self, path: str) -> TextureEntry:
        """Build one texture entry from one source texture."""
        ext = os.path.splitext(path)[1].lower()
        if ext == PAC_EXTENSION:
            raise PacUnsupportedError(path)
        if ext != PAA_EXTENSION:
            raise UnsupportedInputFormatError(path)

        try:
            with open(path, "rb") as fh:
                size = os.fstat(fh.fileno()).st_size
                meta = self._provider(fh)
        except OSError as exc:
            raise OSError(f"Failed to read source texture '{path}': {exc}") from exc
        except FormatError as exc:
            raise BuildError(f"scan source metadata: {exc}", path=path) from exc

        code = PAX_FORMAT_CODES.get(int(meta.pax_type))
        if code is None:
            raise UnsupportedPaxFormatError(int(meta.pax_type), path=path)

        rel = normalize_entry_path(
            path,
            base_dir=self.config.base_dir,
            backslash=self.config.backslash_paths,
            lowercase=self.config.lowercase_paths,
            strip_dot_prefix=self.config.strip_dot_prefix,
        )
        entry = TextureEntry(
            path=rel,
            palette_count=1,
            palette_ptr=0,
            clamp_flags=0,
            transparent_color=TRANSPARENT_COLOR_NONE,
            little_endian=1,
            is_paa=int(ext == PAA_EXTENSION),
            format=int(meta.pax_type),
            suffix_type=self._resolve_suffix_type(rel),
            file_size=to_u32(size, "file_size", stage="build"),
        )
        _assign_color_headers(entry, meta, path)
        _assign_flag_headers(entry, meta)
        _assign_mipmaps(entry, meta, code)
        logger.debug(
            "Built entry %s: format=%d suffix=%d mips=%d",
            rel, entry.format, entry.suffix_type, len(entry.mipmaps),
        )
        return entry

    def _resolve_suffix_type(self, rel: str) -> int:
        key = rel.lower() if self.config.lowercase_paths else rel
        override = self.config.suffix_overrides.get(key)
        if override is not None:
            return int(override)
        value, recognized = guess_suffix_type(rel)
        if not recognized:
            logger.debug("No suffix rule matched %s; using %s", rel, value.name)
        return int(value)


def _assign_color_headers(entry: TextureEntry, meta: AssetMetadata, path: str) -> None:
    """Map provider color data into the entry color fields."""
    avg = meta.average_color if meta.average_color is not None else b"\x00" * 4
    if len(avg) != 4:
        raise BuildError(f"average color must have 4 bytes, got {len(avg)}", path=path)
    entry.average_color = bytes(avg)

    if meta.max_color is not None:
        if len(meta.max_color) != 4:
            raise BuildError(
                f"max color must have 4 bytes, got {len(meta.max_color)}", path=path
            )
        entry.max_color = bytes(meta.max_color)
        entry.has_max_color = 1
    else:
        entry.max_color = b"\xff\xff\xff\xff"
        entry.has_max_color = 0

    # Byte color is B,G,R,A; the float tuple is R,G,B,A.
    bgra = np.frombuffer(entry.average_color, dtype=np.uint8).astype(np.float32)
    entry.average_color_f = tuple(bgra[[2, 1, 0, 3]] / np.float32(255.0))


def _assign_flag_headers(entry: TextureEntry, meta: AssetMetadata) -> None:
    """Map the provider alpha flag word into the entry alpha booleans."""
    if meta.flags is None:
        entry.is_alpha = 0
        entry.is_transparent = 0
        entry.is_alpha_non_opaque = 0
        return
    entry.is_alpha = meta.flags & 1
    entry.is_transparent = (meta.flags >> 1) & 1
    entry.is_alpha_non_opaque = int(
        bool(entry.is_alpha) and entry.average_color[3] < _OPAQUE_ALPHA_MIN
    )


def _assign_mipmaps(entry: TextureEntry, meta: AssetMetadata, code: int) -> None:
    """Map provider mip headers into mip descriptors."""
    entry.mipmaps = [
        MipMap(
            width=mip.width,
            height=mip.height,
            reserved_zero=0,
            format=code,
            reserved_three=3,
            data_offset=to_u32(mip.offset, f"mipmaps[{i}].data_offset", stage="build"),
        )
        for i, mip in enumerate(meta.mips)
    ]
    entry.mip_count = to_u32(len(entry.mipmaps), "mip_count", stage="build")
    entry.mip_count_copy = entry.mip_count
