import contextlib
import logging
import os
import sys

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class _CategoryFilter(logging.Filter):
    """Pass only records whose logger-name suffix is in `allowed`."""

    def __init__(self, allowed: set[str]) -> None:
        super().__init__()
        self.allowed = allowed

    def filter(self, record: logging.LogRecord) -> bool:
        # record.name like: image_cropper.transform, image_cropper.decoder
        parts = (record.name or "").split(".")
        suffix = parts[-1] if parts else record.name
        return suffix in self.allowed


class _FilteredStderr:
    """Wrap stderr and drop known noisy Qt lines, keeping a copy in a side file."""

    def __init__(self, orig, out_path: str):
        self._orig = orig
        self._out_path = out_path
        # visible marker for tests
        self._filtered_by_image_cropper = True

    def write(self, s: str) -> None:  # pragma: no cover - thin wrapper
        if isinstance(s, str) and "FIXME qt_isinstance" in s:
            with contextlib.suppress(OSError), open(self._out_path, "a", encoding="utf-8") as f:
                f.write(s)
            return
        self._orig.write(s)

    def flush(self) -> None:  # pragma: no cover - thin wrapper
        getattr(self._orig, "flush", lambda: None)()

    def isatty(self) -> bool:  # pragma: no cover - thin wrapper
        return bool(getattr(self._orig, "isatty", lambda: False)())


def setup_logger(level: int = logging.INFO, name: str = "image_cropper") -> logging.Logger:
    """Create or update the project logger.

    - Respects env overrides IMAGE_CROPPER_LOG_LEVEL/IMAGE_CROPPER_LOG_CATS on every call
      (so late CLI parsing can still take effect).
    - Ensures there is exactly one stderr StreamHandler on the base logger and updates
      its formatter/filters instead of bailing out early.
    """
    logger = logging.getLogger(name)

    env_level = (os.getenv("IMAGE_CROPPER_LOG_LEVEL") or "").strip().lower()
    if env_level:
        level = _LEVELS.get(env_level, level)
    logger.setLevel(level)

    stream_handler: logging.StreamHandler | None = None
    for h in list(logger.handlers):
        if isinstance(h, logging.StreamHandler) and getattr(h, "_image_cropper_stderr", False):
            stream_handler = h
            break

    if stream_handler is None:
        stream_handler = logging.StreamHandler(stream=sys.stderr)
        stream_handler._image_cropper_stderr = True  # type: ignore[attr-defined]
        logger.addHandler(stream_handler)

    stream_handler.setFormatter(
        logging.Formatter(
            fmt="[%(asctime)s] %(levelname)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    stream_handler.filters.clear()
    cats = (os.getenv("IMAGE_CROPPER_LOG_CATS") or "").strip()
    if cats:
        allowed = {c.strip() for c in cats.split(",") if c.strip()}
        stream_handler.addFilter(_CategoryFilter(allowed))

    # Qt/pybind11 prints 'FIXME qt_isinstance' lines on some builds; hide them unless
    # IMAGE_CROPPER_FILTER_QT_FIXME is set to a false-ish value.
    env = os.getenv("IMAGE_CROPPER_FILTER_QT_FIXME")
    enabled = True if env is None else env.strip().lower() in ("1", "true", "yes")
    if enabled and not getattr(sys.stderr, "_filtered_by_image_cropper", False):
        outfile = os.path.join(os.getcwd(), "debug.log.filtered")
        sys.stderr = _FilteredStderr(sys.stderr, outfile)

    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    base = setup_logger()
    return base if not name else base.getChild(name)
