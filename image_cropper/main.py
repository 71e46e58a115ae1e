import os
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

from image_cropper.cropper_operations import open_image_workflow
from image_cropper.logger import get_logger
from image_cropper.settings_manager import SettingsManager
from image_cropper.ui_cropper import CropperWindow

# --- CLI logging options -----------------------------------------------------
# To prevent Qt from exiting due to unknown options, we preemptively parse
# our own options, reflect them in environment variables (IMAGE_CROPPER_LOG_LEVEL,
# IMAGE_CROPPER_LOG_CATS), and remove them from sys.argv.


def _apply_cli_logging_options(argv: list[str]) -> list[str]:
    import argparse

    parser = argparse.ArgumentParser(description="Image Cropper", add_help=False)
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    args, remaining = parser.parse_known_args(argv[1:])
    if args.log_level:
        os.environ["IMAGE_CROPPER_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        os.environ["IMAGE_CROPPER_LOG_CATS"] = args.log_cats
    return [argv[0], *remaining]


_BASE_DIR = Path(getattr(sys, "_MEIPASS", Path(__file__).resolve().parent))


def run(argv: list[str] | None = None) -> int:
    """Application entrypoint (packaging-friendly)."""
    import argparse

    if argv is None:
        argv = sys.argv
    argv = _apply_cli_logging_options(list(argv))
    logger = get_logger("main")

    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("image_path", nargs="?", help="JPEG or PNG image to open")
    args, _ = parser.parse_known_args(argv[1:])

    app = QApplication(argv)
    settings = SettingsManager((_BASE_DIR / "settings.json").as_posix())
    window = CropperWindow(settings)
    window.show()
    logger.debug("cropper window shown (viewport=%s)", window.canvas.config)

    if args.image_path:
        open_image_workflow(window, args.image_path)

    return app.exec()


if __name__ == "__main__":
    sys.exit(run())
