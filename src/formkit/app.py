"""Entry point for the ``formkit`` console script."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence, TextIO

from .services.settings import BuilderSettings, SettingsStore, parse_setting
from .ui.bootstrap import BuilderSession, create_builder
from .ui.events import NoticePosted
from .utils import logging as logging_utils

_LOGGER = logging.getLogger(__name__)
_NOTICE_TIMEOUT_MS = 4_000


def configure_logging(debug: bool = False, *, force: bool = False) -> None:
    logging_utils.setup_logging(logging.DEBUG if debug else logging.INFO, force=force)
    logging_utils.route_qt_messages()


def load_settings(
    path: Path | None = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> BuilderSettings:
    """Load persisted settings, falling back to defaults when the file is unreadable."""

    active_store = store or SettingsStore(path)
    try:
        return active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to read settings from %s: %s", active_store.path, exc)
        return BuilderSettings()


def parse_overrides(items: Sequence[str]) -> Dict[str, Any]:
    """Turn repeated ``--set KEY=VALUE`` arguments into typed settings values."""

    overrides: Dict[str, Any] = {}
    for entry in items:
        key, separator, raw = entry.partition("=")
        key = key.strip()
        if not separator or not key:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        overrides[key] = parse_setting(key, raw)
    return overrides


def run_window(session: BuilderSession, store: SettingsStore) -> int:
    """Show the builder in a ``QMainWindow`` and block in the Qt event loop."""

    try:
        from PySide6.QtCore import QByteArray
        from PySide6.QtWidgets import QApplication, QMainWindow
    except ImportError as exc:  # pragma: no cover - depends on desktop stack
        raise RuntimeError("PySide6 must be installed to launch the FormKit builder.") from exc

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName("FormKit")
    if session.settings.theme.lower() == "dark":
        app.setStyle("Fusion")

    window = QMainWindow()
    window.setWindowTitle(session.store.settings.title or "FormKit")
    session.shell.install_qt_actions(window)
    status_bar = window.statusBar()
    session.event_bus.subscribe(
        NoticePosted, lambda event: status_bar.showMessage(event.message, _NOTICE_TIMEOUT_MS)
    )
    if session.settings.window_geometry:
        window.restoreGeometry(QByteArray.fromBase64(session.settings.window_geometry.encode("ascii")))
    window.show()

    try:
        return app.exec()
    finally:
        session.settings.window_geometry = bytes(window.saveGeometry().toBase64()).decode("ascii")
        store.save(session.settings)
        session.close()


def main(argv: Sequence[str] | None = None) -> None:
    """Parse arguments, load settings, and either dump them or open the builder."""

    args = _build_parser().parse_args(argv)
    debug = os.environ.get("FORMKIT_DEBUG", "").strip().lower() in {"1", "true", "yes", "on"}
    configure_logging(debug)

    settings_path = args.settings_path or os.environ.get("FORMKIT_SETTINGS_PATH")
    store = SettingsStore(Path(settings_path).expanduser() if settings_path else None)
    try:
        overrides = parse_overrides(args.overrides)
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    settings = load_settings(store=store, overrides=overrides or None)
    if args.dump_settings:
        dump_settings(settings, store, overrides=overrides)
        return

    if settings.debug_logging and not debug:
        configure_logging(True, force=True)

    exit_code = run_window(create_builder(settings), store)
    if exit_code:
        raise SystemExit(exit_code)


def dump_settings(
    settings: BuilderSettings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    """Print the effective settings and where each layer came from, as JSON."""

    destination = stream or sys.stdout
    report = {
        "settings": asdict(settings),
        "meta": {
            "path": str(store.path),
            "cli_overrides": sorted(overrides),
            "environment_variables": sorted(name for name in os.environ if name.startswith("FORMKIT_")),
        },
    }
    destination.write(json.dumps(report, indent=2) + "\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="formkit", description="Open the FormKit form builder.")
    parser.add_argument("--dump-settings", action="store_true", help="Print the effective settings and exit.")
    parser.add_argument("--settings-path", metavar="PATH", help="Use PATH instead of ~/.formkit/settings.json.")
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override one setting for this launch (repeatable).",
    )
    return parser
