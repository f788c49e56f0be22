"""
Console entry point for PhotoTale.

Each line typed on stdin is treated as one final transcript, so the voice
command flow (screens, wizard steps, wildcard answers) can be exercised
without a microphone.  ``--image`` preloads a photo as if it had been taken
or uploaded.
"""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from .story_controller import StoryController
from .utils.logging_system import setup_log_system
from .voice_recognition import ConsoleTranscriptSource, RecognitionSession, SessionConfig

# Load env before the logger so LOG_LEVEL is available
load_dotenv()
logger = setup_log_system("main")


class PhotoTaleApp:
    """Owns the controller and the recognition session that feeds it."""

    def __init__(self, controller: Optional[StoryController] = None, source=None) -> None:
        self.controller = controller or StoryController()
        self.session = RecognitionSession(
            source or ConsoleTranscriptSource(),
            self.controller.handle_transcript,
            config=SessionConfig.from_env(),
            on_display=self._show,
        )

    def _show(self, text: str) -> None:
        state = self.controller.describe()
        where = state["screen"] if state["step"] is None else f"{state['screen']}/{state['step']}"
        print(f"[{where}] {text}")

    def run(self) -> None:
        """Listen until stdin closes or Ctrl+C."""
        logger.info("PhotoTale is listening. Type a command per line (Ctrl+D to quit).")
        try:
            self.session.run()
        except KeyboardInterrupt:
            logger.debug("Shutting down (KeyboardInterrupt received)…")
        finally:
            self.session.stop()
            logger.info("Application terminated.")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="phototale", description=__doc__)
    parser.add_argument("--image", type=Path, help="photo to start the story wizard with")
    args = parser.parse_args(argv)

    app = PhotoTaleApp()
    if args.image is not None:
        app.controller.set_captured_image(args.image.read_bytes())
    app.run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
