"""
Central controller for PhotoTale.

The ``StoryController`` owns the application state (current screen, wizard
step, captured image, story configuration and the generated story) and
builds the table of voice commands that is valid for that state.  Every
finalized transcript is resolved against the table with the
:class:`~phototale.commands.CommandMatcher` and the outcome is reported back
to the caller as matched, unrecognised or failed.

Camera, upload, story generation and export are external collaborators and
are reached through a :class:`StoryHooks` object.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Any, List, Optional, Protocol

from dotenv import load_dotenv

from .commands import (
    Command,
    CommandExecutionError,
    CommandMatcher,
    CommandOutcome,
    CommandStatus,
    parse_number_from_string,
)
from .utils.logging_system import setup_log_system

logger = setup_log_system("story_controller")


class Screen(Enum):
    HOME = "home"
    CAMERA = "camera"
    CONFIG = "config"
    STORY = "story"


class ConfigStep(IntEnum):
    SUBJECT = 0
    POSITION = 1
    TYPE = 2
    LANGUAGE = 3
    CONFIRM = 4


@dataclass
class StoryConfig:
    subject: str = ""
    position: str = "start"  # start | middle | end
    type: str = "context"  # context | custom
    language: str = "English"
    custom_prompt: Optional[str] = None
    context_style: Optional[str] = None
    auto_play_audio: bool = True


@dataclass
class StoryPart:
    text: str
    image: Optional[bytes] = None


@dataclass
class StoryData:
    title: str
    parts: List[StoryPart] = field(default_factory=list)


# Languages the narration voice supports, with their speech locale.
SUPPORTED_LANGUAGES = {
    "English": "en-US",
    "Spanish": "es-ES",
    "French": "fr-FR",
    "German": "de-DE",
    "Italian": "it-IT",
    "Portuguese": "pt-PT",
    "Chinese": "zh-CN",
    "Japanese": "ja-JP",
    "Korean": "ko-KR",
    "Russian": "ru-RU",
    "Arabic": "ar-SA",
    "Dutch": "nl-NL",
    "Polish": "pl-PL",
    "Turkish": "tr-TR",
    "Swedish": "sv-SE",
    "Danish": "da-DK",
    "Norwegian": "no-NO",
    "Finnish": "fi-FI",
    "Greek": "el-GR",
    "Czech": "cs-CZ",
    "Hungarian": "hu-HU",
    "Thai": "th-TH",
    "Vietnamese": "vi-VN",
    "Indonesian": "id-ID",
    "Malay": "ms-MY",
    "Hindi": "hi-IN",
    "Bengali": "bn-IN",
    "Urdu": "ur-PK",
    "Tamil": "ta-IN",
    "Telugu": "te-IN",
    "Marathi": "mr-IN",
    "Punjabi": "pa-IN",
    "Gujarati": "gu-IN",
    "Malayalam": "ml-IN",
    "Kannada": "kn-IN",
    "Persian": "fa-IR",
    "Hebrew": "he-IL",
    "Afrikaans": "af-ZA",
    "Bulgarian": "bg-BG",
    "Catalan": "ca-ES",
    "Croatian": "hr-HR",
    "Estonian": "et-EE",
    "Filipino": "fil-PH",
    "Icelandic": "is-IS",
    "Latvian": "lv-LV",
    "Lithuanian": "lt-LT",
    "Romanian": "ro-RO",
    "Serbian": "sr-RS",
    "Slovak": "sk-SK",
    "Slovenian": "sl-SI",
    "Ukrainian": "uk-UA",
    "Welsh": "cy-GB",
}

RANDOM_CHARACTERS = (
    "a brave knight",
    "a curious explorer",
    "a clever detective",
    "a magical wizard",
    "a fearless pirate",
    "a wise owl",
    "a playful monkey",
    "a mysterious stranger",
    "a talented musician",
    "a skilled artist",
    "an adventurous child",
    "a friendly robot",
    "a graceful dancer",
    "a cunning fox",
    "a loyal dog",
    "a wise old turtle",
    "a mischievous cat",
    "a gentle giant",
    "a clever inventor",
    "a brave firefighter",
)

RETRY_PHRASES = ["retry", "re try", "retrie", "try again", "regenerate"]

# Spoken command words that must not be taken as free‑text answers.
RESERVED_PHRASES = frozenset(
    {
        "photo", "take a photo", "capture", "snap", "back", "next", "skip",
        "reset", "raised", "retry", "re try", "retrie", "try again", "regenerate",
        "auto", "check", "enable", "uncheck", "disable", "generate", "confirm",
        "upload", "upload image", "beginning", "start", "middle", "end", "and",
    }
)

DEFAULT_SUBJECT = "the main character in the scene"
FAILED_STORY_TEXT = "Sorry, I couldn't think of a story for this image."
MAX_COUNTDOWN_SECONDS = 10


class UnsupportedLanguageError(ValueError):
    """Raised when a spoken language is not in :data:`SUPPORTED_LANGUAGES`."""


class StoryHooks(Protocol):
    """Effects the controller delegates to the surrounding application."""

    def notify(self, message: str) -> None: ...

    def take_picture(self) -> None: ...

    def start_countdown(self, seconds: int) -> None: ...

    def request_upload(self) -> None: ...

    def generate_story(self, image: bytes, config: StoryConfig) -> StoryData: ...

    def open_export(self, story: StoryData) -> None: ...


class LoggingStoryHooks:
    """Hooks that only log; used when no front end is attached."""

    def notify(self, message: str) -> None:
        logger.info(f"Notice: {message}")

    def take_picture(self) -> None:
        logger.info("Camera: take picture.")

    def start_countdown(self, seconds: int) -> None:
        logger.info(f"Camera: countdown of {seconds} seconds.")

    def request_upload(self) -> None:
        logger.info("Upload requested.")

    def generate_story(self, image: bytes, config: StoryConfig) -> StoryData:
        raise RuntimeError("No story generator is attached.")

    def open_export(self, story: StoryData) -> None:
        logger.info(f"Export requested for '{story.title}'.")


class StoryController:
    """Coordinates screen state, voice commands and the story pipeline."""

    def __init__(
        self,
        hooks: Optional[StoryHooks] = None,
        *,
        matcher: Optional[CommandMatcher] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        # Load environment variables from .env if present
        load_dotenv()

        self.hooks: StoryHooks = hooks if hooks is not None else LoggingStoryHooks()
        self.matcher = matcher if matcher is not None else CommandMatcher()
        self._rng = rng or random.Random()

        self.screen = Screen.HOME
        self.step = ConfigStep.SUBJECT
        self.config = StoryConfig()
        self.captured_image: Optional[bytes] = None
        self.story: Optional[StoryData] = None
        self.is_loading = False

    # ------------------------------------------------------------------
    # Transcript handling
    # ------------------------------------------------------------------
    def handle_transcript(self, text: str) -> CommandOutcome:
        """
        Resolve a finalized transcript against the active commands.

        The command table is rebuilt for every call so it always reflects the
        current screen and step.  A command whose action raises is reported
        as ``FAILED``; a transcript that matches nothing as ``UNRECOGNIZED``.
        """
        logger.info(f"User said: {text}")
        commands = self.active_commands()
        try:
            result = self.matcher.match(text, commands)
        except CommandExecutionError as e:
            logger.error(f"Error executing voice command: {e.cause}", exc_info=e.cause)
            return CommandOutcome(CommandStatus.FAILED, text, e.result, e.cause)
        if result is None:
            logger.info(f"Unrecognised command: {text}")
            return CommandOutcome(CommandStatus.UNRECOGNIZED, text)
        return CommandOutcome(CommandStatus.MATCHED, text, result)

    # ------------------------------------------------------------------
    # Image input
    # ------------------------------------------------------------------
    def set_captured_image(self, image: bytes) -> None:
        """Store a photo from the camera or an upload and open the wizard."""
        if not image:
            raise ValueError("Captured image is empty.")
        self.captured_image = image
        self.story = None
        self._reset_config()
        self.screen = Screen.CONFIG
        logger.info(f"Image received ({len(image)} bytes); opening story configuration.")

    # ------------------------------------------------------------------
    # Command tables
    # ------------------------------------------------------------------
    def active_commands(self) -> List[Command]:
        """Return the commands that are valid on the current screen and step."""
        base = [
            Command(["home", "start over", "main screen"], self._go_home),
            Command(["upload", "upload image"], self._upload),
        ]
        if self.screen is Screen.CAMERA:
            return base + [
                Command(["photo", "take a photo", "capture", "snap"], self.hooks.take_picture),
                Command("photo *", self._countdown),
                Command("back", self._go_home),
            ]
        if self.screen is Screen.CONFIG:
            return base + self._config_commands()
        if self.screen is Screen.STORY and self.captured_image is not None:
            return base + [
                Command(RETRY_PHRASES, self._restart_wizard),
                Command(["export", "export story"], self._export),
            ]
        return base + [Command(["photo", "take a photo"], self._open_camera)]

    def _config_commands(self) -> List[Command]:
        commands = [
            Command("back", self._back),
            Command("next", self._next_step),
            Command("skip", self._skip),
            Command(["reset", "raised"], self._reset_to_camera),
            Command(RETRY_PHRASES, self._restart_wizard),
            Command("auto", self._auto),
            Command(["check", "enable"], lambda: self._set_auto_play(True)),
            Command(["uncheck", "disable"], lambda: self._set_auto_play(False)),
            Command(["generate", "confirm"], self._generate),
        ]
        if self.step is ConfigStep.SUBJECT:
            commands.append(Command("*", self._set_subject, name="subject"))
        elif self.step is ConfigStep.POSITION:
            commands.append(Command(["beginning", "start"], lambda: self._set_position("start")))
            commands.append(Command("middle", lambda: self._set_position("middle")))
            commands.append(Command(["end", "and"], lambda: self._set_position("end")))
        elif self.step is ConfigStep.TYPE:
            commands.append(Command("*", self._set_story_type, name="story type"))
        elif self.step is ConfigStep.LANGUAGE:
            commands.append(Command("*", self._set_language, name="language"))
        return commands

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def _go_home(self) -> None:
        self.screen = Screen.HOME
        self.captured_image = None
        self.story = None

    def _open_camera(self) -> None:
        self.screen = Screen.CAMERA

    def _upload(self) -> None:
        self.hooks.request_upload()

    def _next_step(self) -> None:
        if self.step < ConfigStep.CONFIRM:
            self.step = ConfigStep(self.step + 1)

    def _previous_step(self) -> None:
        if self.step > ConfigStep.SUBJECT:
            self.step = ConfigStep(self.step - 1)

    def _back(self) -> None:
        if self.step is ConfigStep.SUBJECT:
            self.screen = Screen.CAMERA
            self.hooks.notify("Returned to camera.")
        else:
            self._previous_step()

    def _reset_config(self) -> None:
        self.config = StoryConfig()
        self.step = ConfigStep.SUBJECT

    def _reset_to_camera(self) -> None:
        self._reset_config()
        self.screen = Screen.CAMERA
        self.hooks.notify("Returned to camera. Configuration reset.")

    def _restart_wizard(self) -> None:
        self._reset_config()
        self.screen = Screen.CONFIG
        self.hooks.notify("Configuration reset. Returned to main character option.")

    # ------------------------------------------------------------------
    # Camera
    # ------------------------------------------------------------------
    def _countdown(self, spoken: str) -> None:
        seconds = parse_number_from_string(spoken.lower().replace("seconds", "").strip())
        if seconds and 0 < seconds <= MAX_COUNTDOWN_SECONDS:
            self.hooks.start_countdown(seconds)
        else:
            self.hooks.notify("Please say a number between 1 and 10.")

    # ------------------------------------------------------------------
    # Wizard answers
    # ------------------------------------------------------------------
    def _random_character(self) -> str:
        character = self._rng.choice(RANDOM_CHARACTERS)
        self.config.subject = character
        return character

    def _skip(self) -> None:
        if self.step is ConfigStep.SUBJECT and not self.config.subject:
            character = self._random_character()
            self.hooks.notify(f'Subject set to "{character}"')
        self._next_step()

    def _auto(self) -> None:
        if self.step is ConfigStep.SUBJECT:
            message = f'Subject set to "{self._random_character()}"'
        elif self.step is ConfigStep.POSITION:
            self.config.position = "start"
            message = 'Placement set to "start"'
        elif self.step is ConfigStep.TYPE:
            self.config.type = "context"
            self.config.context_style = None
            self.config.custom_prompt = None
            message = 'Type set to "based on image"'
        elif self.step is ConfigStep.LANGUAGE:
            self.config.language = "English"
            message = 'Language set to "English"'
        else:
            self.config.auto_play_audio = not self.config.auto_play_audio
            message = f"Auto-play {'enabled' if self.config.auto_play_audio else 'disabled'}"
        self.hooks.notify(message)
        self._next_step()

    def _set_auto_play(self, enabled: bool) -> None:
        if self.step is not ConfigStep.CONFIRM:
            self.hooks.notify("Auto-read option is only available in the final step")
            return
        self.config.auto_play_audio = enabled
        self.hooks.notify(f"Auto-read aloud {'enabled' if enabled else 'disabled'}")

    def _set_subject(self, subject: str) -> None:
        if subject.strip().lower() in RESERVED_PHRASES:
            self.hooks.notify(f'"{subject}" is a command, not a character name.')
            return
        self.config.subject = subject
        self._next_step()

    def _set_position(self, position: str) -> None:
        self.config.position = position
        self._next_step()

    def _set_story_type(self, text: str) -> None:
        trimmed = text.strip()
        if not trimmed:
            return
        if trimmed.lower() in RESERVED_PHRASES:
            self.hooks.notify(f'"{trimmed}" is a command, not a story type.')
            return
        # A few words describe a style; anything longer is a custom prompt.
        if len(trimmed.split()) <= 3:
            self.config.type = "context"
            self.config.context_style = trimmed
            self.config.custom_prompt = None
            self.hooks.notify(f'Style set to: "{trimmed}"')
        else:
            self.config.type = "custom"
            self.config.custom_prompt = trimmed
            self.config.context_style = None
            self.hooks.notify("Custom story set.")
        self._next_step()

    def _set_language(self, spoken: str) -> None:
        wanted = spoken.strip()
        for name in SUPPORTED_LANGUAGES:
            if name.lower() == wanted.lower():
                self.config.language = name
                self._next_step()
                return
        raise UnsupportedLanguageError(
            f'Language "{wanted}" is not supported. Please try another language.'
        )

    # ------------------------------------------------------------------
    # Story
    # ------------------------------------------------------------------
    def _generate(self) -> None:
        if self.step is not ConfigStep.CONFIRM:
            self.hooks.notify("Please complete all steps first.")
            return
        self.generate_story()

    def generate_story(self) -> Optional[StoryData]:
        """
        Ask the story generator for a story about the captured image.

        A generator failure is logged and replaced by a single apology part so
        the story screen always has something to show.
        """
        if self.captured_image is None:
            logger.warning("Story generation requested without an image.")
            return None
        final_config = replace(self.config, subject=self.config.subject or DEFAULT_SUBJECT)
        self.screen = Screen.STORY
        self.is_loading = True
        self.story = None
        try:
            self.hooks.notify("Crafting your unique story...")
            self.story = self.hooks.generate_story(self.captured_image, final_config)
            self.hooks.notify("Your story is complete!")
        except Exception as e:
            logger.error(f"Error generating story: {e}", exc_info=True)
            self.hooks.notify("Error generating story.")
            self.story = StoryData(title="", parts=[StoryPart(text=FAILED_STORY_TEXT)])
        finally:
            self.is_loading = False
        return self.story

    def _export(self) -> None:
        if self.story is None:
            self.hooks.notify("There is no story to export yet.")
            return
        self.hooks.open_export(self.story)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def describe(self) -> dict[str, Any]:
        """Return a small snapshot of the state, e.g. for a status line."""
        return {
            "screen": self.screen.value,
            "step": self.step.name.lower() if self.screen is Screen.CONFIG else None,
            "has_image": self.captured_image is not None,
            "config": self.config,
        }
