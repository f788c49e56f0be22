import random

import pytest

from phototale.commands import CommandStatus
from phototale.story_controller import (
    DEFAULT_SUBJECT,
    FAILED_STORY_TEXT,
    RANDOM_CHARACTERS,
    ConfigStep,
    Screen,
    StoryController,
    StoryData,
    StoryPart,
    UnsupportedLanguageError,
)


class FakeHooks:
    def __init__(self, story=None, fail=False):
        self.notices = []
        self.pictures = 0
        self.countdowns = []
        self.uploads = 0
        self.generated = []
        self.exported = []
        self._story = story or StoryData("The Lost Kite", [StoryPart("Once upon a time...")])
        self._fail = fail

    def notify(self, message):
        self.notices.append(message)

    def take_picture(self):
        self.pictures += 1

    def start_countdown(self, seconds):
        self.countdowns.append(seconds)

    def request_upload(self):
        self.uploads += 1

    def generate_story(self, image, config):
        self.generated.append((image, config))
        if self._fail:
            raise RuntimeError("service unavailable")
        return self._story

    def open_export(self, story):
        self.exported.append(story)


@pytest.fixture
def hooks():
    return FakeHooks()


@pytest.fixture
def controller(hooks):
    return StoryController(hooks, rng=random.Random(7))


@pytest.fixture
def wizard(controller):
    controller.set_captured_image(b"\x89PNG fake")
    return controller


def say(controller, *phrases):
    return [controller.handle_transcript(p) for p in phrases]


def test_home_photo_opens_camera(controller):
    outcome = controller.handle_transcript("take a photo")
    assert outcome.status is CommandStatus.MATCHED
    assert controller.screen is Screen.CAMERA


def test_upload_is_available_everywhere(controller, hooks):
    say(controller, "upload")
    controller.screen = Screen.CAMERA
    say(controller, "upload image")
    assert hooks.uploads == 2


def test_camera_commands(controller, hooks):
    controller.screen = Screen.CAMERA
    say(controller, "photo", "snap", "photo in 3 seconds", "photo 20 seconds")
    assert hooks.pictures == 2
    assert hooks.countdowns == [3]
    assert hooks.notices[-1] == "Please say a number between 1 and 10."
    say(controller, "back")
    assert controller.screen is Screen.HOME


def test_unknown_words_are_unrecognised(controller):
    outcome = controller.handle_transcript("asdkjhasd")
    assert outcome.status is CommandStatus.UNRECOGNIZED
    assert outcome.result is None
    assert controller.screen is Screen.HOME


def test_captured_image_opens_wizard(wizard):
    assert wizard.screen is Screen.CONFIG
    assert wizard.step is ConfigStep.SUBJECT


def test_empty_image_rejected(controller):
    with pytest.raises(ValueError):
        controller.set_captured_image(b"")


def test_subject_is_free_text(wizard):
    outcome = wizard.handle_transcript("Princess Luna")
    assert outcome.status is CommandStatus.MATCHED
    assert wizard.config.subject == "Princess Luna"
    assert wizard.step is ConfigStep.POSITION


def test_reserved_word_is_not_a_subject(wizard, hooks):
    say(wizard, "photo")
    assert wizard.config.subject == ""
    assert wizard.step is ConfigStep.SUBJECT
    assert hooks.notices[-1] == '"photo" is a command, not a character name.'


def test_skip_without_subject_picks_character(wizard):
    say(wizard, "skip")
    assert wizard.config.subject in RANDOM_CHARACTERS
    assert wizard.step is ConfigStep.POSITION


def test_auto_sets_defaults_per_step(wizard, hooks):
    say(wizard, "auto")
    assert wizard.config.subject in RANDOM_CHARACTERS
    say(wizard, "auto", "auto", "auto")
    assert wizard.config.position == "start"
    assert wizard.config.type == "context"
    assert wizard.config.language == "English"
    assert wizard.step is ConfigStep.CONFIRM
    say(wizard, "auto")
    assert wizard.config.auto_play_audio is False
    assert hooks.notices[-1] == "Auto-play disabled"


def test_position_words(wizard):
    say(wizard, "skip", "middle")
    assert wizard.config.position == "middle"
    say(wizard, "back", "and")
    assert wizard.config.position == "end"
    assert wizard.step is ConfigStep.TYPE


def test_short_type_is_style_long_type_is_prompt(wizard):
    say(wizard, "skip", "start", "watercolor")
    assert wizard.config.type == "context"
    assert wizard.config.context_style == "watercolor"
    say(wizard, "back", "a story about a dragon who loves tea")
    assert wizard.config.type == "custom"
    assert wizard.config.custom_prompt == "a story about a dragon who loves tea"
    assert wizard.config.context_style is None
    assert wizard.step is ConfigStep.LANGUAGE


def test_unsupported_language_is_a_failure(wizard):
    wizard.step = ConfigStep.LANGUAGE
    outcome = wizard.handle_transcript("klingon")
    assert outcome.status is CommandStatus.FAILED
    assert isinstance(outcome.error, UnsupportedLanguageError)
    assert wizard.step is ConfigStep.LANGUAGE


def test_language_is_matched_case_insensitively(wizard):
    wizard.step = ConfigStep.LANGUAGE
    say(wizard, "spanish")
    assert wizard.config.language == "Spanish"
    assert wizard.step is ConfigStep.CONFIRM


def test_auto_play_only_on_confirm(wizard, hooks):
    say(wizard, "disable")
    assert wizard.config.auto_play_audio is True
    assert hooks.notices[-1] == "Auto-read option is only available in the final step"
    wizard.step = ConfigStep.CONFIRM
    say(wizard, "uncheck")
    assert wizard.config.auto_play_audio is False
    say(wizard, "enable")
    assert wizard.config.auto_play_audio is True


def test_back_from_first_step_returns_to_camera(wizard):
    say(wizard, "back")
    assert wizard.screen is Screen.CAMERA


def test_reset_returns_to_camera(wizard):
    say(wizard, "Princess Luna", "reset")
    assert wizard.screen is Screen.CAMERA
    assert wizard.config.subject == ""
    assert wizard.step is ConfigStep.SUBJECT


def test_generate_requires_confirm_step(wizard, hooks):
    say(wizard, "generate")
    assert hooks.generated == []
    assert hooks.notices[-1] == "Please complete all steps first."


def test_generate_story(wizard, hooks):
    wizard.step = ConfigStep.CONFIRM
    outcome = wizard.handle_transcript("confirm")
    assert outcome.succeeded
    assert wizard.screen is Screen.STORY
    image, config = hooks.generated[0]
    assert image == b"\x89PNG fake"
    assert config.subject == DEFAULT_SUBJECT
    assert wizard.config.subject == ""
    assert wizard.story.title == "The Lost Kite"
    assert wizard.is_loading is False


def test_generation_failure_shows_apology():
    hooks = FakeHooks(fail=True)
    controller = StoryController(hooks)
    controller.set_captured_image(b"img")
    controller.step = ConfigStep.CONFIRM
    outcome = controller.handle_transcript("generate")
    assert outcome.status is CommandStatus.MATCHED
    assert controller.story.parts[0].text == FAILED_STORY_TEXT
    assert hooks.notices[-1] == "Error generating story."


def test_story_screen_commands(wizard, hooks):
    wizard.step = ConfigStep.CONFIRM
    say(wizard, "generate", "export story")
    assert hooks.exported == [wizard.story]
    say(wizard, "try again")
    assert wizard.screen is Screen.CONFIG
    assert wizard.step is ConfigStep.SUBJECT


def test_home_clears_image(wizard):
    say(wizard, "main screen")
    assert wizard.screen is Screen.HOME
    assert wizard.captured_image is None
