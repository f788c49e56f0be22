"""
PhotoTale package.

Voice control for turning a photo into an illustrated story.  The package
contains the voice command matcher, the story controller that owns screen
and wizard state, the recognition session that feeds transcripts to it and
the shared logging setup.
"""

__all__ = [
    "commands",
    "story_controller",
    "voice_recognition",
    "utils",
]
