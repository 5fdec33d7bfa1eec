"""Error taxonomy for the image pipeline.

Every error carries a human-readable message meant to be shown inline,
next to the control that triggered it.
"""


class MediaError(Exception):
    """Base class for image pipeline failures."""

    default_message = "Image processing failed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidFile(MediaError):
    default_message = "Please select a valid image file."


class FileTooLarge(MediaError):
    default_message = "Image size must be less than 5MB."


class EmptyCropRegion(MediaError):
    default_message = "Select an area of the image to crop."


class RenderingUnavailable(MediaError):
    default_message = "The image could not be processed."


class UploadFailed(MediaError):
    default_message = "Failed to upload image. Please try again."


class DisplayResolutionFailed(MediaError):
    """Image could not be fetched or decoded. Recovered by the fallback chain."""

    default_message = "Image could not be displayed."
