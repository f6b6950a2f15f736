from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    IMAGE_DECODE_FAILURE = "image_decode_failure"
    IMAGE_ENCODE_FAILURE = "image_encode_failure"
    INVALID_PARAMETER = "invalid_parameter"
    TUNING_UNAVAILABLE = "tuning_unavailable"


_USER_MESSAGES = {
    ErrorKind.IMAGE_DECODE_FAILURE: "Could not read your photo.",
    ErrorKind.IMAGE_ENCODE_FAILURE: "Could not produce the edited photo.",
    ErrorKind.INVALID_PARAMETER: "The requested adjustment is out of range.",
    ErrorKind.TUNING_UNAVAILABLE: "AI tuning unavailable, using manual style instead.",
}


def user_message(kind: ErrorKind) -> str:
    return _USER_MESSAGES[kind]


class AnalogLensError(Exception):
    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ImageDecodeFailure(AnalogLensError):
    kind = ErrorKind.IMAGE_DECODE_FAILURE


class ImageEncodeFailure(AnalogLensError):
    kind = ErrorKind.IMAGE_ENCODE_FAILURE


class InvalidParameter(AnalogLensError, ValueError):
    kind = ErrorKind.INVALID_PARAMETER
