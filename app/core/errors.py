# app/core/errors.py
"""
Domain errors for the assessment flows.

Every failure a user can run into (microphone, transcription, validation,
AI generation, email) is an ``AssessmentError``. The flow state machines
catch them and turn them into a toast-style notice; the HTTP layer renders
any that escape as ``{"error", "code", "title"}`` with ``status_code``.
"""
from __future__ import annotations

from typing import Optional


class AssessmentError(Exception):
    code: str = "assessment_error"
    title: str = "Something went wrong"
    status_code: int = 500

    def __init__(self, message: str = "", *, title: Optional[str] = None) -> None:
        super().__init__(message or self.title)
        self.message = message or self.title
        if title:
            self.title = title

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, "title": self.title}


class PermissionDenied(AssessmentError):
    code = "permission_denied"
    title = "Microphone Access Denied"
    status_code = 403


class DeviceUnavailable(AssessmentError):
    code = "device_unavailable"
    title = "Microphone Unavailable"
    status_code = 409


class TranscriptionFailed(AssessmentError):
    code = "transcription_failed"
    title = "Transcription Failed"
    status_code = 502


class ValidationFailed(AssessmentError):
    code = "validation_failed"
    title = "Invalid Input"
    status_code = 422


class GenerationFailed(AssessmentError):
    code = "generation_failed"
    title = "AI Error"
    status_code = 502


class EmailSendFailed(AssessmentError):
    code = "email_send_failed"
    title = "Email Error"
    status_code = 502


class InvalidTransition(AssessmentError):
    code = "invalid_transition"
    title = "Action Not Available"
    status_code = 409


class SessionNotFound(AssessmentError):
    code = "session_not_found"
    title = "Session Not Found"
    status_code = 404
