# This project was developed with assistance from AI tools.
"""Multipart parsing shared by the identity and property upload routes.

File parts are keyed by slot name (``front``, ``ownership_proof``, ...);
plain text parts are detail fields, except ``confirm_reverification``.
"""

from fastapi import Request
from starlette.datastructures import UploadFile

from ..services.submission import UploadedFile

_TRUTHY = {"1", "true", "yes", "on"}


async def read_upload_form(request: Request) -> tuple[list[UploadedFile], dict[str, str], bool]:
    form = await request.form()
    files: list[UploadedFile] = []
    details: dict[str, str] = {}
    confirm = False
    for name, value in form.multi_items():
        if isinstance(value, UploadFile):
            files.append(
                UploadedFile(
                    slot=name,
                    filename=value.filename or name,
                    content_type=value.content_type,
                    data=await value.read(),
                )
            )
        elif name == "confirm_reverification":
            confirm = value.strip().lower() in _TRUTHY
        elif value.strip():
            details[name] = value.strip()
    return files, details, confirm
