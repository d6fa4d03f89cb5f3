"""Shared schema building blocks."""

from typing import Annotated

from pydantic import BaseModel, StringConstraints

# Required text: surrounding whitespace stripped, must not end up empty.
NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class MessageResponse(BaseModel):
    message: str
