from pydantic import BaseModel


class Message(BaseModel):
    """A single chat message. Extra keys (id, timestamps) are ignored."""

    role: str
    content: str
