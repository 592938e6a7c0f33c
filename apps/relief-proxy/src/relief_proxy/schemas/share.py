from typing import Any

from pydantic import BaseModel


class ShareCard(BaseModel):
    title: str
    description: str
    url: str
    image: str
    emergency: dict[str, Any]
