"""Team model for the esa API."""

from enum import Enum

from pydantic import BaseModel


class TeamPrivacy(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


class Team(BaseModel):
    """Team information returned by GET /teams/{team}."""

    name: str
    privacy: TeamPrivacy
    description: str = ""
    icon: str = ""
    url: str

    model_config = {"frozen": True}
