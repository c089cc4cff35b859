from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from metrics import coerce_number


class ChannelRecord(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    title: str = ""
    description: Optional[str] = None
    thumbnail: str = ""
    subscribers: float = 0
    views: float = 0
    videos: float = 0

    @field_validator("subscribers", "views", "videos", mode="before")
    @classmethod
    def normalize_numeric_fields(cls, value):
        return coerce_number(value)

    @field_validator("title", "thumbnail", mode="before")
    @classmethod
    def normalize_text_fields(cls, value):
        if value is None:
            return ""
        return str(value)

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, value):
        if value is None:
            return None
        value = str(value)
        return value if value.strip() else None


class VideoRecord(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    video_id: str = Field(default="", alias="videoId")
    title: str = ""
    thumbnail: str = ""
    views: float = 0
    likes: float = 0
    comments: float = 0
    published_at: Optional[str] = Field(default=None, alias="publishedAt")

    @field_validator("views", "likes", "comments", mode="before")
    @classmethod
    def normalize_numeric_fields(cls, value):
        return coerce_number(value)

    @field_validator("video_id", "title", "thumbnail", mode="before")
    @classmethod
    def normalize_text_fields(cls, value):
        if value is None:
            return ""
        return str(value)

    @field_validator("published_at", mode="before")
    @classmethod
    def normalize_published_at(cls, value):
        if value is None:
            return None
        if isinstance(value, str) and value.strip() == "":
            return None
        return str(value)


class AnalysisSnapshot(BaseModel):
    """Immutable view of an analysis session at one point in time."""

    model_config = ConfigDict(frozen=True)

    query: str = ""
    channel: Optional[ChannelRecord] = None
    videos: Tuple[VideoRecord, ...] = ()
    loading: bool = False
    error: Optional[str] = None
    request_id: int = 0

    @computed_field
    @property
    def status(self) -> str:
        if self.loading:
            return "loading"
        if self.error:
            return "error"
        if self.channel is not None:
            return "ready"
        return "idle"
