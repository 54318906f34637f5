from pydantic import BaseModel, ConfigDict, Field


class UploadResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    key: str
    name: str
    size: int


class EmbedField(BaseModel):
    name: str
    value: str
    inline: bool = False


class EmbedImage(BaseModel):
    url: str


class EmbedFooter(BaseModel):
    text: str


class Embed(BaseModel):
    title: str
    description: str
    color: int
    timestamp: str
    fields: list[EmbedField]
    url: str
    image: EmbedImage
    footer: EmbedFooter


class NotificationPayload(BaseModel):
    username: str = "Upload Bot"
    embeds: list[Embed] = Field(min_length=1)


class RouteUploadResponse(BaseModel):
    name: str
    size: int
    key: str | None = None
    url: str | None = None
    serverData: dict | None = None
    error: str | None = None
