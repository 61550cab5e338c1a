from pydantic import BaseModel, Field

LAYOUTS = ("split", "web_only", "video_only")

DEFAULT_LAYOUT = "split"
DEFAULT_ORIENTATION = "row"

# field -> (default, min, max)
SCREEN_NUMERIC_FIELDS = {
    "split_ratio": (50, 0, 100),
    "gap_px": (0, 0, 200),
    "padding_px": (0, 0, 200),
}


class ScreenConfig(BaseModel):
    orientation: str = DEFAULT_ORIENTATION
    split_ratio: int = Field(50, alias="splitRatio")
    gap_px: int = Field(0, alias="gapPx")
    padding_px: int = Field(0, alias="paddingPx")

    class Config:
        populate_by_name = True
        frozen = True


class DeviceConfig(BaseModel):
    web_url: str = Field("", alias="webUrl")
    video_url: str = Field("", alias="videoUrl")
    layout: str = DEFAULT_LAYOUT
    screen: ScreenConfig = Field(default_factory=ScreenConfig)

    class Config:
        populate_by_name = True
        frozen = True


class StoredDeviceConfig(DeviceConfig):
    updated_at: int = Field(..., alias="updatedAt")
