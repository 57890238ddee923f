import re

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

HEX_COLOR = re.compile(r"^#([A-Fa-f0-9]{3}){1,2}$")

DEFAULT_MARKER_COLOR = "#ff6600"
DEFAULT_AREA_FILL_COLOR = "#3388ff"
DEFAULT_AREA_STROKE_COLOR = "#0055cc"
DEFAULT_AREA_FILL_OPACITY = 0.3
LAYOUTS = ("side", "popup")


class DisplayOptions(BaseModel):
    """Styling consumed by the overlay renderer and the viewer."""
    model_config = {"populate_by_name": True}

    layout: str = "side"
    marker_color: str = Field(DEFAULT_MARKER_COLOR, alias="markerColor")
    area_fill_color: str = Field(DEFAULT_AREA_FILL_COLOR, alias="areaFillColor")
    area_stroke_color: str = Field(DEFAULT_AREA_STROKE_COLOR, alias="areaStrokeColor")
    area_fill_opacity: float = Field(DEFAULT_AREA_FILL_OPACITY, alias="areaFillOpacity")

    @field_validator("layout")
    @classmethod
    def _layout(cls, v: str) -> str:
        return v if v in LAYOUTS else "side"

    @field_validator("area_fill_opacity")
    @classmethod
    def _opacity(cls, v: float) -> float:
        return min(1.0, max(0.0, v))


class Settings(BaseSettings):
    HOST: str = "0.0.0.0"
    PORT: int = 5178
    APP_NAME: str = "Interactive Maps API"
    VERSION: str = "0.2.0"
    DB_PATH: str = "interactive_maps.sqlite3"
    API_URL: str = "http://127.0.0.1:5178"
    LOG_LEVEL: str = "INFO"

    DEFAULT_LAYOUT: str = "side"
    MARKER_COLOR: str = DEFAULT_MARKER_COLOR
    AREA_FILL_COLOR: str = DEFAULT_AREA_FILL_COLOR
    AREA_STROKE_COLOR: str = DEFAULT_AREA_STROKE_COLOR
    AREA_FILL_OPACITY: float = DEFAULT_AREA_FILL_OPACITY

    class Config:
        env_prefix = "WIM_"

    @field_validator("MARKER_COLOR", "AREA_FILL_COLOR", "AREA_STROKE_COLOR")
    @classmethod
    def _hex(cls, v: str, info) -> str:
        if HEX_COLOR.match(v or ""):
            return v
        # invalid colors fall back to the field default
        return cls.model_fields[info.field_name].default

    def display_options(self) -> DisplayOptions:
        return DisplayOptions(
            layout=self.DEFAULT_LAYOUT,
            marker_color=self.MARKER_COLOR,
            area_fill_color=self.AREA_FILL_COLOR,
            area_stroke_color=self.AREA_STROKE_COLOR,
            area_fill_opacity=self.AREA_FILL_OPACITY,
        )


settings = Settings()
