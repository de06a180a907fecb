"""Configuration models for the visual comparison harness."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from visualcompare.paths import sanitize_page_path

ENV_NAMES = ("staging", "prod")


def resolve_env_value(v: str) -> str:
    """Resolve ``env:VAR`` references from the process environment."""
    if isinstance(v, str) and v.startswith("env:"):
        env_var = v[4:]
        resolved = os.environ.get(env_var)
        if resolved is None:
            raise ValueError(f"Environment variable '{env_var}' not set")
        return resolved
    return v


class EnvironmentConfig(BaseModel):
    name: str
    base_url: str

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("base_url must not be empty")
        return v.rstrip("/")


class DeviceConfig(BaseModel):
    name: str = "Desktop"
    width: int = Field(default=1280, gt=0)
    height: int = Field(default=800, gt=0)

    @property
    def viewport(self) -> dict:
        return {"width": self.width, "height": self.height}


class CaptureConfig(BaseModel):
    timeout_ms: int = Field(default=60000, gt=0)
    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = "networkidle"
    settle_ms: int = Field(default=0, ge=0)
    full_page: bool = True
    headless: bool = True
    user_agent: Optional[str] = None


class ComparisonConfig(BaseModel):
    # Both screenshots are padded onto this canvas before diffing
    canvas_width: int = Field(default=1280, gt=0)
    canvas_height: int = Field(default=800, gt=0)

    # Perceptual threshold, 0 (exact) to 1 (anything goes)
    threshold: float = 0.1
    diff_color: tuple[int, int, int] = (0, 0, 255)  # prod brighter
    diff_color_alt: tuple[int, int, int] = (255, 165, 0)  # staging brighter
    diff_alpha: float = Field(default=0.1, ge=0.0, le=1.0)
    # Anti-aliased pixels are drawn in aa_color and not counted unless include_aa
    aa_color: tuple[int, int, int] = (255, 255, 0)
    include_aa: bool = False

    @field_validator("threshold")
    @classmethod
    def threshold_in_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("threshold must be between 0 and 1")
        return v

    @field_validator("diff_color", "diff_color_alt", "aa_color")
    @classmethod
    def valid_rgb(cls, v: tuple[int, int, int]) -> tuple[int, int, int]:
        if any(c < 0 or c > 255 for c in v):
            raise ValueError("color components must be between 0 and 255")
        return v


class ReportConfig(BaseModel):
    pass_threshold: float = Field(default=95.0, ge=0.0, le=100.0)
    # inline: base64 data URIs (portable); linked: relative file paths (small)
    embed_images: Literal["inline", "linked"] = "inline"
    formats: list[str] = Field(default_factory=lambda: ["html", "json"])
    output_dir: str = "."

    @field_validator("formats")
    @classmethod
    def known_formats(cls, v: list[str]) -> list[str]:
        unknown = [f for f in v if f not in ("html", "json")]
        if unknown:
            raise ValueError(f"Unknown report format(s): {', '.join(unknown)}")
        return v


class FormStep(BaseModel):
    action: Literal["fill", "select", "click"]
    selector: str
    value: Optional[str] = None
    # select only: choose by option index instead of value/label
    index: Optional[int] = None
    label: Optional[str] = None
    description: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def resolve_env(cls, v):
        if v is None:
            return v
        return resolve_env_value(v)

    @model_validator(mode="after")
    def check_step_arguments(self) -> "FormStep":
        if self.action == "fill" and self.value is None:
            raise ValueError("fill steps require a value")
        if self.action == "select" and self.value is None and self.index is None and self.label is None:
            raise ValueError("select steps require a value, index or label")
        return self


class FormWorkflowConfig(BaseModel):
    name: str
    url: str
    entry_selector: Optional[str] = None
    entry_url_pattern: Optional[str] = None
    block_resource_extensions: list[str] = Field(default_factory=list)
    steps: list[FormStep] = Field(default_factory=list)
    submit_selector: str
    success_url_pattern: Optional[str] = None
    confirmation_selector: Optional[str] = None
    expected_confirmation: Optional[str] = None
    timeout_ms: int = Field(default=30000, gt=0)


class MenuCheckConfig(BaseModel):
    name: str
    selector: str
    submenu_selector: str = "ul.mega-sub-menu"
    link_selector: str = "a.mega-menu-link"


class RunConfig(BaseModel):
    staging: EnvironmentConfig
    prod: EnvironmentConfig
    page_paths: list[str] = Field(default_factory=lambda: ["/"])
    devices: list[DeviceConfig] = Field(default_factory=lambda: [DeviceConfig()], min_length=1)

    screenshots_dir: str = "screenshots"

    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    comparison: ComparisonConfig = Field(default_factory=ComparisonConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    # Workflows
    forms: list[FormWorkflowConfig] = Field(default_factory=list)
    menus_url: Optional[str] = None
    menus: list[MenuCheckConfig] = Field(default_factory=list)

    @field_validator("page_paths")
    @classmethod
    def unique_page_paths(cls, v: list[str]) -> list[str]:
        # Screenshot file stem -> first path using it
        seen: dict[str, str] = {}
        for path in v:
            if not path.strip():
                raise ValueError("page paths must not be empty")
            if path in seen.values():
                raise ValueError(f"Duplicate page path: {path}")
            stem = sanitize_page_path(path)
            if stem in seen:
                raise ValueError(
                    f"Page paths {seen[stem]} and {path} would share the screenshot file {stem}.png"
                )
            seen[stem] = path
        return v

    @field_validator("devices")
    @classmethod
    def unique_devices(cls, v: list[DeviceConfig]) -> list[DeviceConfig]:
        names = [d.name for d in v]
        if len(names) != len(set(names)):
            raise ValueError("Device names must be unique")
        return v

    def model_post_init(self, __context) -> None:
        if not self.menus_url:
            self.menus_url = self.prod.base_url + "/"

    def environment(self, name: str) -> EnvironmentConfig:
        if name == "staging":
            return self.staging
        if name == "prod":
            return self.prod
        raise KeyError(f"Unknown environment: {name}")

    def device(self, name: str) -> DeviceConfig:
        for d in self.devices:
            if d.name == name:
                return d
        raise KeyError(f"Unknown device: {name}")

    @classmethod
    def load(cls, path: str | Path) -> "RunConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
