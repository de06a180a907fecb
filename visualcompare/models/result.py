"""Result data structures produced by the comparison pipeline and workflows."""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

SIZE_MISMATCH = "Size mismatch"
ERROR = "Error"

Sentinel = Literal["Size mismatch", "Error"]

STATUS_PASS = "Pass"
STATUS_FAIL = "Fail"
STATUS_ERROR = "Error"


class ComparisonResult(BaseModel):
    """Outcome of comparing one page across staging and prod."""
    model_config = ConfigDict(frozen=True)

    page_path: str
    similarity: Union[float, Sentinel]
    mismatched_pixels: Optional[int] = None
    total_pixels: Optional[int] = None
    error: Optional[str] = None

    @property
    def is_numeric(self) -> bool:
        return not isinstance(self.similarity, str)

    def status(self, pass_threshold: float = 95.0) -> str:
        if not self.is_numeric:
            return STATUS_ERROR
        return STATUS_PASS if self.similarity >= pass_threshold else STATUS_FAIL

    def similarity_text(self) -> str:
        if self.is_numeric:
            return f"{self.similarity:.2f}%"
        return self.similarity


class ComparisonRun(BaseModel):
    run_id: str
    device: str
    staging_url: str
    prod_url: str
    started_at: str
    completed_at: str = ""
    duration_seconds: float = 0.0
    results: list[ComparisonResult] = Field(default_factory=list)


class ReportSummary(BaseModel):
    total: int = 0
    passed: int = 0
    failed: int = 0
    errors: int = 0


class WorkflowResult(BaseModel):
    """Result of running one form workflow."""
    name: str
    passed: bool = False
    message: str = ""
    steps_completed: int = 0
    confirmation_text: Optional[str] = None
    final_url: str = ""
    duration_seconds: float = 0.0


class MenuCheckResult(BaseModel):
    name: str
    visible: bool = False
    submenu_count: int = 0
    link_count: int = 0
    invalid_links: list[str] = Field(default_factory=list)  # link texts without href
    passed: bool = False
    message: str = ""
