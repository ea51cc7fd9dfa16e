from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CleanupRequest(_CamelModel):
    # strict: "24" or true are rejected rather than coerced
    max_age_hours: float = Field(default=24, ge=0, strict=True, allow_inf_nan=False)
    dry_run: bool = Field(default=False, strict=True)


class ForceDeleteRequest(_CamelModel):
    confirm: str | None = None


class FileStatOut(_CamelModel):
    name: str
    size_kb: int = Field(alias="sizeKB")
    age_hours: float
    can_delete: bool


class StatsOut(_CamelModel):
    total_files: int
    total_size: int
    total_size_kb: int = Field(alias="totalSizeKB")
    total_size_mb: float = Field(alias="totalSizeMB")
    files: list[FileStatOut] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class StatsResponse(BaseModel):
    success: bool = True
    stats: StatsOut


class CleanupOut(_CamelModel):
    deleted_files: list[str] = Field(default_factory=list)
    total_deleted: int
    total_size_freed: int
    total_size_freed_kb: int = Field(alias="totalSizeFreedKB")
    total_size_freed_mb: float = Field(alias="totalSizeFreedMB")
    errors: list[str] = Field(default_factory=list)
    dry_run: bool = False
    message: str | None = None


class CleanupResponse(BaseModel):
    success: bool = True
    cleanup: CleanupOut
