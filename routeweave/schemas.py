"""Caller-facing conversion schemas."""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from .core.conversion.models import ConversionResult


class ConversionOptions(BaseModel):
    """Conversion request options."""
    model_config = ConfigDict(populate_by_name=True)

    app_dir: bool = Field(False, alias="appDir", description="Emit the nested app/ convention")
    typescript: bool = Field(False, description="Emit typed file extensions")
    include_examples: bool = Field(False, alias="includeExamples", description="Add scaffold example files")


class ConversionSettings(BaseModel):
    """Options resolved against the analyzed project. Fixed for one run."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    app_dir: bool = Field(False, alias="appDir")
    typescript: bool = False
    include_examples: bool = Field(False, alias="includeExamples")


class StatsSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_files: int = Field(0, alias="totalFiles")
    converted_files: int = Field(0, alias="convertedFiles")
    failed_files: int = Field(0, alias="failedFiles")
    conversion_time: float = Field(0.0, alias="conversionTime", description="Milliseconds")
    stage_times: Dict[str, float] = Field(default_factory=dict, alias="stageTimes")


class LogsSchema(BaseModel):
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    info: List[str] = Field(default_factory=list)


class ValidationSchema(BaseModel):
    valid: bool = True
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ConversionResultSchema(BaseModel):
    """Serialized ConversionResult."""
    model_config = ConfigDict(populate_by_name=True)

    state: str = Field(..., description="Terminal state of the run")
    aborted: bool = False
    error: Optional[str] = None
    pages: Dict[str, str] = Field(default_factory=dict)
    components: Dict[str, str] = Field(default_factory=dict)
    api: Dict[str, str] = Field(default_factory=dict)
    styles: Dict[str, str] = Field(default_factory=dict)
    config: Dict[str, str] = Field(default_factory=dict)
    public: Dict[str, str] = Field(default_factory=dict)
    file_structure: Dict[str, Any] = Field(default_factory=dict, alias="fileStructure")
    logs: LogsSchema = Field(default_factory=LogsSchema)
    stats: StatsSchema = Field(default_factory=StatsSchema)
    validation: Optional[ValidationSchema] = None

    @classmethod
    def from_result(cls, result: "ConversionResult") -> "ConversionResultSchema":
        stats = result.stats
        return cls(
            state=result.state.value,
            aborted=result.aborted,
            error=result.error,
            pages=result.pages,
            components=result.components,
            api=result.api,
            styles=result.styles,
            config=result.config,
            public=result.public,
            file_structure=result.file_structure.to_dict(),
            logs=LogsSchema(**result.logs.to_dict()),
            stats=StatsSchema(
                total_files=stats.total_files,
                converted_files=stats.converted_files,
                failed_files=stats.failed_files,
                conversion_time=stats.conversion_time,
                stage_times=dict(stats.stage_times),
            ),
            validation=ValidationSchema(**result.validation.to_dict()) if result.validation else None,
        )
