from typing import Any, ClassVar, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


Priority = Literal["must-have", "should-have", "nice-to-have"]
Impact = Literal["low", "medium", "high"]
Frequency = Literal["rare", "sometimes", "often", "constant"]
RiskType = Literal["technical", "organizational", "budget", "timeline", "unknown"]
DocumentType = Literal["spreadsheet", "image", "document"]


def _coerce_choice(value: Any, allowed: tuple, default: str) -> str:
    """
    LLM output trust boundary: "Must Have", "HIGH", None, ... -> allowed value or default.
    """
    if not isinstance(value, str):
        return default
    cleaned = value.strip().lower().replace("_", "-").replace(" ", "-")
    return cleaned if cleaned in allowed else default


class IRModel(BaseModel):
    """
    Base for requirement records.

    Accepts the camelCase keys produced by the extraction model as well as
    snake_case names, and treats explicit nulls as "use the default" so
    collections are never None.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # field a bare string is mapped to, e.g. "Owner" -> Actor(name="Owner")
    text_field: ClassVar[Optional[str]] = None

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, str) and cls.text_field:
            return {cls.text_field: data}
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class BusinessContext(IRModel):
    company_name: Optional[str] = Field(default=None, alias="companyName")
    industry: Optional[str] = None
    region: Optional[str] = None
    size_description: Optional[str] = Field(default=None, alias="sizeDescription")


class Actor(IRModel):
    text_field: ClassVar[Optional[str]] = "name"

    name: str
    description: str = ""


class DataEntity(IRModel):
    text_field: ClassVar[Optional[str]] = "name"

    name: str
    field_names: List[str] = Field(default_factory=list, alias="fields")


class PainPoint(IRModel):
    text_field: ClassVar[Optional[str]] = "description"

    description: str
    impact: Impact = "medium"
    frequency: Frequency = "sometimes"

    @field_validator("impact", mode="before")
    @classmethod
    def _impact(cls, v):
        return _coerce_choice(v, ("low", "medium", "high"), "medium")

    @field_validator("frequency", mode="before")
    @classmethod
    def _frequency(cls, v):
        return _coerce_choice(v, ("rare", "sometimes", "often", "constant"), "sometimes")


class CandidateModule(IRModel):
    text_field: ClassVar[Optional[str]] = "name"

    name: str
    description: str = ""
    priority: Priority = "should-have"

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v):
        return _coerce_choice(v, ("must-have", "should-have", "nice-to-have"), "should-have")

    @property
    def is_must_have(self) -> bool:
        return self.priority == "must-have"


class RiskOrConstraint(IRModel):
    text_field: ClassVar[Optional[str]] = "description"

    description: str
    type: RiskType = "unknown"

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v):
        return _coerce_choice(
            v, ("technical", "organizational", "budget", "timeline", "unknown"), "unknown"
        )


class UploadedDocumentSheet(IRModel):
    name: str
    rows: int = 0
    columns: int = 0
    headers: List[str] = Field(default_factory=list)
    sample_data: str = Field(default="", alias="sampleData")


class UploadedDocument(IRModel):
    filename: str
    type: DocumentType = "document"
    summary: str = ""
    sheets: List[UploadedDocumentSheet] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v):
        return _coerce_choice(v, ("spreadsheet", "image", "document"), "document")


class RequirementsSummary(IRModel):
    """
    Structured output of one extraction pass.

    Input to graph synthesis and target of refinement. Produced and
    persisted outside this package.
    """

    business_context: BusinessContext = Field(default_factory=BusinessContext, alias="businessContext")
    primary_goal: str = Field(default="", alias="primaryGoal")
    secondary_goals: List[str] = Field(default_factory=list, alias="secondaryGoals")
    current_tools: List[str] = Field(default_factory=list, alias="currentTools")
    main_actors: List[Actor] = Field(default_factory=list, alias="mainActors")
    pain_points: List[PainPoint] = Field(default_factory=list, alias="painPoints")
    data_entities: List[DataEntity] = Field(default_factory=list, alias="dataEntities")
    candidate_modules: List[CandidateModule] = Field(default_factory=list, alias="candidateModules")
    non_functional_needs: List[str] = Field(default_factory=list, alias="nonFunctionalNeeds")
    risks_and_constraints: List[RiskOrConstraint] = Field(default_factory=list, alias="risksAndConstraints")
    open_questions: List[str] = Field(default_factory=list, alias="openQuestions")
    uploaded_documents: List[UploadedDocument] = Field(default_factory=list, alias="uploadedDocuments")

    # Diagram authored by an external generator, if any
    workflow_diagram: str = Field(default="", alias="workflowDiagram")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RequirementsSummary":
        return cls.model_validate(data or {})

    @property
    def goals(self) -> List[str]:
        """Primary goal first, then secondary goals. Empty entries skipped."""
        return [g for g in [self.primary_goal, *self.secondary_goals] if g]

    def actor_names(self) -> List[str]:
        return [a.name for a in self.main_actors]

    def module_names(self) -> List[str]:
        return [m.name for m in self.candidate_modules]
