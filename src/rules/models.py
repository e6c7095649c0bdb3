from pydantic import BaseModel, Field, model_validator

DEFAULT_UNFOCUSED_ACTIONS = ["window_blur", "mouse_leave", "tab_switch"]
DEFAULT_INTERACTIVE_ACTIONS = ["click", "scroll", "key_press", "video_control"]
DEFAULT_BROWSING_ACTIONS = ["browse_info", "view_materials", "take_test", "quiz_attempt"]
DEFAULT_AUTH_FAILURE_ACTIONS = ["auth_failed"]
DEFAULT_TEST_COMPLETION_ACTIONS = ["test_completed"]


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class SignalRules(BaseModel):
    continuity_gap_seconds: int = Field(default=120, gt=0)
    unfocused_actions: list[str] = Field(default_factory=lambda: list(DEFAULT_UNFOCUSED_ACTIONS))
    interactive_actions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INTERACTIVE_ACTIONS)
    )
    browsing_actions: list[str] = Field(default_factory=lambda: list(DEFAULT_BROWSING_ACTIONS))
    auth_failure_actions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_AUTH_FAILURE_ACTIONS)
    )
    test_completion_actions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TEST_COMPLETION_ACTIONS)
    )


class ValidationRules(BaseModel):
    interaction_timeout_seconds: int = Field(default=300, gt=0)


class QualityWeights(BaseModel):
    focus: float = Field(default=0.4, ge=0.0)
    interaction: float = Field(default=0.3, ge=0.0)
    continuity: float = Field(default=0.3, ge=0.0)

    @model_validator(mode="after")
    def _weights_sum_to_one(self) -> "QualityWeights":
        total = self.focus + self.interaction + self.continuity
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"quality weights must sum to 1.0, got {total}")
        return self


class QualityRules(BaseModel):
    weights: QualityWeights = Field(default_factory=QualityWeights)
    review_quality_threshold: float = Field(default=6.0, ge=0.0, le=10.0)
    review_focus_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    hold_for_review: bool = False


class DailyLimitRules(BaseModel):
    default_seconds: float = Field(default=28800, gt=0)
    cache_ttl_seconds: int = Field(default=300, ge=0)
    user_overrides: dict[str, float] = Field(default_factory=dict)


class BatchRules(BaseModel):
    max_workers: int | None = Field(default=None, ge=1)


class StudyTimeRules(BaseModel):
    project: ProjectRules
    signals: SignalRules = Field(default_factory=SignalRules)
    validation: ValidationRules = Field(default_factory=ValidationRules)
    quality: QualityRules = Field(default_factory=QualityRules)
    daily_limit: DailyLimitRules = Field(default_factory=DailyLimitRules)
    batch: BatchRules = Field(default_factory=BatchRules)
