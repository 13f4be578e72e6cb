from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from prize_service.domain import MatchResultInput, PrizeRuleType

# Matches the Numeric(18, 2) history columns.
Amount = Annotated[Decimal, Field(ge=0, max_digits=18, decimal_places=2)]


class EqualShareConfigSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    total_prize: Amount


class RankKillConfigSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    per_kill: Amount
    rank_rewards: dict[str, Amount] = Field(default_factory=dict)

    @field_validator("rank_rewards")
    @classmethod
    def validate_ranks(cls, value: dict[str, Decimal]) -> dict[str, Decimal]:
        for rank in value:
            if not rank.isdigit() or int(rank) < 1 or rank != str(int(rank)):
                raise ValueError(f"rank must be a positive integer, got {rank!r}")
        return value


class FixedListConfigSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    prizes: list[Amount]


CONFIG_SCHEMAS: dict[PrizeRuleType, type[BaseModel]] = {
    PrizeRuleType.EQUAL_SHARE: EqualShareConfigSchema,
    PrizeRuleType.RANK_KILL: RankKillConfigSchema,
    PrizeRuleType.FIXED_LIST: FixedListConfigSchema,
}


class RuleRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128, examples=["Weekly Solo Cup"])
    type: PrizeRuleType
    config: dict[str, Any]

    @model_validator(mode="after")
    def validate_config(self) -> "RuleRequest":
        if not self.name.strip():
            raise ValueError("rule name must be non-empty")
        try:
            config = CONFIG_SCHEMAS[self.type].model_validate(self.config)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}" for item in exc.errors()
            )
            raise ValueError(f"invalid {self.type.value} config: {problems}") from None
        self.config = config.model_dump()
        return self

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Weekly Solo Cup",
                    "type": "rank_kill",
                    "config": {"per_kill": 10, "rank_rewards": {"1": 500, "2": 300}},
                }
            ]
        }
    }


class RuleResponse(BaseModel):
    id: str
    name: str
    type: PrizeRuleType
    config: dict[str, Any]
    created_at: datetime | None = None


class MatchResultSchema(BaseModel):
    uid: str = Field(..., min_length=1, examples=["u-1"])
    username: str = ""
    kills: int = Field(default=0, ge=0)
    rank: int = Field(default=0, ge=0, description="0 means unranked")
    team_id: str | None = Field(default=None, validation_alias=AliasChoices("team_id", "teamId"))

    def to_domain(self) -> MatchResultInput:
        return MatchResultInput(
            uid=self.uid,
            username=self.username,
            kills=self.kills,
            rank=self.rank,
            team_id=self.team_id,
        )


class CalculateRequest(BaseModel):
    results: list[MatchResultSchema]


class WinnerResponse(BaseModel):
    uid: str
    amount: int | float
    breakdown: str
    position: int | None = None


class CalculationResponse(BaseModel):
    rule_id: str
    rule_type: PrizeRuleType
    winners: list[WinnerResponse]
    total_amount: int | float


class ManualWinnerSchema(BaseModel):
    uid: str = Field(..., min_length=1)
    username: str = ""
    amount: Amount


class DistributeRequest(BaseModel):
    rule_id: str | None = None
    results: list[MatchResultSchema] = Field(default_factory=list)
    winners: list[ManualWinnerSchema] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_source(self) -> "DistributeRequest":
        if self.rule_id is not None and self.winners:
            raise ValueError("use either rule_id with results or manual winners, not both")
        if self.rule_id is None and self.results:
            raise ValueError("results require a rule_id")
        return self


class PayoutWinnerResponse(BaseModel):
    uid: str
    username: str
    amount: int | float
    breakdown: str
    position: int | None = None


class PayoutResponse(BaseModel):
    id: int
    match_id: str
    rule_id: str | None
    total_amount: int | float
    winners_count: int
    status: str
    created_at: datetime
    winners: list[PayoutWinnerResponse]


class ParticipantResponse(BaseModel):
    uid: str
    username: str
    push_enabled: bool
