import logging
from decimal import Decimal
from typing import Callable

from fastapi import APIRouter, FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from wagecalc import __version__
from wagecalc.config import Settings, get_settings
from wagecalc.core.calculator import WageCalculator
from wagecalc.core.errors import WageCalculationError
from wagecalc.core.models import (
    CalculatedWage,
    HealthInsuranceMember,
    HealthInsuranceSetup,
    TaxRateType,
    WageCalculationParameters,
)
from wagecalc.lifespan import build_application_lifespan, build_calculator

logger = logging.getLogger("wagecalc")


async def _announce_startup(app: FastAPI) -> None:
    settings = get_settings()
    logger.info(
        "Wage calculator ready; version=%s contribution_default=%s custom_brackets=%s",
        __version__,
        settings.default_contribution_percentage,
        bool(settings.tax_brackets_path),
    )


app = FastAPI(
    title="Wage Calculator",
    description="Gross/net wage conversion with progressive tax brackets and health insurance premiums.",
    lifespan=build_application_lifespan("api", startup_hook=_announce_startup),
)
router = APIRouter()


class HealthInsuranceMemberRequest(BaseModel):
    id: str
    count: int = Field(default=1, ge=0)


class HealthInsuranceRequest(BaseModel):
    coverage_percentage: Decimal = Field(ge=0, le=100)
    members: list[HealthInsuranceMemberRequest] = Field(default_factory=list)


class WageRequest(BaseModel):
    salary: Decimal
    tax_rate_type: TaxRateType = TaxRateType.PRIMARY
    contribution_percentage: Decimal | None = Field(default=None, ge=0, le=100)
    has_taxes: bool = True
    tax_breakdown: bool = False
    health_insurance: HealthInsuranceRequest | None = None

    model_config = ConfigDict(extra="forbid")

    def to_parameters(self, settings: Settings) -> WageCalculationParameters:
        setup = None
        if self.health_insurance is not None:
            setup = HealthInsuranceSetup(
                coverage_percentage=self.health_insurance.coverage_percentage,
                members=tuple(
                    HealthInsuranceMember(id=member.id, count=member.count)
                    for member in self.health_insurance.members
                ),
            )
        contribution = self.contribution_percentage
        if contribution is None:
            contribution = settings.default_contribution_percentage
        return WageCalculationParameters(
            salary=self.salary,
            tax_rate_type=self.tax_rate_type,
            contribution_percentage=contribution,
            health_insurance=setup,
            has_taxes=self.has_taxes,
            tax_breakdown=self.tax_breakdown,
        )


def _settings() -> Settings:
    return getattr(app.state, "settings", None) or get_settings()


def _calculator() -> WageCalculator:
    calculator = getattr(app.state, "calculator", None)
    if calculator is None:
        calculator = build_calculator(_settings())
    return calculator


def _run(req: WageRequest, compute: Callable[[WageCalculator, WageCalculationParameters], CalculatedWage]) -> dict:
    params = req.to_parameters(_settings())
    try:
        wage = compute(_calculator(), params)
    except WageCalculationError as exc:
        logger.warning("Wage calculation rejected: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return wage.model_dump(mode="json")


@app.get("/health")
def health():
    settings = _settings()
    calculator = _calculator()
    return {
        "status": "ok",
        "version": __version__,
        "build": {
            "version": settings.build_version,
            "sha": settings.build_sha,
        },
        "tax_brackets": len(calculator.engine.brackets),
        "health_insurance_threshold": str(settings.health_insurance_threshold),
    }


@router.post("/wage/from-gross")
def wage_from_gross(req: WageRequest):
    return _run(req, WageCalculator.calculate_from_gross)


@router.post("/wage/from-net")
def wage_from_net(req: WageRequest):
    return _run(req, WageCalculator.calculate_from_net)


app.include_router(router)
