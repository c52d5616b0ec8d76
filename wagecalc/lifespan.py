from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncContextManager

from fastapi import FastAPI

from wagecalc.config import Settings, get_settings
from wagecalc.core.calculator import WageCalculator
from wagecalc.core.schedules import sample_health_insurance_schema, sample_tax_brackets
from wagecalc.core.tables import load_health_insurance_schema, load_tax_brackets

Hook = Callable[[FastAPI], Awaitable[None] | None]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def build_calculator(settings: Settings) -> WageCalculator:
    """Build a calculator from the configured tables, falling back to the sample schedule."""
    if settings.tax_brackets_path:
        brackets = load_tax_brackets(settings.tax_brackets_path)
    else:
        brackets = sample_tax_brackets()
    if settings.health_insurance_schema_path:
        schema = load_health_insurance_schema(settings.health_insurance_schema_path)
    else:
        schema = sample_health_insurance_schema()
    return WageCalculator(
        brackets,
        schema,
        health_insurance_threshold=settings.health_insurance_threshold,
    )


def _open_log_sink(logger: logging.Logger, settings: Settings) -> logging.Handler | None:
    if not settings.log_file:
        return None
    log_path = Path(settings.log_file)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.warning("Unable to create log directory %s: %s", log_path.parent, exc)
        return None
    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setLevel(settings.logging_level())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return handler


async def _invoke_hook(hook: Hook | None, app: FastAPI) -> None:
    if hook is None:
        return
    try:
        result = hook(app)
        if inspect.isawaitable(result):
            await result  # type: ignore[func-returns-value]
    except Exception:  # pragma: no cover - hooks are user provided
        logging.getLogger("wagecalc").exception("Application lifecycle hook failed")


def build_application_lifespan(
    app_label: str,
    *,
    startup_hook: Hook | None = None,
    shutdown_hook: Hook | None = None,
) -> Callable[[FastAPI], AsyncContextManager[None]]:
    base_logger = logging.getLogger("wagecalc")

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        settings = get_settings()
        previous_level = base_logger.level
        base_logger.setLevel(settings.logging_level())
        logger = base_logger.getChild(app_label)
        log_handler = _open_log_sink(base_logger, settings)
        calculator = build_calculator(settings)

        app.state.settings = settings
        app.state.calculator = calculator
        app.state.log_handler = log_handler
        app.state.app_label = app_label

        logger.info(
            "Startup complete: brackets=%s threshold=%s",
            len(calculator.engine.brackets),
            settings.health_insurance_threshold,
        )

        try:
            await _invoke_hook(startup_hook, app)
            yield
        finally:
            await _invoke_hook(shutdown_hook, app)
            if log_handler is not None:
                base_logger.removeHandler(log_handler)
                log_handler.close()
            for attr in ("settings", "calculator", "log_handler", "app_label"):
                if hasattr(app.state, attr):
                    delattr(app.state, attr)
            logger.info("Shutdown complete")
            base_logger.setLevel(previous_level)

    return _lifespan
