"""Canonical OpenTelemetry constants for buckrefactor."""

from __future__ import annotations

from enum import StrEnum


class MetricName(StrEnum):
    """Canonical metric names."""

    STAGE_DURATION = "buckrefactor.stage.duration"
    ORACLE_INVOCATIONS = "buckrefactor.oracle.invocations"
    TRIAL_COUNT = "buckrefactor.trial.count"
    ERROR_COUNT = "buckrefactor.error.count"


class AttributeName(StrEnum):
    """Canonical attribute names."""

    STAGE = "stage"
    STATUS = "status"
    OPERATION = "operation"
    VERDICT = "verdict"
    TRIAL_KIND = "trial_kind"
    ERROR_TYPE = "error_type"
    STAGE_NAME = "buckrefactor.stage"
    TARGET = "buckrefactor.target"


class ScopeName(StrEnum):
    """Canonical instrumentation scope names."""

    ROOT = "buckrefactor"
    CLI = "buckrefactor.cli"
    LOADER = "buckrefactor.loader"
    ESTIMATE = "buckrefactor.estimate"
    IMPORTS = "buckrefactor.imports"
    DEPS = "buckrefactor.deps"
    ORACLE = "buckrefactor.oracle"
    MODULES = "buckrefactor.modules"
    OBS = "buckrefactor.obs"


__all__ = [
    "AttributeName",
    "MetricName",
    "ScopeName",
]
