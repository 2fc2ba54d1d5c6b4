"""Detect environment variables that reference remote secrets."""
from __future__ import annotations

import logging
from typing import Mapping

from .secrets.base import ClassifiedReferences, Reference, ReferenceKind

logger = logging.getLogger(__name__)

PARAMETER_PREFIX = "envloader-ssm:"
SECRET_PREFIX = "envloader-secretsmanager:"
PARAMETER_STORE_VAR_NAME = "ENVLOADER_PARAMETER_STORE"
PARAMETER_STORE_PREFIX = "ssm:"


def classify(snapshot: Mapping[str, str]) -> ClassifiedReferences:
    """Partition ``snapshot`` into parameter, secret and parameter store references.

    Prefixes are matched literally and case-sensitively. Values matching no
    prefix are left out of the result.
    """

    references = ClassifiedReferences()
    for variable, value in snapshot.items():
        if variable == PARAMETER_STORE_VAR_NAME:
            if value.startswith(PARAMETER_STORE_PREFIX):
                references.parameter_store = Reference(
                    variable,
                    ReferenceKind.PARAMETER_STORE,
                    value[len(PARAMETER_STORE_PREFIX) :],
                )
                continue
            logger.warning(
                "%s is set but does not start with '%s'; ignoring it",
                PARAMETER_STORE_VAR_NAME,
                PARAMETER_STORE_PREFIX,
            )

        if value.startswith(PARAMETER_PREFIX):
            references.parameters.append(
                Reference(variable, ReferenceKind.PARAMETER, value[len(PARAMETER_PREFIX) :])
            )
        elif value.startswith(SECRET_PREFIX):
            references.secrets.append(
                Reference(variable, ReferenceKind.SECRET, value[len(SECRET_PREFIX) :])
            )
    return references


__all__ = [
    "PARAMETER_PREFIX",
    "PARAMETER_STORE_PREFIX",
    "PARAMETER_STORE_VAR_NAME",
    "SECRET_PREFIX",
    "classify",
]
