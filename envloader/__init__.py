"""Resolve secret references stored in environment variables at startup.

Typical use, at module level of a function handler::

    from envloader import load_secret_environment_variables

    load_secret_environment_variables()
"""
from __future__ import annotations

from .cache import CacheStore, FileCacheStore
from .classifier import (
    PARAMETER_PREFIX,
    PARAMETER_STORE_PREFIX,
    PARAMETER_STORE_VAR_NAME,
    SECRET_PREFIX,
    classify,
)
from .config import Settings, get_settings
from .env import EnvironmentSink, MappingEnvironment, ProcessEnvironment
from .errors import (
    ConfigurationError,
    MalformedCacheError,
    MalformedPayloadError,
    NotFoundError,
    PermissionDeniedError,
    SecretResolutionError,
)
from .loader import LoadResult, SecretEnvironmentLoader, load_secret_environment_variables
from .secrets import BotoClientFactory, ParameterStoreFetcher, SecretsManagerFetcher

__all__ = [
    "PARAMETER_PREFIX",
    "PARAMETER_STORE_PREFIX",
    "PARAMETER_STORE_VAR_NAME",
    "SECRET_PREFIX",
    "BotoClientFactory",
    "CacheStore",
    "ConfigurationError",
    "EnvironmentSink",
    "FileCacheStore",
    "LoadResult",
    "MalformedCacheError",
    "MalformedPayloadError",
    "MappingEnvironment",
    "NotFoundError",
    "ParameterStoreFetcher",
    "PermissionDeniedError",
    "ProcessEnvironment",
    "SecretEnvironmentLoader",
    "SecretResolutionError",
    "SecretsManagerFetcher",
    "Settings",
    "classify",
    "get_settings",
    "load_secret_environment_variables",
]
