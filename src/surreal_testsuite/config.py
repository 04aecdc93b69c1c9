"""
Suite configuration dataclass.

Provides an immutable configuration container shared by ``ModelTestSuite``
and the pytest plugin.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_RELATION_MESSAGE = (
    "Possible reasons:"
    " relation not defined on the model,"
    " unexpected query methods chained on relation object,"
    " missing return statement."
)

ENV_PREFIX = "SURREAL_TESTSUITE_"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class SuiteConfig:
    """
    Immutable configuration for ``ModelTestSuite``.

    Attributes:
        verify_on_teardown: Whether the ``model_suite`` fixture verifies
            expectations after a passing test.
        relation_message: Default failure message for ``assert_relation``.
    """

    verify_on_teardown: bool = True
    relation_message: str = DEFAULT_RELATION_MESSAGE

    @classmethod
    def from_env(cls) -> SuiteConfig:
        """Build a config from ``SURREAL_TESTSUITE_*`` environment variables."""
        return cls(
            verify_on_teardown=_env_flag(f"{ENV_PREFIX}VERIFY_ON_TEARDOWN", cls.verify_on_teardown),
        )


__all__ = ["SuiteConfig", "DEFAULT_RELATION_MESSAGE"]
