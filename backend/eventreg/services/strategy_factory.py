"""
Admission strategy factory.
Builds the strategy named by settings; the application entry point owns the
instance and hands it to request handlers.
"""

from typing import Optional

from eventreg.core.config import Settings, get_settings
from eventreg.services.admission_service import SerializedAdmission
from eventreg.services.interfaces.admission import AdmissionStrategy
from eventreg.services.interfaces.optimistic_admission import OptimisticAdmission

_STRATEGIES = {
    "serialized": SerializedAdmission,
    "optimistic": OptimisticAdmission,
}


def build_admission_strategy(settings: Optional[Settings] = None) -> AdmissionStrategy:
    """
    Create the configured admission strategy.

    - serialized (default): per-event in-process lock + version check
    - optimistic: version check with retries only
    """
    settings = settings or get_settings()
    try:
        strategy_cls = _STRATEGIES[settings.ADMISSION_STRATEGY]
    except KeyError:
        raise ValueError(f"Unknown admission strategy: {settings.ADMISSION_STRATEGY!r}") from None
    return strategy_cls()
