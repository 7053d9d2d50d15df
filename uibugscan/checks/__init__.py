"""
Check plugins for the UI bug scanner.
"""

from typing import List, Optional

from uibugscan.checks.base import BaseCheck
from uibugscan.checks.layout import LayoutCheck
from uibugscan.checks.interaction import InteractionCheck
from uibugscan.checks.dynamic import DynamicInteractionCheck
from uibugscan.checks.typo import TypoCheck
from uibugscan.checks.visual import VisualCheck
from uibugscan.checks.accessibility import AccessibilityCheck
from uibugscan.checks.navigation import NavigationCheck
from uibugscan.checks.forms import FormsCheck
from uibugscan.models.finding import DetectorConfig
from uibugscan.utils.http import HTTPClient

__all__ = [
    'BaseCheck', 'LayoutCheck', 'InteractionCheck', 'DynamicInteractionCheck', 'TypoCheck', 'VisualCheck',
    'AccessibilityCheck', 'NavigationCheck', 'FormsCheck', 'build_checks',
]


def build_checks(config: DetectorConfig, http_client: Optional[HTTPClient] = None) -> List[BaseCheck]:
    """
    Instantiate the checks enabled by config, in their fixed run order.

    A fresh set is built for every page scan so checks never share state
    between concurrent scans.
    """
    candidates = [
        LayoutCheck(),
        InteractionCheck(),
        DynamicInteractionCheck(),
        TypoCheck(custom_whitelist=config.custom_whitelist),
        VisualCheck(),
        AccessibilityCheck(),
        NavigationCheck(http_client=http_client),
        FormsCheck(),
    ]
    enabled = []
    for check in candidates:
        if getattr(config, check.config_flag, False):
            enabled.append(check)
        else:
            check.close()
    return enabled
