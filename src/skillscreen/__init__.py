"""SkillScreen: Content risk scanning for third-party agent skills."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Tool identity embedded in SARIF output and the CLI version banner.
_PRODUCT_ID = "skillscreen"
