"""
Requisition Configuration Schema.

Defines the structure and sensible defaults for requisition settings.
Actual values are loaded from a YAML file or a dict at startup.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Self

import yaml

from procurement_kernel.domain.ordering import PRIORITY_GROUP, UNCATEGORIZED_GROUP
from procurement_kernel.logging_config import get_logger

logger = get_logger("modules.requisitions.config")


@dataclass(frozen=True)
class RequisitionConfig:
    """
    Configuration schema for the requisitions module.

    Override at instantiation with organisation-specific values:

        config = RequisitionConfig(
            default_account="Petty Cash",
            readable_id_prefix="PR",
        )
    """

    # Header defaults for a fresh draft
    default_title: str = "New Requisition"
    default_account: str = "Cash"

    # Human-facing ids: REQ-001, REQ-002, ...
    readable_id_prefix: str = "REQ"
    readable_id_width: int = 3

    # Grouping labels for subtotal bands
    priority_group_label: str = PRIORITY_GROUP
    uncategorized_label: str = UNCATEGORIZED_GROUP

    # Item-name suggestions
    suggestion_limit: int = 5

    def __post_init__(self):
        if self.readable_id_width < 1:
            raise ValueError("readable_id_width must be at least 1")
        if self.suggestion_limit < 0:
            raise ValueError("suggestion_limit cannot be negative")
        logger.debug(
            "requisition_config_initialized",
            extra={
                "default_account": self.default_account,
                "readable_id_prefix": self.readable_id_prefix,
                "suggestion_limit": self.suggestion_limit,
            },
        )

    def format_readable_id(self, sequence: int) -> str:
        """Render a store sequence number as a readable id."""
        return f"{self.readable_id_prefix}-{sequence:0{self.readable_id_width}d}"

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with default values."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create config from dictionary (e.g., loaded from a YAML file).

        Raises:
            KeyError: if ``data`` names a setting this schema does not have.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise KeyError(f"Unknown requisition settings: {', '.join(unknown)}")
        logger.info(
            "requisition_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)


def load_config(path: Path | str) -> RequisitionConfig:
    """
    Load ``RequisitionConfig`` from a YAML file.

    The file may hold the settings at top level or under a
    ``requisitions:`` key.  An empty file yields the defaults.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping, got {type(data).__name__}")
    section = data.get("requisitions", data)
    logger.info("requisition_config_loaded", extra={"path": str(path)})
    return RequisitionConfig.from_dict(section)
