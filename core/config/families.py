"""
AprilTag families supported by the detector
"""

from typing import Tuple

from core.exceptions import ConfigError

TAG_FAMILIES: Tuple[str, ...] = (
    "tag16h5",
    "tag25h9",
    "tag36h11",
    "tagCircle21h7",
    "tagStandard41h12",
)

# Short spellings accepted on the command line
FAMILY_ALIASES = {
    "16h5": "tag16h5",
    "25h9": "tag25h9",
    "36h11": "tag36h11",
    "21h7": "tagCircle21h7",
    "41h12": "tagStandard41h12",
}


def normalize_family(name: str) -> str:
    """
    Resolve a tag family name or alias

    Raises:
        ConfigError: If the family is not supported
    """
    family = FAMILY_ALIASES.get(str(name).strip(), str(name).strip())
    if family not in TAG_FAMILIES:
        raise ConfigError(
            f"Invalid tag family specified: {name!r}. Available: {list(TAG_FAMILIES)}"
        )
    return family
