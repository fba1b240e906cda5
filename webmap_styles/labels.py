"""
Service description label parsing.

Some feature services only carry terse numeric renderer labels ("11", "12")
and document the meaning of each code in the free-text service description:

    11 Residential Low Density
    12 Residential Medium Density

Exports:
    parse_service_description: Description text to {code: label}
"""

import re
from typing import Dict, Optional

CODE_LABEL_PATTERN = re.compile(r"^\s*(\d{1,3})\s+(.+?)\s*$")


def parse_service_description(description: Optional[str]) -> Dict[str, str]:
    """
    Parse a service description into a code -> label lookup.

    Lines that do not start with a 1-3 digit code followed by whitespace
    and a label are ignored. A repeated code keeps its last label.
    """
    if not description:
        return {}

    labels: Dict[str, str] = {}
    for line in description.splitlines():
        match = CODE_LABEL_PATTERN.match(line)
        if match:
            labels[match.group(1)] = match.group(2)
    return labels
