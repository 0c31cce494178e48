from __future__ import annotations

from dataclasses import dataclass
import logging
import re

logger = logging.getLogger(__name__)

# ('/org/gnome/evolution/dataserver/Subprocess/122783/11', 'org.gnome.evolution.dataserver.Calendar8')
# (objectpath '/obj', 'org.gnome.evolution.dataserver.Calendar8.Instance-1', 'org.gnome.evolution.dataserver.Calendar8')
_OBJECT_PATH_PATTERN = re.compile(r"'(/[^']+)'")
_BUS_NAME_PATTERN = re.compile(r".*, '([^']+)'", re.S)


class BusReferenceError(ValueError):
    """Raised when an OpenCalendar reply carries no object path or bus name."""


@dataclass(frozen=True)
class BusReference:
    object_path: str
    bus: str

    def to_dict(self) -> dict[str, str]:
        return {"objectPath": self.object_path, "bus": self.bus}


def parse_open_calendar(raw: str) -> BusReference | None:
    path_match = _OBJECT_PATH_PATTERN.search(raw)
    bus_match = _BUS_NAME_PATTERN.search(raw)
    if path_match is None or bus_match is None:
        logger.debug("open_calendar_unparsed length=%s", len(raw))
        return None
    return BusReference(object_path=path_match.group(1), bus=bus_match.group(1))


def require_open_calendar(raw: str) -> BusReference:
    reference = parse_open_calendar(raw)
    if reference is None:
        raise BusReferenceError("OpenCalendar reply has no object path and bus name.")
    return reference
